"""
Test Suite for Mains Supply Analyzer

This module contains tests for:
- Plausibility and completeness checks (test_validators.py)
- Pressure aggregation (test_pressure.py)
- Supply curve building (test_supply_curve.py)
- Risk rules (test_risk.py)
- Confidence rating (test_confidence.py)
- Full analysis (test_analysis.py)
- Templates, scenarios and generator (test_engine.py)
- API endpoints (test_api.py)
- Dashboard charts and tables (test_dashboard_components.py)

Run tests with:
    pytest tests/ -v
    pytest tests/ --cov=core --cov=api --cov=engine
"""

import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
