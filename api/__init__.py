"""
API Module - FastAPI Backend

This module provides the REST API for the Mains Supply Analyzer.
It handles test setup, observation entry, storage and analysis.

Key Components:
- main.py: FastAPI application and root endpoints
- models.py: Pydantic schemas for request/response validation
- database.py: SQLAlchemy tables and session management
- routes/: API endpoint implementations

Endpoints:
- POST /api/v1/mains-tests: Create a test with its devices
- POST /api/v1/mains-tests/{test_id}/steps: Add the step plan
- POST /api/v1/mains-tests/{test_id}/observations: Record a reading
- GET /api/v1/mains-tests/{test_id}/results: Compute the analysis
- POST /api/v1/scenarios/generate: Generate a synthetic test
"""

__version__ = "0.1.0"
