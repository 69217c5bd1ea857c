"""
Streamlit Dashboard Application

This module provides the web-based dashboard for the Mains Supply Analyzer.
Built with Streamlit for rapid development and easy deployment.

Components:
- dashboard.py: Main dashboard application
- components/: Reusable UI components
  - charts.py: Plotly chart components
  - panels.py: Risk, warning and confidence panels
  - tables.py: pandas table helpers

Features:
- Local scenario simulation
- Stored test review through the API
- Supply curve visualization
"""

__version__ = "0.1.0"
