"""
API Routes Module

This module contains all API endpoint implementations organized by function:
- mains_tests.py: Test setup, observation entry and results endpoints
- scenarios.py: Synthetic scenario generation endpoints

All routers are combined in main.py to create the complete API.
"""

from .mains_tests import router as mains_tests_router
from .scenarios import router as scenarios_router

__all__ = [
    "mains_tests_router",
    "scenarios_router",
]
