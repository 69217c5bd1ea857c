"""
Engine Module - Test Plans and Synthetic Data Generation

This module provides the standard mains test step plans and synthetic
test generation for demonstration and testing of the analyzer.

Key Components:
- TemplateLibrary: Standard step plans (0-1-2-3 outlets, flow sweep, quick)
- SupplyScenario: Defines how a water supply behaves under load
- ScenarioLibrary: Pre-built supply scenarios
- MainsTestDataGenerator: Generates complete tests with realistic noise

Usage:
    from engine import MainsTestDataGenerator, ScenarioLibrary

    generator = MainsTestDataGenerator(random_seed=7)
    generator.set_scenario(ScenarioLibrary.weak_mains())
    generated = generator.generate()
    results = generated.analyze()
"""

from .templates import (
    MainsTestTemplate,
    StepTemplate,
    TemplateLibrary,
)
from .supply_scenarios import (
    ScenarioLibrary,
    SupplyProfile,
    SupplyScenario,
)
from .generator import (
    GeneratedMainsTest,
    MainsTestDataGenerator,
    NoiseProfile,
    generate_scenario_test,
    get_available_scenarios,
)

__all__ = [
    # Templates
    "MainsTestTemplate",
    "StepTemplate",
    "TemplateLibrary",

    # Supply Scenarios
    "ScenarioLibrary",
    "SupplyProfile",
    "SupplyScenario",

    # Data Generator
    "GeneratedMainsTest",
    "MainsTestDataGenerator",
    "NoiseProfile",
    "generate_scenario_test",
    "get_available_scenarios",
]

__version__ = "0.1.0"
