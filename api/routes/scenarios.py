"""
Scenario Generation Endpoints

This module provides endpoints for generating synthetic mains tests
from supply scenarios. This is useful for:
- Testing and demonstration
- Training engineers to read supply curves
- System validation

Key Features:
- List available supply scenarios
- Generate a complete test for a scenario and analyze it
- Option to store the generated test for later retrieval
- Detailed scenario information with a short "story"
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from api.database import get_db, DatabaseManager
from api.models import (
    MainsTestResultsModel,
    ScenarioInfo,
    ScenarioListResponse,
    ScenarioRequest,
    ScenarioResponse,
    ScenarioType,
)
from engine.generator import MainsTestDataGenerator
from engine.supply_scenarios import ScenarioLibrary, SupplyProfile, SupplyScenario

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scenarios", tags=["Scenario Generation"])


def _get_scenario_or_404(scenario_type: ScenarioType) -> SupplyScenario:
    scenario = ScenarioLibrary.get_scenario_by_profile(SupplyProfile(scenario_type.value))
    if scenario is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Scenario not found: {scenario_type.value}"
        )
    return scenario


def _scenario_info(scenario: SupplyScenario, include_story: bool = False) -> ScenarioInfo:
    return ScenarioInfo(
        **scenario.to_dict(),
        story=scenario.story if include_story else None
    )


# =========================================
# Scenario Information Endpoints
# =========================================

@router.get(
    "",
    response_model=ScenarioListResponse,
    summary="List available scenarios",
    description="""
    Get a list of all supply scenarios that can be generated.

    Each scenario simulates a water supply with a characteristic
    behaviour under load and lists the risks its analysis should raise.
    """
)
async def list_scenarios():
    """List all available scenarios."""
    return ScenarioListResponse(
        scenarios=[_scenario_info(s) for s in ScenarioLibrary.get_all_scenarios()]
    )


@router.get(
    "/{scenario_type}",
    response_model=ScenarioInfo,
    summary="Get scenario details",
    description="Get detailed information about a scenario, including its story."
)
async def get_scenario_details(scenario_type: ScenarioType):
    """Get details for a specific scenario."""
    return _scenario_info(_get_scenario_or_404(scenario_type), include_story=True)


# =========================================
# Data Generation Endpoints
# =========================================

@router.post(
    "/generate",
    response_model=ScenarioResponse,
    summary="Generate a scenario test",
    description="""
    Generate a synthetic mains test for a scenario and analyze it.

    **Options:**
    - `scenario_type`: Supply to simulate
    - `samples_per_step`: Readings per step from the main gauge
    - `random_seed`: Seed for reproducible output
    - `persist`: Store the test so it can be fetched from /mains-tests
    """
)
async def generate_scenario(
    request: ScenarioRequest,
    db: Session = Depends(get_db)
):
    """Generate, analyze and optionally store a scenario test."""
    scenario = _get_scenario_or_404(request.scenario_type)

    generator = MainsTestDataGenerator(
        samples_per_step=request.samples_per_step,
        random_seed=request.random_seed
    )
    generator.set_scenario(scenario)
    generated = generator.generate(property_id=request.property_id)
    results = generated.analyze()

    logger.info(
        f"Generated {len(generated.observations)} observations for scenario: {scenario.name}"
    )

    if request.persist:
        DatabaseManager(db).save_records(
            generated.test,
            generated.devices,
            generated.steps,
            generated.observations
        )
        DatabaseManager(db).save_analysis(results)

    return ScenarioResponse(
        success=True,
        scenario=_scenario_info(scenario, include_story=True),
        test_id=generated.test.id,
        persisted=request.persist,
        observations_generated=len(generated.observations),
        results=MainsTestResultsModel.from_results(results),
        message=(
            f"Generated {len(generated.steps)} steps and "
            f"{len(generated.observations)} observations"
            + (", stored" if request.persist else "")
        )
    )
