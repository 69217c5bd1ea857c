"""
Pydantic Models for API Request/Response Validation

This module defines all the data models used by the API for:
- Request body validation
- Response serialization
- Documentation generation (OpenAPI/Swagger)

Readings are not range-checked here: an implausible pressure is stored
and reported as a validation warning by the analysis engine. Only
structurally unusable input (no reading at all, NaN, infinity) is
rejected at the boundary.

All models use Pydantic v2 syntax for validation and serialization.
"""

from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
from enum import Enum
from pydantic import BaseModel, Field, model_validator


# =========================================
# Enums
# =========================================

class SensorTypeName(str, Enum):
    """How a device captures readings."""
    MANUAL = "manual"
    BLUETOOTH = "bluetooth"
    WIFI = "wifi"
    WIRED = "wired"
    OTHER = "other"


class ObservationMethodName(str, Enum):
    """How an observation was entered."""
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class QualityFlagName(str, Enum):
    """Data-quality flags an engineer can attach to an observation."""
    ESTIMATED = "estimated"
    UNSTABLE = "unstable"
    SENSOR_SWAPPED = "sensor_swapped"
    AIR_IN_LINE = "air_in_line"
    PRESSURE_SURGE = "pressure_surge"
    FLOW_RESTRICTED = "flow_restricted"
    TEMPERATURE_ANOMALY = "temperature_anomaly"


class ScenarioType(str, Enum):
    """Available supply scenarios."""
    HEALTHY = "healthy"
    WEAK_MAINS = "weak_mains"
    PRESSURE_COLLAPSE = "pressure_collapse"
    MARGINAL_COMBI = "marginal_combi"
    COLD_FEED_CONTAMINATION = "cold_feed_contamination"
    SENSOR_FAULT = "sensor_fault"


# =========================================
# Test Setup Models
# =========================================

class DeviceInput(BaseModel):
    """A measuring device to register with a new test."""
    label: str = Field(..., description="Short device label (A, B, C...)", min_length=1, max_length=20)
    location: Optional[str] = Field(default=None, description="Where the device is fitted")
    sensor_type: SensorTypeName = Field(default=SensorTypeName.MANUAL, description="Capture method")
    calibration_profile_id: Optional[str] = Field(default=None, description="Calibration profile")
    notes: Optional[str] = None


class MainsTestCreate(BaseModel):
    """Request to create a mains performance test."""
    property_id: Optional[int] = Field(default=None, description="Property being surveyed")
    survey_id: Optional[int] = Field(default=None, description="Survey the test belongs to")
    source_point: str = Field(
        default="outside_tap",
        description="Where the supply is measured",
        min_length=1,
        max_length=50
    )
    ambient_temp_c: Optional[float] = Field(
        default=None,
        description="Ambient air temperature (°C)",
        ge=-40, le=60
    )
    notes: Optional[str] = None
    created_by: Optional[int] = Field(default=None, description="User who created the test")
    devices: List[DeviceInput] = Field(
        ...,
        description="Devices used in the test",
        min_length=1
    )

    class Config:
        json_schema_extra = {
            "example": {
                "property_id": 42,
                "source_point": "outside_tap",
                "ambient_temp_c": 14.0,
                "devices": [
                    {"label": "A", "location": "Outside tap", "sensor_type": "manual"},
                    {"label": "B", "location": "Kitchen cold tap", "sensor_type": "bluetooth"}
                ]
            }
        }


class StepInput(BaseModel):
    """One step of the test plan."""
    index: int = Field(..., description="Position in the plan (0 = all closed)", ge=0)
    label: str = Field(..., description="Step description", min_length=1)
    outlet_count: int = Field(default=0, description="Number of open outlets", ge=0)
    valve_state: Optional[str] = None
    duration_seconds: Optional[int] = Field(default=None, ge=0)
    target_flow_lpm: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    notes: Optional[str] = None


class StepsCreate(BaseModel):
    """
    Request to add steps to a test.

    Either explicit steps or a template id must be given, not both.
    """
    steps: Optional[List[StepInput]] = Field(default=None, min_length=1)
    template_id: Optional[str] = Field(default=None, description="Standard step plan to use")

    @model_validator(mode="after")
    def check_steps_or_template(self):
        if (self.steps is None) == (self.template_id is None):
            raise ValueError("Provide either 'steps' or 'template_id'")
        return self

    class Config:
        json_schema_extra = {
            "example": {"template_id": "outlets-0-1-2-3"}
        }


class ObservationCreate(BaseModel):
    """Request to record one observation."""
    step_id: str = Field(..., description="Step the reading was taken in")
    device_id: str = Field(..., description="Device that took the reading")
    pressure_bar: Optional[float] = Field(default=None, description="Pressure (bar)", allow_inf_nan=False)
    flow_lpm: Optional[float] = Field(default=None, description="Flow (L/min)", allow_inf_nan=False)
    water_temp_c: Optional[float] = Field(default=None, description="Water temperature (°C)", allow_inf_nan=False)
    quality_flags: List[QualityFlagName] = Field(default_factory=list)
    method: ObservationMethodName = Field(default=ObservationMethodName.MANUAL)
    timestamp: Optional[datetime] = Field(default=None, description="Defaults to server time")
    entered_by: Optional[int] = None

    @model_validator(mode="after")
    def check_has_reading(self):
        if self.pressure_bar is None and self.flow_lpm is None and self.water_temp_c is None:
            raise ValueError("At least one of pressure_bar, flow_lpm or water_temp_c is required")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "step_id": "3f0c...",
                "device_id": "a91e...",
                "pressure_bar": 3.2,
                "flow_lpm": 15.0,
                "water_temp_c": 12.5,
                "quality_flags": []
            }
        }


# =========================================
# Stored Record Models
# =========================================

class DeviceResponse(BaseModel):
    id: str
    test_id: str
    label: str
    location: Optional[str] = None
    sensor_type: str
    calibration_profile_id: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class StepResponse(BaseModel):
    id: str
    test_id: str
    index: int
    label: str
    outlet_count: int
    valve_state: Optional[str] = None
    duration_seconds: Optional[int] = None
    target_flow_lpm: Optional[float] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class ObservationResponse(BaseModel):
    id: str
    test_id: str
    step_id: str
    device_id: str
    timestamp: datetime
    pressure_bar: Optional[float] = None
    flow_lpm: Optional[float] = None
    water_temp_c: Optional[float] = None
    quality_flags: List[str] = Field(default_factory=list)
    method: str
    entered_by: Optional[int] = None

    class Config:
        from_attributes = True


class MainsTestResponse(BaseModel):
    id: str
    property_id: Optional[int] = None
    survey_id: Optional[int] = None
    source_point: str
    ambient_temp_c: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime
    created_by: Optional[int] = None

    class Config:
        from_attributes = True


class MainsTestCreateResponse(BaseModel):
    """Response from test creation."""
    test: MainsTestResponse
    devices: List[DeviceResponse]


class MainsTestDetailResponse(BaseModel):
    """A test with everything recorded for it."""
    test: MainsTestResponse
    devices: List[DeviceResponse]
    steps: List[StepResponse]
    observations: List[ObservationResponse]


class MainsTestListResponse(BaseModel):
    """Response listing the tests of a property."""
    count: int
    tests: List[MainsTestResponse]


class StepsResponse(BaseModel):
    """Response from adding steps."""
    steps: List[StepResponse]


# =========================================
# Analysis Result Models
# =========================================

class WarningModel(BaseModel):
    """A validation finding."""
    code: str
    severity: str = Field(..., description="error, warning, or info")
    category: str = Field(..., description="plausibility, completeness, or data_quality")
    message: str
    suggested_fix: Optional[str] = None
    affected_fields: List[str] = Field(default_factory=list)
    context: Dict[str, Any] = Field(default_factory=dict)


class RiskFlagModel(BaseModel):
    """An engineering risk."""
    code: str
    severity: str = Field(..., description="critical, high, or medium")
    title: str
    description: str
    customer_statement: str
    recommendation: str
    context: Dict[str, Any] = Field(default_factory=dict)


class DynamicPressurePointModel(BaseModel):
    step_index: int
    step_label: str
    outlet_count: int
    pressure_bar: float = Field(..., description="Median pressure of the step (bar)")
    min_pressure: float
    max_pressure: float
    sample_count: int


class SupplyCurvePointModel(BaseModel):
    flow_lpm: float
    pressure_bar: float
    temp_c: Optional[float] = None
    step_index: int
    step_label: str


class ConfidenceModel(BaseModel):
    overall: str = Field(..., description="high, medium, or low")
    pressure: str
    flow: str
    temperature: str
    factors: List[str] = Field(default_factory=list)


class MainsTestResultsModel(BaseModel):
    """Complete analysis of a test."""
    test_id: str
    static_pressure_bar: Optional[float] = None
    dynamic_pressure_at_steps: List[DynamicPressurePointModel]
    max_flow_observed_lpm: Optional[float] = None
    pressure_drop_per_outlet: Optional[float] = None
    supply_curve_points: List[SupplyCurvePointModel]
    warnings: List[WarningModel]
    risk_flags: List[RiskFlagModel]
    computed_at: datetime
    confidence: ConfidenceModel

    @classmethod
    def from_results(cls, results) -> "MainsTestResultsModel":
        """Build from the analysis engine's MainsTestResults."""
        return cls(**results.to_dict())


class MainsTestResultsResponse(MainsTestDetailResponse):
    """A test, its records and the computed analysis."""
    results: MainsTestResultsModel
    analysis_version: str


# =========================================
# Template Models
# =========================================

class TemplateStepInfo(BaseModel):
    index: int
    label: str
    outlet_count: int
    target_flow_lpm: Optional[float] = None


class TemplateInfo(BaseModel):
    """A standard step plan."""
    id: str
    name: str
    description: str
    steps: List[TemplateStepInfo]


class TemplateListResponse(BaseModel):
    templates: List[TemplateInfo]


# =========================================
# Scenario Generation Models
# =========================================

class ScenarioRequest(BaseModel):
    """Request to generate a synthetic mains test."""
    scenario_type: ScenarioType = Field(
        ...,
        description="Type of supply scenario"
    )
    property_id: Optional[int] = Field(
        default=None,
        description="Property to attach the generated test to"
    )
    samples_per_step: int = Field(
        default=3,
        description="Readings taken by the main gauge per step",
        ge=1, le=20
    )
    random_seed: Optional[int] = Field(
        default=None,
        description="Seed for reproducible generation"
    )
    persist: bool = Field(
        default=False,
        description="Whether to store the generated test in the database"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "scenario_type": "pressure_collapse",
                "samples_per_step": 3,
                "random_seed": 42,
                "persist": False
            }
        }


class ScenarioInfo(BaseModel):
    """Information about a scenario."""
    name: str
    type: str
    description: str
    template_id: str
    static_pressure_bar: float
    max_flow_lpm: float
    expected_risks: List[str]
    affected_fields: List[str]
    story: Optional[str] = None


class ScenarioResponse(BaseModel):
    """Response from scenario generation."""
    success: bool
    scenario: ScenarioInfo
    test_id: str
    persisted: bool
    observations_generated: int
    results: MainsTestResultsModel
    message: str


class ScenarioListResponse(BaseModel):
    """Response listing available scenarios."""
    scenarios: List[ScenarioInfo]


# =========================================
# System Status Models
# =========================================

class SystemHealth(BaseModel):
    """System health check response."""
    status: str = Field(..., description="ok, degraded, or error")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(..., description="Current server time")
    database: str = Field(..., description="Database connection status")
    components: Dict[str, str] = Field(
        default_factory=dict,
        description="Status of system components"
    )


class DeleteResponse(BaseModel):
    success: bool
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: bool = True
    message: str
    detail: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
