import math
from datetime import date
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ToxicityLevel = Literal["Safe", "Low", "Moderate", "High", "Critical"]
TemperatureUnit = Literal["C", "F"]
ParameterStatus = Literal["good", "warning", "danger", "unknown"]


def _lenient_number(v: Any) -> Optional[float]:
    # upstream colour extraction may hand us blanks or junk; treat as absent
    if v is None or isinstance(v, bool):
        return None
    try:
        x = float(v)
    except (TypeError, ValueError):
        return None
    return x if math.isfinite(x) else None


class WaterReading(BaseModel):
    ph: Optional[float] = None
    ammonia: Optional[float] = Field(None, description="Total ammonia (NH3 + NH4+), ppm")
    water_temperature: Optional[float] = None
    temperature_unit: TemperatureUnit = "C"
    nitrite: Optional[float] = None
    nitrate: Optional[float] = None
    dissolved_oxygen: Optional[float] = None
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    record_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator(
        "ph", "ammonia", "water_temperature", "nitrite", "nitrate", "dissolved_oxygen",
        mode="before",
    )
    @classmethod
    def _coerce_numbers(cls, v):
        return _lenient_number(v)

    @property
    def temperature_c(self) -> Optional[float]:
        if self.water_temperature is None:
            return None
        if self.temperature_unit == "F":
            return (self.water_temperature - 32.0) * 5.0 / 9.0
        return self.water_temperature


class ToxicityAssessment(BaseModel):
    ph: float
    ammonia: float
    temperature_c: float
    pka_used: float
    unionized_fraction_percent: float
    unionized_ammonia_mg_per_l: float
    toxicity_level: ToxicityLevel


class AdjustmentPlan(BaseModel):
    target_level: ToxicityLevel
    target_bound_mg_per_l: Optional[float] = None  # None for Critical (unbounded)
    current_level: ToxicityLevel
    required_ph: Optional[float] = None
    required_temperature_c: Optional[float] = None
    ph_feasible: bool = False
    temperature_feasible: bool = False
    no_change_needed: bool = False


class InsufficientDataResponse(BaseModel):
    status: Literal["insufficient_data"] = "insufficient_data"
    missing: List[str]


class SolveRequest(BaseModel):
    reading: WaterReading
    target_level: ToxicityLevel = "Safe"


class ParameterReport(BaseModel):
    parameter: str
    value: Optional[float] = None
    unit: str
    status: ParameterStatus


class AnalyzeRequest(BaseModel):
    reading: WaterReading
    target_level: ToxicityLevel = "Safe"


class AnalyzeResponse(BaseModel):
    status: Literal["ok", "insufficient_data"]
    missing: List[str] = []
    assessment: Optional[ToxicityAssessment] = None
    plan: Optional[AdjustmentPlan] = None
    recommendations: List[str] = []
    parameters: List[ParameterReport]
    parameter_advice: List[str]


class RecordIn(BaseModel):
    """
    Save/update payload. Only fields the caller actually sent are written
    (see `model_dump(exclude_unset=True)` in the record service).
    Temperatures are stored in Celsius; "F" readings are converted.
    """
    record_date: Optional[str] = None
    ph: Optional[float] = None
    ammonia: Optional[float] = None
    nitrite: Optional[float] = None
    nitrate: Optional[float] = None
    dissolved_oxygen: Optional[float] = None
    water_temperature: Optional[float] = None
    temperature_unit: TemperatureUnit = "C"
    confidence: Optional[float] = None
    notes: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ChemistryRecord(BaseModel):
    id: int
    owner_id: str
    record_date: str
    ph: Optional[float] = None
    ammonia: Optional[float] = None
    nitrite: Optional[float] = None
    nitrate: Optional[float] = None
    dissolved_oxygen: Optional[float] = None
    water_temperature: Optional[float] = None
    confidence: Optional[float] = None
    notes: Optional[str] = None
    created_at: str
    updated_at: str


class SaveResponse(BaseModel):
    success: bool = True
    message: str
    was_insert: bool
    data: ChemistryRecord


class RecordListResponse(BaseModel):
    success: bool = True
    records: List[ChemistryRecord]
