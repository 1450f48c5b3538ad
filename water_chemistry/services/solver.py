# water_chemistry/services/solver.py
import math
from typing import Optional

from water_chemistry.schemas import AdjustmentPlan, WaterReading
from water_chemistry.services.toxicity import (
    classify,
    pka,
    toxicity_inputs,
    unionized_ammonia,
)

# upper bound of each band, mg/L NH3-N
BAND_UPPER_BOUND = {
    "Safe": 0.005,
    "Low": 0.01,
    "Moderate": 0.02,
    "High": 0.05,
    "Critical": math.inf,
}

# below this aquaponics systems are unsafe for plants/fish anyway
PH_FLOOR = 6.0

TEMP_STEP_C = 0.5
TEMP_FLOOR_C = 0.0


def band_upper_bound(level: str) -> float:
    try:
        return BAND_UPPER_BOUND[level]
    except KeyError:
        raise ValueError(f"Unknown toxicity level: {level!r}")


def required_ph(ammonia: float, temperature_c: float, bound: float, mode: str = "nearest") -> Optional[float]:
    """
    Analytic inverse of the fraction formula at fixed temperature.
    Floored to 2 decimals so re-assessing at the returned pH stays under
    the bound. None if no pH reaches it (ammonia already below bound).
    """
    ratio = ammonia * 100.0 / bound - 1.0
    if ratio <= 0:
        return None
    ph = pka(temperature_c, mode) - math.log10(ratio)
    return math.floor(ph * 100.0) / 100.0


def _temperature_candidates(temperature_c: float):
    steps = int(math.floor((temperature_c - TEMP_FLOOR_C) / TEMP_STEP_C + 1e-9))
    candidate = temperature_c
    for i in range(1, steps + 1):
        candidate = temperature_c - i * TEMP_STEP_C
        yield candidate
    # off-grid start (e.g. 0.3 degC): still try the floor itself
    if temperature_c > TEMP_FLOOR_C and candidate - TEMP_FLOOR_C > 1e-9:
        yield TEMP_FLOOR_C


def required_temperature(ph: float, ammonia: float, temperature_c: float, bound: float,
                         mode: str = "nearest") -> Optional[float]:
    """
    pKa is a step function of temperature, so search downwards from the
    current temperature in TEMP_STEP_C steps to TEMP_FLOOR_C.
    """
    for candidate in _temperature_candidates(temperature_c):
        if unionized_ammonia(ammonia, ph, candidate, mode) <= bound:
            # floor, not round: cooler never raises the fraction
            return math.floor(candidate * 10.0 + 1e-9) / 10.0
    return None


def solve(reading: WaterReading, target_level: str = "Safe", mode: str = "nearest") -> AdjustmentPlan:
    ph, ammonia, temp_c = toxicity_inputs(reading)
    bound = band_upper_bound(target_level)

    current = unionized_ammonia(ammonia, ph, temp_c, mode)
    plan = AdjustmentPlan(
        target_level=target_level,
        target_bound_mg_per_l=None if math.isinf(bound) else bound,
        current_level=classify(current),
    )

    if current <= bound:
        plan.no_change_needed = True
        return plan

    # pH route
    new_ph = required_ph(ammonia, temp_c, bound, mode)
    if new_ph is not None and new_ph >= PH_FLOOR:
        plan.required_ph = new_ph
        plan.ph_feasible = True

    # temperature route, solved independently
    new_temp = required_temperature(ph, ammonia, temp_c, bound, mode)
    if new_temp is not None:
        plan.required_temperature_c = new_temp
        plan.temperature_feasible = True

    return plan
