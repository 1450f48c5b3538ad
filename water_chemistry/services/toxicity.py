# water_chemistry/services/toxicity.py
import math
from typing import Dict, List, Tuple

import numpy as np

from water_chemistry.errors import InsufficientDataError
from water_chemistry.schemas import ToxicityAssessment, WaterReading

# pKa of the NH4+/NH3 equilibrium at 5 degC steps
PKA_TABLE: Dict[int, float] = {
    0: 9.38,
    5: 9.33,
    10: 9.28,
    15: 9.23,
    20: 9.18,
    25: 9.13,
    30: 9.08,
    35: 9.03,
}

_PKA_T = np.array(sorted(PKA_TABLE), dtype=float)
_PKA_V = np.array([PKA_TABLE[t] for t in sorted(PKA_TABLE)], dtype=float)

# (lower bound mg/L NH3-N, level), checked top-down
LEVEL_THRESHOLDS: List[Tuple[float, str]] = [
    (0.05, "Critical"),
    (0.02, "High"),
    (0.01, "Moderate"),
    (0.005, "Low"),
]


def pka(temperature_c: float, mode: str = "nearest") -> float:
    """
    Nearest-neighbour lookup by default. Outside 0..35 degC the nearest
    endpoint is used (approximation, not physically exact out there).
    Ties (27.5 degC) go to the warmer entry, i.e. the lower pKa.
    mode="linear" interpolates between table entries instead.
    """
    if mode == "linear":
        return float(np.interp(temperature_c, _PKA_T, _PKA_V))
    if mode != "nearest":
        raise ValueError(f"Unknown pKa mode: {mode!r}")

    key = min(PKA_TABLE, key=lambda t: (abs(t - temperature_c), -t))
    return PKA_TABLE[key]


def unionized_fraction_percent(ph: float, temperature_c: float, mode: str = "nearest") -> float:
    return 100.0 / (1.0 + 10.0 ** (pka(temperature_c, mode) - ph))


def unionized_ammonia(ammonia: float, ph: float, temperature_c: float, mode: str = "nearest") -> float:
    return ammonia * unionized_fraction_percent(ph, temperature_c, mode) / 100.0


def classify(unionized_mg_per_l: float) -> str:
    for lower, level in LEVEL_THRESHOLDS:
        if unionized_mg_per_l >= lower:
            return level
    return "Safe"


def toxicity_inputs(reading: WaterReading) -> Tuple[float, float, float]:
    """
    Returns (ph, ammonia, temperature_c) or raises InsufficientDataError.
    """
    missing = []
    if reading.ph is None:
        missing.append("ph")
    if reading.ammonia is None or reading.ammonia < 0:
        missing.append("ammonia")
    temp_c = reading.temperature_c
    if temp_c is None or not math.isfinite(temp_c):
        missing.append("water_temperature")

    if missing:
        raise InsufficientDataError(missing)
    return float(reading.ph), float(reading.ammonia), float(temp_c)


def assess(reading: WaterReading, mode: str = "nearest") -> ToxicityAssessment:
    ph, ammonia, temp_c = toxicity_inputs(reading)

    fraction = unionized_fraction_percent(ph, temp_c, mode)
    nh3 = ammonia * fraction / 100.0

    return ToxicityAssessment(
        ph=ph,
        ammonia=ammonia,
        temperature_c=round(temp_c, 2),
        pka_used=round(pka(temp_c, mode), 4),
        unionized_fraction_percent=round(fraction, 2),
        unionized_ammonia_mg_per_l=round(nh3, 4),
        # classify on the unrounded value, rounding can cross a threshold
        toxicity_level=classify(nh3),
    )
