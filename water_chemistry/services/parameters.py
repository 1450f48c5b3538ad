from typing import Dict, List, Optional

from water_chemistry.schemas import ParameterReport, WaterReading

UNITS = {"ph": "", "ammonia": "ppm", "nitrite": "ppm", "nitrate": "ppm"}


def parameter_status(parameter: str, value: Optional[float]) -> str:
    if value is None:
        return "unknown"

    if parameter == "ph":
        if 6.0 <= value <= 7.5:
            return "good"
        if 5.5 <= value <= 8.0:
            return "warning"
        return "danger"

    if parameter == "ammonia":
        if value <= 0.25:
            return "good"
        if value <= 1.0:
            return "warning"
        return "danger"

    if parameter == "nitrite":
        # any detectable nitrite means the tank is not fully cycled
        return "good" if value == 0 else "danger"

    if parameter == "nitrate":
        if 10 <= value <= 40:
            return "good"
        if 5 <= value <= 80:
            return "warning"
        return "danger"

    raise ValueError(f"Unknown parameter: {parameter!r}")


def parameter_reports(reading: WaterReading) -> List[ParameterReport]:
    return [
        ParameterReport(
            parameter=p,
            value=getattr(reading, p),
            unit=UNITS[p],
            status=parameter_status(p, getattr(reading, p)),
        )
        for p in UNITS
    ]


def parameter_advice(reports: List[ParameterReport]) -> List[str]:
    by_name: Dict[str, ParameterReport] = {r.parameter: r for r in reports}
    advice: List[str] = []

    ph = by_name.get("ph")
    if ph and ph.status in ("warning", "danger"):
        if ph.value < 6.0:
            advice.append("pH is low. Consider adding crushed coral or limestone to raise pH gradually.")
        else:
            advice.append("pH is high. Consider adding driftwood or peat moss to lower pH gradually.")

    ammonia = by_name.get("ammonia")
    if ammonia and ammonia.status in ("warning", "danger"):
        advice.append("Ammonia detected! Perform immediate water change and check for overfeeding or dead fish.")

    nitrite = by_name.get("nitrite")
    if nitrite and nitrite.status in ("warning", "danger"):
        advice.append("Nitrite detected! Your tank may not be fully cycled. Perform water changes and add beneficial bacteria.")

    nitrate = by_name.get("nitrate")
    if nitrate and nitrate.status in ("warning", "danger"):
        if nitrate.value < 10:
            advice.append("Nitrate is low. Plants may be short of nitrogen; check stocking density and feeding.")
        else:
            advice.append("Nitrate levels are high. Perform water change and check your filtration system.")

    if not advice:
        advice.append("Your water parameters look good! Continue with regular maintenance.")

    return advice
