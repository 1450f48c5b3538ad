import pytest

from water_chemistry.schemas import WaterReading
from water_chemistry.services.parameters import (
    parameter_advice,
    parameter_reports,
    parameter_status,
)


@pytest.mark.parametrize("parameter, value, status", [
    ("ph", 7.0, "good"),
    ("ph", 5.7, "warning"),
    ("ph", 8.2, "danger"),
    ("ammonia", 0.25, "good"),
    ("ammonia", 0.5, "warning"),
    ("ammonia", 2.0, "danger"),
    ("nitrite", 0, "good"),
    ("nitrite", 0.25, "danger"),
    ("nitrate", 20, "good"),
    ("nitrate", 60, "warning"),
    ("nitrate", 160, "danger"),
    ("nitrate", None, "unknown"),
])
def test_parameter_status(parameter, value, status):
    assert parameter_status(parameter, value) == status


def test_unknown_parameter():
    with pytest.raises(ValueError):
        parameter_status("phosphate", 1.0)


def test_healthy_water_advice():
    reports = parameter_reports(WaterReading(ph=7.0, ammonia=0, nitrite=0, nitrate=20))
    assert [r.status for r in reports] == ["good", "good", "good", "good"]
    assert parameter_advice(reports) == ["Your water parameters look good! Continue with regular maintenance."]


def test_problem_water_advice():
    reports = parameter_reports(WaterReading(ph=5.2, ammonia=2.0, nitrite=0.5, nitrate=100))
    advice = parameter_advice(reports)
    assert advice[0].startswith("pH is low")
    assert any(a.startswith("Ammonia detected") for a in advice)
    assert any(a.startswith("Nitrite detected") for a in advice)
    assert any(a.startswith("Nitrate levels are high") for a in advice)


def test_missing_values_do_not_trigger_advice():
    reports = parameter_reports(WaterReading(ph=8.6))
    assert reports[1].status == "unknown"
    assert parameter_advice(reports) == ["pH is high. Consider adding driftwood or peat moss to lower pH gradually."]
