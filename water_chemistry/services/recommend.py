from typing import List

from water_chemistry.schemas import AdjustmentPlan, ToxicityAssessment
from water_chemistry.services.solver import PH_FLOOR


def recommend(assessment: ToxicityAssessment, plan: AdjustmentPlan) -> List[str]:
    """
    Advisory text for an assessment and its adjustment plan.
    Only quotes numbers the model computed; infeasible routes are stated,
    never dropped.
    """
    target = plan.target_level

    if plan.no_change_needed:
        return [
            f"Un-ionized ammonia is already within the {target} band; no pH or temperature change is needed."
        ]

    recs = [
        f"Un-ionized ammonia is {assessment.unionized_ammonia_mg_per_l:.4f} mg/L "
        f"({assessment.unionized_fraction_percent:.2f}% of total ammonia): {assessment.toxicity_level}.",
    ]

    bound = plan.target_bound_mg_per_l
    if plan.ph_feasible:
        recs.append(
            f"Lower pH from {assessment.ph:.2f} to {plan.required_ph:.2f} or below "
            f"(at {assessment.temperature_c:.1f} °C) to bring un-ionized ammonia to {bound} mg/L or less ({target})."
        )
    else:
        recs.append(
            f"pH adjustment alone cannot reach {target} without going below pH {PH_FLOOR:.1f}, "
            "which is unsafe for plants and fish."
        )

    if plan.temperature_feasible:
        recs.append(
            f"Cooling the water from {assessment.temperature_c:.1f} °C to {plan.required_temperature_c:.1f} °C "
            f"(at pH {assessment.ph:.2f}) would bring un-ionized ammonia to {bound} mg/L or less ({target})."
        )
    else:
        recs.append(
            f"Temperature adjustment alone cannot reach {target} at the current pH, even at 0 °C."
        )

    if not plan.ph_feasible and not plan.temperature_feasible:
        recs.append(
            "Neither single adjustment is enough: reduce total ammonia directly "
            "(partial water change, reduce feeding, check for dead fish)."
        )

    return recs
