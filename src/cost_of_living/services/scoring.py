"""Aggregation math for a city analysis.

Purchasing-power adjustment, the remote-work score and the qualitative
labels attached to an analysis.  Everything here is a pure function of
its arguments.

Functions
---------
ppp_factor
    Country lookup in the PPP table (1.0 when absent).
ppp_adjusted_costs
    Multiply every positive USD amount by the country's PPP factor.
cost_of_living_subscore / internet_subscore
    The two components of the remote-work score; ``None`` when the data
    behind a component is missing.
remote_work_score
    Weighted blend of the present sub-scores, renormalised by the weight
    actually present.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import numpy as np

from cost_of_living.domain.values import CostCategoryResult, PPPAnalysis

COST_OF_LIVING_CATEGORIES: tuple[str, ...] = ("rent_1br", "groceries", "utilities")
INTERNET_CATEGORY = "internet"

COST_BASELINE_USD = 500.0
COST_SPAN_USD = 2500.0
MIN_SPEED_MBPS = 10.0
MAX_SPEED_MBPS = 100.0
MIN_INTERNET_SCORE = 5.0

DEFAULT_WEIGHTS: Mapping[str, float] = {"cost_of_living": 0.70, "internet_quality": 0.30}


# ===================================================================== #
#  Confidence                                                            #
# ===================================================================== #


def scale_confidence(confidence: float, modifier: float) -> int:
    """Apply a strategy's confidence modifier, clamp to [0, 100] and round."""
    return int(round(float(np.clip(confidence * modifier, 0.0, 100.0))))


def average_confidence(results: Sequence[CostCategoryResult]) -> float:
    if not results:
        return 0.0
    return float(np.mean([r.confidence for r in results]))


def data_availability_label(confidence: float) -> str:
    if confidence > 70:
        return "good"
    if confidence > 50:
        return "limited"
    return "poor"


def source_reliability_label(confidence: float) -> str:
    if confidence > 70:
        return "high"
    if confidence > 50:
        return "medium"
    return "low"


# ===================================================================== #
#  Purchasing power                                                      #
# ===================================================================== #


def ppp_factor(country: str, table: Mapping[str, float]) -> float:
    return float(table.get(country, 1.0))


def ppp_adjusted_costs(
    costs: Mapping[str, float],
    country: str,
    table: Mapping[str, float],
) -> PPPAnalysis:
    """Adjust USD *costs* by the PPP factor of *country*.

    Non-positive or non-finite amounts adjust to 0.
    """
    factor = ppp_factor(country, table)
    adjusted = {
        key: value * factor if value > 0 and np.isfinite(value) else 0.0
        for key, value in costs.items()
    }
    if factor < 1:
        explanation = "Lower costs due to higher purchasing power"
    elif factor > 1:
        explanation = "Higher costs due to lower purchasing power"
    else:
        explanation = "USD baseline"
    return PPPAnalysis(original=dict(costs), adjusted=adjusted, factor=factor, explanation=explanation)


# ===================================================================== #
#  Remote-work score                                                     #
# ===================================================================== #


def cost_of_living_subscore(results: Sequence[CostCategoryResult]) -> float | None:
    """Linear 0-100 score of rent + groceries + utilities in USD.

    $500 or less scores 100; $3000 or more scores 0.
    """
    amounts = [
        r.usd_amount
        for r in results
        if r.category in COST_OF_LIVING_CATEGORIES and r.has_usd_amount
    ]
    if not amounts:
        return None
    total = float(np.sum(amounts))
    return float(np.clip(100.0 - (total - COST_BASELINE_USD) / COST_SPAN_USD * 100.0, 0.0, 100.0))


def internet_subscore(results: Sequence[CostCategoryResult]) -> float | None:
    """Logarithmic score of download speed, floored at 5.

    A missing, non-positive or non-finite speed counts as no measurement.
    """
    for r in results:
        if r.category == INTERNET_CATEGORY and r.speed_mbps is not None:
            if not np.isfinite(r.speed_mbps) or r.speed_mbps <= 0:
                return None
            ratio = (np.log(r.speed_mbps + MIN_SPEED_MBPS) - np.log(MIN_SPEED_MBPS)) / (
                np.log(MAX_SPEED_MBPS + MIN_SPEED_MBPS) - np.log(MIN_SPEED_MBPS)
            )
            return float(np.clip(100.0 * ratio, MIN_INTERNET_SCORE, 100.0))
    return None


def remote_work_score(
    results: Sequence[CostCategoryResult],
    weights: Mapping[str, float] = DEFAULT_WEIGHTS,
) -> int:
    """Blend the present sub-scores; 0 when neither can be computed."""
    components = {
        "cost_of_living": cost_of_living_subscore(results),
        "internet_quality": internet_subscore(results),
    }
    total = 0.0
    present_weight = 0.0
    for name, score in components.items():
        weight = weights.get(name, 0.0)
        if score is None or weight <= 0:
            continue
        total += score * weight
        present_weight += weight
    if present_weight == 0:
        return 0
    return int(round(total / present_weight))
