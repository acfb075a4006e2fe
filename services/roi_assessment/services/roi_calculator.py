"""
ROI Calculator
==============

Projects annual savings from a WMS rollout under two scenarios.

Each benefit category applies an improvement rate to a cost base taken
from the prospect's figures:

    Category          Base                                   Conservative  Likely
    mfg_admin         mfg managers x cost                    11%           14%
    workforce         shop floor FTEs x cost                 11%           14%
    capacity          revenue x operating margin             12%           38%
    waste             annual waste cost                      13%           16%
    warehouse_admin   warehouse managers x cost              11%           14%
    labour            warehouse employees x cost             8.6%          12.6%
    logistics         annual logistics cost                  20%           40%

Implementation cost starts at 75,000 and scales linearly with headcount
above 100 and revenue above 50M.

Version: 0.1.0
"""

import math
from collections.abc import Callable
from dataclasses import dataclass

from shared.logging import get_logger
from shared.models.roi import RoiInputs, RoiResults, RoiScenario


logger = get_logger(__name__)


BASE_IMPLEMENTATION_COST = 75_000
EMPLOYEE_SCALE = 100
REVENUE_SCALE = 50_000_000
ROI_YEARS = 3


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up (2.5 -> 3.0, -2.5 -> -2.0) rather than to even."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


@dataclass(frozen=True)
class BenefitCategory:
    """One savings line of the projection."""

    name: str
    conservative_rate: float
    likely_rate: float
    base: Callable[[RoiInputs], float]


BENEFIT_CATEGORIES: tuple[BenefitCategory, ...] = (
    BenefitCategory("mfg_admin", 0.11, 0.14, lambda i: i.mfg_managers * i.mfg_manager_cost),
    BenefitCategory("workforce", 0.11, 0.14, lambda i: i.shop_floor_ftes * i.shop_floor_cost),
    BenefitCategory(
        "capacity", 0.12, 0.38, lambda i: i.annual_revenue * (i.operating_margin / 100)
    ),
    BenefitCategory("waste", 0.13, 0.16, lambda i: i.annual_waste_cost),
    BenefitCategory(
        "warehouse_admin",
        0.11,
        0.14,
        lambda i: i.warehouse_managers * i.warehouse_manager_cost,
    ),
    BenefitCategory(
        "labour",
        0.086,
        0.126,
        lambda i: i.warehouse_employees * i.warehouse_employee_cost,
    ),
    BenefitCategory("logistics", 0.20, 0.40, lambda i: i.annual_logistics_cost),
)


class RoiCalculator:
    """
    Computes conservative and likely ROI projections.

    Usage:
        results = RoiCalculator().calculate(inputs)
        results.conservative.payback_months
    """

    def __init__(
        self,
        categories: tuple[BenefitCategory, ...] = BENEFIT_CATEGORIES,
        base_cost: float = BASE_IMPLEMENTATION_COST,
    ) -> None:
        self.categories = categories
        self.base_cost = base_cost

    def implementation_cost(self, inputs: RoiInputs) -> float:
        """Estimated one-off cost of rolling out the WMS."""
        employee_factor = max(1.0, inputs.total_employees / EMPLOYEE_SCALE)
        revenue_factor = max(1.0, inputs.annual_revenue / REVENUE_SCALE)
        return round_half_up(self.base_cost * employee_factor * revenue_factor)

    def scenario(self, inputs: RoiInputs, likely: bool, cost: float) -> RoiScenario:
        """Project one scenario against a precomputed implementation cost."""
        raw = {
            c.name: c.base(inputs) * (c.likely_rate if likely else c.conservative_rate)
            for c in self.categories
        }
        annual_savings = round_half_up(sum(raw.values()))

        payback_months = (
            round_half_up(cost / annual_savings * 12, 1) if annual_savings > 0 else 0.0
        )
        three_year_roi = (
            round_half_up((ROI_YEARS * annual_savings - cost) / cost * 100, 1)
            if cost > 0
            else 0.0
        )

        return RoiScenario(
            benefits={name: round_half_up(value) for name, value in raw.items()},
            annual_savings=annual_savings,
            payback_months=payback_months,
            three_year_roi=three_year_roi,
        )

    def calculate(self, inputs: RoiInputs) -> RoiResults:
        """Run both scenarios."""
        cost = self.implementation_cost(inputs)
        results = RoiResults(
            total_employees=inputs.total_employees,
            implementation_cost=cost,
            conservative=self.scenario(inputs, likely=False, cost=cost),
            likely=self.scenario(inputs, likely=True, cost=cost),
        )

        logger.debug(
            "roi_calculated",
            implementation_cost=cost,
            conservative_savings=results.conservative.annual_savings,
            likely_savings=results.likely.annual_savings,
        )
        return results
