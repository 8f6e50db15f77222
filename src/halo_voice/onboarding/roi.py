"""Revenue projection shown at the end of onboarding."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from halo_voice.config.defaults import RoiConfig

FALLBACK_DEFAULTS = {"monthly_leads": 100, "average_deal": 500, "conversion_rate": 0.05}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class RoiInputs:
    monthly_leads: float
    average_deal: float
    current_conversion: float  # percent, e.g. 2.3

    def __post_init__(self) -> None:
        for name in ("monthly_leads", "average_deal", "current_conversion"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    @classmethod
    def for_industry(cls, industry: Optional[str], config: Optional[RoiConfig] = None) -> "RoiInputs":
        config = config or RoiConfig()
        defaults = config.industry_defaults.get(industry or "", FALLBACK_DEFAULTS)
        return cls(
            monthly_leads=defaults["monthly_leads"],
            average_deal=defaults["average_deal"],
            current_conversion=round(defaults["conversion_rate"] * 100, 4),
        )


@dataclass
class RoiProjection:
    current_monthly_revenue: int
    projected_monthly_revenue: int
    monthly_increase: int
    annual_increase: int
    net_roi: int
    payback_period: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentMonthlyRevenue": self.current_monthly_revenue,
            "projectedMonthlyRevenue": self.projected_monthly_revenue,
            "monthlyIncrease": self.monthly_increase,
            "annualIncrease": self.annual_increase,
            "netROI": self.net_roi,
            "paybackPeriod": self.payback_period,
        }


def project_roi(inputs: RoiInputs, config: Optional[RoiConfig] = None) -> RoiProjection:
    """Project revenue with the improved conversion rate.

    The payback period is ``None`` when the projection shows no increase.
    """
    config = config or RoiConfig()
    current = inputs.monthly_leads * (inputs.current_conversion / 100) * inputs.average_deal
    improved_rate = min(config.max_conversion_pct, inputs.current_conversion * config.improvement_factor)
    projected = inputs.monthly_leads * (improved_rate / 100) * inputs.average_deal
    monthly_increase = projected - current
    annual_increase = monthly_increase * 12
    annual_cost = config.monthly_cost * 12
    net_roi = (annual_increase - annual_cost) / annual_cost * 100

    payback: Optional[float] = None
    if monthly_increase > 0:
        payback = max(0.1, _round_half_up(annual_cost / monthly_increase * 10) / 10)

    return RoiProjection(
        current_monthly_revenue=_round_half_up(current),
        projected_monthly_revenue=_round_half_up(projected),
        monthly_increase=_round_half_up(monthly_increase),
        annual_increase=_round_half_up(annual_increase),
        net_roi=_round_half_up(net_roi),
        payback_period=payback,
    )
