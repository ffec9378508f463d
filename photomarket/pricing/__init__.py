"""
Module 'pricing': moteur de prix par paliers (pur) et lecture des grilles en base.
"""

from .models import PricingTier, PricingSchedule
from .engine import (
    compute_total,
    select_tier,
    commission_for,
    net_for,
    schedule_from_row,
)

__all__ = [
    "PricingTier",
    "PricingSchedule",
    "compute_total",
    "select_tier",
    "commission_for",
    "net_for",
    "schedule_from_row",
]
