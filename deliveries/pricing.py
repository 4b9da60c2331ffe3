"""
Purpose: Tiered delivery pricing (single source of truth for the fee table).
What it does:

Stores the fee tiers as an ordered table of PricingRule(max_km, price):

    0 - 3 km    -> 1
    3 - 6 km    -> 2
    6 - 10 km   -> 4
    anything else (9999 km catch-all) -> 6

Evaluates the table against a straight-line distance: rules are scanned in the
order given, the first one whose max_km covers the distance wins, and the last
rule is the fallback.

Rule: No logic beyond table evaluation and editing - the planner decides when to price.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .models import PricingRule

logger = logging.getLogger(__name__)


def _ascending(rules: Sequence[PricingRule]) -> List[PricingRule]:
    # display order only; pricing scans the rules as given
    return sorted(rules, key=lambda rule: rule.max_km)


def price_for(distance_m: float, rules: Sequence[PricingRule]) -> float:
    """
    Price for a straight-line distance in metres.

    An empty table is a degenerate configuration, not an error: the price is 0.
    """
    if not rules:
        logger.warning("Pricing table is empty; delivery priced at 0")
        return 0.0

    distance_km = distance_m / 1000.0

    for rule in rules:
        if distance_km <= rule.max_km:
            return rule.price

    # catch-all: no tier matched, charge the last rule
    return rules[-1].price


@dataclass(frozen=True)
class PricingTable:
    """
    Central configuration for delivery fees.

    Keep the tiers here so the fee schedule can be edited (settings screen)
    without touching the store or planner. Editing returns a new table.
    """

    rules: Tuple[PricingRule, ...] = field(default_factory=tuple)

    def validate(self) -> None:
        """
        Basic sanity checks. An empty table passes: it prices everything at 0.
        """
        for rule in self.rules:
            if rule.max_km <= 0:
                raise ValueError("max_km must be > 0")
            if rule.price < 0:
                raise ValueError("price must be >= 0")

    def price_for(self, distance_m: float) -> float:
        return price_for(distance_m, self.rules)

    def sorted_rules(self) -> List[PricingRule]:
        return _ascending(self.rules)

    # --- Editing (each returns a validated copy) ---

    def with_rule(self, rule: PricingRule) -> PricingTable:
        table = PricingTable(rules=self.rules + (rule,))
        table.validate()
        return table

    def replace_rule(self, index: int, rule: PricingRule) -> PricingTable:
        rules = list(self.rules)
        rules[index] = rule
        table = PricingTable(rules=tuple(rules))
        table.validate()
        return table

    def without_rule(self, index: int) -> PricingTable:
        rules = list(self.rules)
        del rules[index]
        if not rules:
            logger.warning("Last pricing rule removed; deliveries will be priced at 0")
        return PricingTable(rules=tuple(rules))


def default_pricing() -> PricingTable:
    """
    Convenience factory for the default fee table.
    """
    table = PricingTable(rules=(
        PricingRule(max_km=3, price=1),
        PricingRule(max_km=6, price=2),
        PricingRule(max_km=10, price=4),
        PricingRule(max_km=9999, price=6),  # fallback
    ))
    table.validate()
    return table
