# Overview: Zone suggestion scoring for goods awaiting placement; pure functions over goods and zones.

"""
Zone suggestion scoring

Every candidate zone that can hold the full quantity scores:

    base eligibility (+50)
  + utilization pressure, measured before the placement:
        < 70% -> +30, < 85% -> +20, otherwise +10
  + type affinity, first matching rule only:
        cold-chain goods in a refrigerated zone  +20
        container units in a container zone      +15
        ton / cubic meter units in a bulk zone   +15
        any goods in a general zone               +5

Zones that cannot take the full quantity are dropped (no partial placement).
Ranking is by score descending; ties keep the candidates' input order.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

from ..models.yard import (
    UNIT_TYPE_CONTAINER,
    UNIT_TYPE_CUBIC_METER,
    UNIT_TYPE_TON,
    ZONE_TYPE_BULK,
    ZONE_TYPE_CONTAINER,
    ZONE_TYPE_GENERAL,
    ZONE_TYPE_REFRIGERATED,
    quantity_to_json,
)


BASE_ELIGIBILITY_SCORE = 50

# (upper bound exclusive, score); first band that fits wins
UTILIZATION_BANDS = (
    (Decimal(70), 30),
    (Decimal(85), 20),
)
UTILIZATION_FLOOR_SCORE = 10

COLD_CHAIN_KEYWORDS = ("refrigerat", "frozen", "cold")

DEFAULT_SUGGESTION_LIMIT = 3


def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value or 0))


def is_cold_chain(goods) -> bool:
    goods_type = (goods.goods_type or "").lower()
    return any(keyword in goods_type for keyword in COLD_CHAIN_KEYWORDS)


@dataclass(frozen=True)
class AffinityRule:
    name: str
    score: int
    matches: Callable[[Any, Any], bool]


AFFINITY_RULES = (
    AffinityRule(
        "cold_chain",
        20,
        lambda goods, zone: is_cold_chain(goods) and zone.zone_type == ZONE_TYPE_REFRIGERATED,
    ),
    AffinityRule(
        "container",
        15,
        lambda goods, zone: goods.unit_type == UNIT_TYPE_CONTAINER and zone.zone_type == ZONE_TYPE_CONTAINER,
    ),
    AffinityRule(
        "bulk",
        15,
        lambda goods, zone: goods.unit_type in (UNIT_TYPE_TON, UNIT_TYPE_CUBIC_METER) and zone.zone_type == ZONE_TYPE_BULK,
    ),
    AffinityRule(
        "general",
        5,
        lambda goods, zone: zone.zone_type == ZONE_TYPE_GENERAL,
    ),
)


def utilization_score(utilization_percent: Decimal) -> int:
    for upper_bound, score in UTILIZATION_BANDS:
        if utilization_percent < upper_bound:
            return score
    return UTILIZATION_FLOOR_SCORE


def match_affinity(goods, zone, rules: Iterable[AffinityRule] = AFFINITY_RULES) -> Optional[AffinityRule]:
    """First rule that matches, or None. Bonuses never stack."""
    for rule in rules:
        if rule.matches(goods, zone):
            return rule
    return None


@dataclass(frozen=True)
class ZoneSuggestion:
    zone: Any
    available_capacity: Decimal
    utilization_percent: Decimal
    score: int
    affinity: Optional[str] = None

    def to_dict(self) -> dict:
        data = self.zone.to_dict()
        data.update({
            "available_capacity": quantity_to_json(self.available_capacity),
            "utilization_percent": round(float(self.utilization_percent), 2),
            "score": self.score,
            "affinity": self.affinity,
        })
        return data


def score_zone(goods, zone) -> Optional[ZoneSuggestion]:
    """Score one zone for `goods`; None when the zone cannot hold the full quantity."""
    capacity = _as_decimal(zone.capacity)
    occupancy = _as_decimal(zone.current_occupancy)
    available = capacity - occupancy

    if available < _as_decimal(goods.quantity):
        return None

    utilization = occupancy / capacity * 100 if capacity else Decimal(0)

    score = BASE_ELIGIBILITY_SCORE
    score += utilization_score(utilization)

    rule = match_affinity(goods, zone)
    if rule is not None:
        score += rule.score

    return ZoneSuggestion(
        zone=zone,
        available_capacity=available,
        utilization_percent=utilization,
        score=score,
        affinity=rule.name if rule else None,
    )


def suggest_zones(goods, candidate_zones: Iterable[Any], limit: int = DEFAULT_SUGGESTION_LIMIT) -> list[ZoneSuggestion]:
    """
    Rank candidate zones for `goods`, best first, at most `limit` entries.

    Candidates are expected to be active zones already. No side effects.
    """
    scored = [s for s in (score_zone(goods, zone) for zone in candidate_zones) if s is not None]
    # sorted() is stable: equal scores keep enumeration order
    scored = sorted(scored, key=lambda s: s.score, reverse=True)
    return scored[:limit]
