"""
Adjustment Resolver - Chooses and applies price adjustment rules.

Resolution order:
1. Pick the most specific global rule whose range contains the base price
2. Apply it (exact replacement or percentage)
3. Pick the most specific user rule whose range contains the running price
4. Apply it, never letting a user exact amount lower the price
5. Round to the nearest whole unit
"""
import logging
import math
from datetime import datetime, timezone
from typing import Iterable, Optional

from .models import AdjustmentRule, Resolution, RuleSet

logger = logging.getLogger(__name__)

_NO_TIMESTAMP = datetime.max.replace(tzinfo=timezone.utc)


def round_price(price: float) -> int:
    """Round to the nearest integer, halves going up."""
    return int(math.floor(price + 0.5))


def _specificity_key(indexed: tuple[int, AdjustmentRule]):
    index, rule = indexed
    return (
        rule.width,
        -rule.bounded_sides,
        rule.created_at or _NO_TIMESTAMP,
        index,
    )


def select_rule(price: float, rules: Iterable[AdjustmentRule]) -> Optional[AdjustmentRule]:
    """
    Return the candidate rule for ``price`` with the narrowest range.

    Equal widths fall back to the rule with more bounds set, then the earliest
    ``created_at`` (undated rules last), then the order the rules were given in.
    """
    candidates = [(i, r) for i, r in enumerate(rules) if r.is_candidate(price)]
    if not candidates:
        return None
    return min(candidates, key=_specificity_key)[1]


def resolve_detailed(base_price: float, rules) -> Resolution:
    """
    Resolve ``base_price`` against a rule set and report what was applied.

    ``rules`` may be a RuleSet or a {'global': ..., 'user': ...} mapping whose
    sides are lists, single rules or bare percentages.
    """
    rule_set = RuleSet.coerce(rules)
    resolution = Resolution(base_price=base_price, price=0)

    price = float(base_price)

    global_rule = select_rule(price, rule_set.global_rules)
    if global_rule is not None:
        adjusted = global_rule.apply(price)
        logger.debug("Global %s applied: $%s -> $%s", _describe(global_rule), price, adjusted)
        price = adjusted
        resolution.global_rule = global_rule

    user_rule = select_rule(price, rule_set.user_rules)
    if user_rule is not None:
        resolution.user_rule = user_rule
        if user_rule.is_exact and user_rule.exact_amount < price:
            resolution.user_rule_blocked = True
            logger.debug(
                "User exact amount $%s below running price $%s, keeping $%s",
                user_rule.exact_amount, price, price
            )
        else:
            adjusted = user_rule.apply(price)
            logger.debug("User %s applied: $%s -> $%s", _describe(user_rule), price, adjusted)
            price = adjusted

    resolution.price = round_price(price)
    return resolution


def resolve(base_price: float, rules) -> int:
    """Resolve ``base_price`` to the final displayed price."""
    return resolve_detailed(base_price, rules).price


def _describe(rule: AdjustmentRule) -> str:
    if rule.is_exact:
        return f"exact amount ${rule.exact_amount}"
    return f"adjustment {rule.percentage}% (range ${rule.min_price}-${rule.max_price})"
