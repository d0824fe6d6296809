"""
Sibling-Price Propagation - Adjust derived prices the way their main price moved.

A niche surcharge of $75 on a $1,000 placement sits outside any range an
admin configured for placements, yet it must move with the placement price.
So the rules are chosen against the main price, and the same relative change
is applied to the sibling.
"""
import logging
from typing import Optional, Union

from .adapters import first_price
from .models import RuleSet
from .price_text import rewrite_prices
from .resolver import round_price, select_rule

logger = logging.getLogger(__name__)

Number = Union[int, float]


def _propagated_value(sibling_price: float, main_price: float, rule_set: RuleSet) -> Optional[float]:
    """Unrounded propagated value, or None when no rule takes effect."""
    global_rule = select_rule(main_price, rule_set.global_rules)
    main_after_global = global_rule.apply(main_price) if global_rule else main_price
    user_rule = select_rule(main_after_global, rule_set.user_rules)

    if global_rule is None and user_rule is None:
        return None

    price = sibling_price
    changed = False

    if global_rule is not None:
        if global_rule.is_exact:
            if main_price > 0:
                price *= global_rule.exact_amount / main_price
                changed = True
            else:
                logger.warning("Cannot scale sibling price from non-positive main price $%s", main_price)
        else:
            price *= 1 + global_rule.percentage / 100
            changed = True

    if user_rule is not None:
        if user_rule.is_exact:
            if user_rule.exact_amount < main_after_global:
                logger.debug(
                    "User exact amount $%s below $%s, sibling keeps global adjustment only",
                    user_rule.exact_amount, main_after_global
                )
            elif main_after_global > 0:
                price *= user_rule.exact_amount / main_after_global
                changed = True
            else:
                logger.warning("Cannot scale sibling price from non-positive main price $%s", main_after_global)
        else:
            price *= 1 + user_rule.percentage / 100
            changed = True

    return price if changed else None


def propagate(sibling_price: Number, main_price: Number, rules) -> Number:
    """
    Apply to ``sibling_price`` the adjustment that ``main_price`` would get.

    Exact rules scale the sibling by the ratio the main price was scaled by;
    percentage rules apply the same percentage. Returns the sibling unchanged
    when no rule applies to the main price.
    """
    value = _propagated_value(float(sibling_price), float(main_price), RuleSet.coerce(rules))
    if value is None:
        return sibling_price
    return round_price(value)


def adjust_niches_from_main_price(niches: Optional[str], main_price, rules) -> Optional[str]:
    """
    Adjust every price in a niche string such as ``"Health: $75, CBD: $75"``
    by the adjustment that applies to the record's main price.
    """
    if not niches or not isinstance(niches, str):
        return niches

    main = first_price(main_price)
    if main is None:
        return niches

    rule_set = RuleSet.coerce(rules)

    def transform(value: float) -> Optional[float]:
        propagated = _propagated_value(value, main, rule_set)
        return None if propagated is None else round_price(propagated)

    return rewrite_prices(niches, transform)
