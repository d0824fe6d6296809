"""
Adjustment hints for presentation layers ("this price was adjusted").
"""
from typing import Optional, Union

from .models import AdjustmentRule, RuleScope, RuleSet
from .price_text import parse_dollars
from .resolver import resolve_detailed


def _amount(value: float) -> str:
    return str(int(value)) if value == int(value) else f"{value:.2f}"


def describe_rule(rule: AdjustmentRule) -> str:
    """One-line summary, e.g. ``"Global: +10% ($0-$1000)"``."""
    label = "Global" if rule.scope == RuleScope.GLOBAL else "User"
    if rule.is_exact:
        text = f"{label}: ${_amount(rule.exact_amount)} exact"
    else:
        sign = '+' if rule.percentage > 0 else ''
        text = f"{label}: {sign}{_amount(rule.percentage)}%"
    if rule.min_price is not None or rule.max_price is not None:
        low = _amount(rule.min_price) if rule.min_price is not None else '0'
        high = _amount(rule.max_price) if rule.max_price is not None else '∞'
        text += f" (${low}-${high})"
    return text


def describe_adjustments(rules) -> str:
    """Comma-separated summary of every active rule, global first."""
    rule_set = RuleSet.coerce(rules)
    return ', '.join(
        describe_rule(rule)
        for rule in rule_set.global_rules + rule_set.user_rules
        if rule.is_active
    )


def has_active_adjustments(rules) -> bool:
    return not RuleSet.coerce(rules).is_empty


def is_price_adjusted(price: Union[str, int, float, None], rules) -> bool:
    """True when resolving ``price`` would apply at least one rule."""
    numeric: Optional[float]
    if isinstance(price, str):
        numeric = parse_dollars(price)
    elif isinstance(price, (int, float)) and not isinstance(price, bool):
        numeric = float(price)
    else:
        numeric = None
    if numeric is None:
        return False
    return resolve_detailed(numeric, rules).applied
