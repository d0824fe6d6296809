"""
Format Adapters - Apply the resolver to prices stored in different shapes.

Each adapter returns its input untouched when no rule changes the value,
so a rule set with nothing active leaves records exactly as they were.
"""
import math
from typing import Any, Optional, Union

from .models import RuleSet
from .price_text import count_decimals, format_dollars, parse_dollars, rewrite_prices
from .resolver import resolve_detailed

Number = Union[int, float]


def _adjust_number(value: float, rule_set: RuleSet) -> Optional[int]:
    """Adjusted price, or None when no rule touched it."""
    resolution = resolve_detailed(value, rule_set)
    return resolution.price if resolution.applied else None


def adjust_price(value: Union[str, Number, None], rules) -> Union[str, Number, None]:
    """Adjust a plain number or numeric string, keeping its type."""
    if value is None or value == '' or isinstance(value, bool):
        return value
    if not isinstance(value, (str, int, float)):
        return value

    numeric = parse_dollars(value) if isinstance(value, str) else float(value)
    if numeric is None or not math.isfinite(numeric):
        return value

    adjusted = _adjust_number(numeric, RuleSet.coerce(rules))
    if adjusted is None:
        return value
    return str(adjusted) if isinstance(value, str) else adjusted


def adjust_price_list(values: Optional[list], rules) -> Optional[list]:
    """Adjust every element of a price array (e.g. ``default_price``)."""
    if not isinstance(values, list):
        return values
    rule_set = RuleSet.coerce(rules)
    return [adjust_price(value, rule_set) for value in values]


def adjust_dollar_price(text: Optional[str], rules) -> Optional[str]:
    """Adjust a single ``"$2,000"`` formatted price."""
    if not text or not isinstance(text, str):
        return text
    numeric = parse_dollars(text)
    if numeric is None:
        return text

    adjusted = _adjust_number(numeric, RuleSet.coerce(rules))
    if adjusted is None:
        return text
    return format_dollars(adjusted, count_decimals(text))


def adjust_embedded_prices(text: Optional[str], rules) -> Optional[str]:
    """
    Adjust every ``$N`` token inside free text.

    Each token is resolved as its own base price, so range matching happens
    per token. Everything that is not a price is left as written.
    """
    if not text or not isinstance(text, str):
        return text
    rule_set = RuleSet.coerce(rules)
    return rewrite_prices(text, lambda value: _adjust_number(value, rule_set))


def adjust_text_list(values: Optional[list], rules) -> Optional[list]:
    """Adjust embedded prices in each string of a list; other items pass through."""
    if not isinstance(values, list):
        return values
    rule_set = RuleSet.coerce(rules)
    return [
        adjust_embedded_prices(value, rule_set) if isinstance(value, str) else value
        for value in values
    ]


def first_price(values: Any) -> Optional[float]:
    """First parseable price from a number, string or list of those."""
    if isinstance(values, list):
        for value in values:
            found = first_price(value)
            if found is not None:
                return found
        return None
    if isinstance(values, bool) or values is None:
        return None
    if isinstance(values, (int, float)):
        return float(values) if math.isfinite(values) else None
    if isinstance(values, str):
        return parse_dollars(values)
    return None
