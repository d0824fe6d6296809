"""
Data models for the price-adjustment engine.

Uses dataclasses for structured, type-safe data representation.
Rules arrive from storage and from legacy callers in several shapes;
everything is normalized into ``AdjustmentRule`` lists before resolution.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union


class RuleScope(str, Enum):
    """Which rule table a rule came from. Global rules apply first."""
    GLOBAL = "global"
    USER = "user"


class CatalogTable(str, Enum):
    """Catalog categories that can carry price adjustments."""
    PUBLICATIONS = "publications"
    SOCIAL_POSTS = "social_posts"
    DIGITAL_TV = "digital_tv"
    BEST_SELLERS = "best_sellers"
    LISTICLES = "listicles"
    PR_BUNDLES = "pr_bundles"
    PRINT = "print"
    BROADCAST_TV = "broadcast_tv"
    OTHERS = "others"

    @classmethod
    def values(cls) -> list[str]:
        return [t.value for t in cls]


def parse_optional_float(value: Any) -> Optional[float]:
    """Parse an optional number from storage (empty, None and NaN = None)."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if value == '' or value.lower() in ('none', 'null', 'nan'):
            return None
    number = float(value)
    if math.isnan(number):
        return None
    return number


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp into an aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text == '' or text.lower() in ('none', 'null', 'nan', 'nat'):
            return None
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class AdjustmentRule:
    """A single price adjustment, either a percentage or an exact replacement."""
    table_name: str = ""
    percentage: float = 0.0
    exact_amount: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    scope: RuleScope = RuleScope.GLOBAL
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    id: Optional[str] = None
    user_id: Optional[str] = None

    def __post_init__(self):
        # Naive timestamps are UTC; keeps created_at comparable across rules
        self.created_at = parse_timestamp(self.created_at)
        self.updated_at = parse_timestamp(self.updated_at)

    @property
    def is_exact(self) -> bool:
        return self.exact_amount is not None

    @property
    def is_active(self) -> bool:
        """Zero-percent rules without an exact amount never do anything."""
        return self.is_exact or self.percentage != 0

    @property
    def width(self) -> float:
        """Range width; narrower ranges are more specific."""
        upper = math.inf if self.max_price is None else self.max_price
        lower = 0.0 if self.min_price is None else self.min_price
        return upper - lower

    @property
    def bounded_sides(self) -> int:
        return (self.min_price is not None) + (self.max_price is not None)

    def in_range(self, price: float) -> bool:
        return (
            (self.min_price is None or price >= self.min_price) and
            (self.max_price is None or price <= self.max_price)
        )

    def is_candidate(self, price: float) -> bool:
        return self.is_active and self.in_range(price)

    def apply(self, price: float) -> float:
        """Apply without any floor guard (the resolver owns the guard)."""
        if self.is_exact:
            return self.exact_amount
        return price * (1 + self.percentage / 100)

    @classmethod
    def from_mapping(cls, data: dict, scope: Optional[RuleScope] = None) -> 'AdjustmentRule':
        """Build a rule from a storage row or API payload."""
        percentage = data.get('adjustment_percentage', data.get('percentage'))
        user_id = data.get('user_id') or None
        if scope is None:
            scope = RuleScope(data['scope']) if data.get('scope') else (
                RuleScope.USER if user_id else RuleScope.GLOBAL
            )
        rule_id = data.get('id')
        return cls(
            table_name=str(data.get('table_name') or ''),
            percentage=parse_optional_float(percentage) or 0.0,
            exact_amount=parse_optional_float(data.get('exact_amount')),
            min_price=parse_optional_float(data.get('min_price')),
            max_price=parse_optional_float(data.get('max_price')),
            scope=scope,
            created_at=parse_timestamp(data.get('created_at')),
            updated_at=parse_timestamp(data.get('updated_at')),
            id=str(rule_id) if rule_id not in (None, '') else None,
            user_id=str(user_id) if user_id else None,
        )

    def to_dict(self) -> dict:
        """Wire format, using the storage column names."""
        data = {
            'id': self.id,
            'table_name': self.table_name,
            'adjustment_percentage': self.percentage,
            'exact_amount': self.exact_amount,
            'min_price': self.min_price,
            'max_price': self.max_price,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if self.scope == RuleScope.USER:
            data['user_id'] = self.user_id
        return data


# Every shape callers have historically passed for one side of a rule set
LegacyRules = Union[None, int, float, dict, AdjustmentRule, list]


def normalize_rules(value: LegacyRules, scope: RuleScope = RuleScope.GLOBAL) -> list[AdjustmentRule]:
    """
    Convert a list, a single rule (object or dict) or a bare percentage
    into a list of rules.
    """
    if value is None:
        return []
    if isinstance(value, bool):
        raise TypeError("Price adjustment cannot be a boolean")
    if isinstance(value, (int, float)):
        return [AdjustmentRule(percentage=float(value), scope=scope)]
    if isinstance(value, AdjustmentRule):
        return [value]
    if isinstance(value, dict):
        return [AdjustmentRule.from_mapping(value, scope=scope)]
    if isinstance(value, (list, tuple)):
        rules = []
        for item in value:
            rules.extend(normalize_rules(item, scope=scope))
        return rules
    raise TypeError(f"Unsupported price adjustment shape: {type(value).__name__}")


@dataclass
class RuleSet:
    """Global and user rules for one catalog table, in storage order."""
    global_rules: list[AdjustmentRule] = field(default_factory=list)
    user_rules: list[AdjustmentRule] = field(default_factory=list)

    @classmethod
    def coerce(cls, value: Any) -> 'RuleSet':
        """Accept a RuleSet, a {'global': ..., 'user': ...} mapping or None."""
        if value is None:
            return cls()
        if isinstance(value, RuleSet):
            return value
        if isinstance(value, dict):
            return cls(
                global_rules=normalize_rules(value.get('global'), RuleScope.GLOBAL),
                user_rules=normalize_rules(value.get('user'), RuleScope.USER),
            )
        raise TypeError(f"Unsupported rule set shape: {type(value).__name__}")

    @property
    def is_empty(self) -> bool:
        return not any(r.is_active for r in self.global_rules + self.user_rules)

    def to_dict(self) -> dict:
        return {
            'global': [r.to_dict() for r in self.global_rules],
            'user': [r.to_dict() for r in self.user_rules],
        }


@dataclass
class Resolution:
    """Outcome of resolving one price, with the rules that were chosen."""
    base_price: float
    price: int
    global_rule: Optional[AdjustmentRule] = None
    user_rule: Optional[AdjustmentRule] = None
    user_rule_blocked: bool = False

    @property
    def applied(self) -> bool:
        """True when some rule actually changed the running price."""
        return self.global_rule is not None or (
            self.user_rule is not None and not self.user_rule_blocked
        )
