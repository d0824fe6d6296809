"""
Rules Service - Storage for global and user price adjustments.

Each scope is one table (global_price_adjustments / user_price_adjustments),
kept as a CSV file. Rows are never edited in place: rules are created and
deleted, and every change fires the ``on_change`` hook with the table name.
"""
import csv
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

import pandas as pd

from ..engine.models import AdjustmentRule, CatalogTable, RuleScope, parse_optional_float
from ..errors import (
    OwnershipError,
    RuleNotFoundError,
    RuleStoreError,
    RuleValidationError,
    TransientStoreError,
)

logger = logging.getLogger(__name__)

_NO_TIMESTAMP = datetime.max.replace(tzinfo=timezone.utc)


@dataclass
class ValidationResult:
    """Result of rule validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class RuleInput:
    """A requested rule before it is stored."""
    table_name: str
    adjustment_percentage: Any = None
    exact_amount: Any = None
    min_price: Any = None
    max_price: Any = None
    user_id: Optional[str] = None


class RulesService:
    """Service for reading and writing price adjustment rules."""

    GLOBAL_COLUMNS = [
        'id', 'table_name', 'adjustment_percentage', 'exact_amount',
        'min_price', 'max_price', 'created_at', 'updated_at'
    ]
    USER_COLUMNS = GLOBAL_COLUMNS[:1] + ['user_id'] + GLOBAL_COLUMNS[1:]

    def __init__(
        self,
        global_rules_csv: Path,
        user_rules_csv: Path,
        on_change: Optional[Callable[[str], None]] = None,
    ):
        self.paths = {
            RuleScope.GLOBAL: Path(global_rules_csv),
            RuleScope.USER: Path(user_rules_csv),
        }
        self.on_change = on_change
        self._write_lock = threading.Lock()

    def _columns(self, scope: RuleScope) -> list[str]:
        return self.USER_COLUMNS if scope == RuleScope.USER else self.GLOBAL_COLUMNS

    def _read_rules(self, scope: RuleScope) -> list[AdjustmentRule]:
        """Load every row of one table, in file order."""
        path = self.paths[scope]
        if not path.exists():
            return []

        try:
            df = pd.read_csv(path, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            return []
        except pd.errors.ParserError as e:
            raise RuleStoreError(f"Malformed rule table {path.name}: {e}") from e
        except OSError as e:
            raise TransientStoreError(f"Could not read {path.name}: {e}") from e

        df.columns = [c.strip() for c in df.columns]
        for col in df.columns:
            df[col] = df[col].astype(str).str.strip()

        try:
            return [AdjustmentRule.from_mapping(row, scope=scope) for row in df.to_dict(orient='records')]
        except ValueError as e:
            raise RuleStoreError(f"Invalid row in {path.name}: {e}") from e

    def list_rules(
        self,
        scope: RuleScope,
        table_name: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> list[AdjustmentRule]:
        """
        List rules of one scope, oldest first.

        ``table_name`` and ``user_id`` narrow the result; rows with equal
        timestamps keep their stored order.
        """
        rules = self._read_rules(scope)
        if table_name is not None:
            rules = [r for r in rules if r.table_name == table_name]
        if user_id is not None:
            rules = [r for r in rules if r.user_id == user_id]
        return sorted(rules, key=lambda r: r.created_at or _NO_TIMESTAMP)

    def get_rule(self, scope: RuleScope, rule_id: str) -> AdjustmentRule:
        for rule in self._read_rules(scope):
            if rule.id == rule_id:
                return rule
        raise RuleNotFoundError(f"Adjustment '{rule_id}' not found")

    def validate_rule(self, scope: RuleScope, data: RuleInput) -> ValidationResult:
        """Validate a rule before saving."""
        result = ValidationResult(valid=True)

        if not data.table_name:
            result.errors.append("Table name is required")
        elif data.table_name not in CatalogTable.values():
            result.errors.append(f"Invalid table name '{data.table_name}'")

        if scope == RuleScope.USER and not data.user_id:
            result.errors.append("User ID is required")

        values = {}
        unparseable = set()
        for name in ('adjustment_percentage', 'exact_amount', 'min_price', 'max_price'):
            try:
                values[name] = parse_optional_float(getattr(data, name))
            except (TypeError, ValueError):
                result.errors.append(f"{name} must be a number")
                unparseable.add(name)
                values[name] = None

        if values['adjustment_percentage'] is None and values['exact_amount'] is None \
                and not unparseable & {'adjustment_percentage', 'exact_amount'}:
            result.errors.append("Either adjustment percentage or exact amount is required")

        low, high = values['min_price'], values['max_price']
        if low is not None and high is not None and low > high:
            result.errors.append("Minimum price must not exceed maximum price")

        if values['exact_amount'] is not None and values['exact_amount'] < 0:
            result.errors.append("Exact amount must not be negative")

        if values['exact_amount'] is None and values['adjustment_percentage'] == 0:
            result.warnings.append("A 0% adjustment has no effect")

        if values['adjustment_percentage'] is not None and values['adjustment_percentage'] <= -100:
            result.warnings.append("Adjustment of -100% or less makes prices zero or negative")

        result.valid = not result.errors
        return result

    def create_rule(self, scope: RuleScope, data: RuleInput) -> AdjustmentRule:
        """Store a new rule; an exact amount always stores a 0% percentage."""
        validation = self.validate_rule(scope, data)
        if not validation.valid:
            raise RuleValidationError(validation.errors)

        exact_amount = parse_optional_float(data.exact_amount)
        percentage = 0.0 if exact_amount is not None else (parse_optional_float(data.adjustment_percentage) or 0.0)
        now = datetime.now(timezone.utc)

        rule = AdjustmentRule(
            table_name=data.table_name,
            percentage=percentage,
            exact_amount=exact_amount,
            min_price=parse_optional_float(data.min_price),
            max_price=parse_optional_float(data.max_price),
            scope=scope,
            created_at=now,
            updated_at=now,
            id=str(uuid.uuid4()),
            user_id=data.user_id if scope == RuleScope.USER else None,
        )

        with self._write_lock:
            rules = self._read_rules(scope)
            rules.append(rule)
            self._write_rules(scope, rules)

        logger.info("Created %s adjustment %s for %s", scope.value, rule.id, rule.table_name)
        self._notify(rule.table_name)
        return rule

    def delete_rule(self, scope: RuleScope, rule_id: str) -> AdjustmentRule:
        """Delete a rule and return what was removed."""
        with self._write_lock:
            rules = self._read_rules(scope)
            removed = next((r for r in rules if r.id == rule_id), None)
            if removed is None:
                raise RuleNotFoundError(f"Adjustment '{rule_id}' not found")
            self._write_rules(scope, [r for r in rules if r.id != rule_id])

        logger.info("Deleted %s adjustment %s for %s", scope.value, rule_id, removed.table_name)
        self._notify(removed.table_name)
        return removed

    def delete_owned_rule(self, rule_id: str, user_id: str) -> AdjustmentRule:
        """Delete a user rule only if it belongs to ``user_id``."""
        rule = self.get_rule(RuleScope.USER, rule_id)
        if rule.user_id != user_id:
            raise OwnershipError(f"Adjustment '{rule_id}' belongs to another user")
        return self.delete_rule(RuleScope.USER, rule_id)

    def _notify(self, table_name: str):
        if self.on_change is not None:
            self.on_change(table_name)

    def _to_csv_row(self, rule: AdjustmentRule) -> dict:
        def num(value: Optional[float]) -> str:
            return '' if value is None else repr(float(value))

        row = {
            'id': rule.id or '',
            'table_name': rule.table_name,
            'adjustment_percentage': num(rule.percentage),
            'exact_amount': num(rule.exact_amount),
            'min_price': num(rule.min_price),
            'max_price': num(rule.max_price),
            'created_at': rule.created_at.isoformat() if rule.created_at else '',
            'updated_at': rule.updated_at.isoformat() if rule.updated_at else '',
        }
        if rule.scope == RuleScope.USER:
            row['user_id'] = rule.user_id or ''
        return row

    def _write_rules(self, scope: RuleScope, rules: list[AdjustmentRule]):
        """Write a whole table back to CSV."""
        path = self.paths[scope]
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8', newline='') as f:
                writer = csv.DictWriter(f, fieldnames=self._columns(scope))
                writer.writeheader()
                for rule in rules:
                    writer.writerow(self._to_csv_row(rule))
        except OSError as e:
            raise TransientStoreError(f"Could not write {path.name}: {e}") from e

    def get_stats(self) -> dict:
        """Counts of stored rules per scope and table."""
        stats = {}
        for scope in RuleScope:
            by_table: dict[str, int] = {}
            for rule in self._read_rules(scope):
                by_table[rule.table_name] = by_table.get(rule.table_name, 0) + 1
            stats[scope.value] = {'total': sum(by_table.values()), 'by_table': by_table}
        return stats
