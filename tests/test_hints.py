import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from pricing_portal.engine.hints import (
    describe_adjustments,
    describe_rule,
    has_active_adjustments,
    is_price_adjusted,
)
from pricing_portal.engine.models import AdjustmentRule, RuleScope


def test_describe_rules():
    assert describe_rule(AdjustmentRule(percentage=10, min_price=0, max_price=1000)) == "Global: +10% ($0-$1000)"
    assert describe_rule(AdjustmentRule(percentage=-5.5)) == "Global: -5.50%"
    assert describe_rule(AdjustmentRule(exact_amount=2000, scope=RuleScope.USER)) == "User: $2000 exact"
    assert describe_rule(AdjustmentRule(percentage=10, min_price=5000)) == "Global: +10% ($5000-$∞)"
    assert describe_rule(AdjustmentRule(exact_amount=1500000)) == "Global: $1500000 exact"


def test_describe_adjustments_skips_inactive_rules():
    rules = {
        "global": [AdjustmentRule(percentage=0), AdjustmentRule(percentage=10)],
        "user": [AdjustmentRule(percentage=5)],
    }
    assert describe_adjustments(rules) == "Global: +10%, User: +5%"
    assert describe_adjustments({"global": [], "user": []}) == ""


def test_has_active_adjustments():
    assert has_active_adjustments({"global": 10, "user": None})
    assert not has_active_adjustments({"global": 0, "user": [AdjustmentRule(percentage=0)]})
    assert not has_active_adjustments(None)


def test_is_price_adjusted():
    rules = {"global": [AdjustmentRule(percentage=10, max_price=1000)], "user": []}

    assert is_price_adjusted("$500", rules)
    assert is_price_adjusted(500, rules)
    assert not is_price_adjusted(5000, rules)
    assert not is_price_adjusted("Contact us", rules)
    assert not is_price_adjusted(None, rules)


def test_blocked_user_exact_rule_is_not_an_adjustment():
    rules = {"global": [], "user": [AdjustmentRule(exact_amount=800)]}
    assert not is_price_adjusted(1000, rules)
    assert is_price_adjusted(500, rules)
