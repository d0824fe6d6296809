#!/usr/bin/env python
"""
Create a price adjustment from the command line.

Usage:
    python scripts/create_adjustment.py publications --percentage 10 --max-price 1000
    python scripts/create_adjustment.py listicles --exact 2000 --user-id 42
"""
import argparse
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from pricing_portal.api.state import build_state
from pricing_portal.engine.hints import describe_rule
from pricing_portal.engine.models import CatalogTable, RuleScope
from pricing_portal.errors import PricingPortalError, RuleValidationError
from pricing_portal.services.rules_service import RuleInput


def main():
    parser = argparse.ArgumentParser(description="Create a price adjustment")
    parser.add_argument('table_name', choices=CatalogTable.values())
    parser.add_argument('--percentage', type=float)
    parser.add_argument('--exact', type=float, dest='exact_amount')
    parser.add_argument('--min-price', type=float)
    parser.add_argument('--max-price', type=float)
    parser.add_argument('--user-id', help="Create a user adjustment instead of a global one")
    args = parser.parse_args()

    state = build_state()
    scope = RuleScope.USER if args.user_id else RuleScope.GLOBAL
    data = RuleInput(
        table_name=args.table_name,
        adjustment_percentage=args.percentage,
        exact_amount=args.exact_amount,
        min_price=args.min_price,
        max_price=args.max_price,
        user_id=args.user_id,
    )

    try:
        rule = state.rules_service.create_rule(scope, data)
    except RuleValidationError as e:
        print("❌ Invalid adjustment:")
        for error in e.errors:
            print(f"  {error}")
        sys.exit(1)
    except PricingPortalError as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

    print(f"✅ Created {scope.value} adjustment {rule.id}: {describe_rule(rule)}")


if __name__ == "__main__":
    main()
