import asyncio
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from pricing_portal.api.state import build_state
from pricing_portal.engine.hints import describe_adjustments
from pricing_portal.engine.resolver import resolve_detailed


def debug(table_name: str, user_id: str = None, prices: list[float] = None):
    state = build_state()
    rules = asyncio.run(state.fetcher.fetch_rules(table_name, user_id))

    print(f"Loaded rules for {table_name} (user: {user_id or 'none'}):")
    print(f"  {describe_adjustments(rules) or 'no active adjustments'}")

    for price in prices or [100, 500, 1000, 2500, 10000]:
        resolution = resolve_detailed(price, rules)
        chosen = []
        if resolution.global_rule:
            chosen.append(f"global {resolution.global_rule.id}")
        if resolution.user_rule:
            blocked = " (blocked by floor)" if resolution.user_rule_blocked else ""
            chosen.append(f"user {resolution.user_rule.id}{blocked}")
        print(f"  ${price:,} -> ${resolution.price:,}  [{', '.join(chosen) or 'unchanged'}]")


if __name__ == "__main__":
    table = sys.argv[1] if len(sys.argv) > 1 else "publications"
    user = sys.argv[2] if len(sys.argv) > 2 else None
    debug(table, user)
