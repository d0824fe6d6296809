import asyncio
import threading
import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from pricing_portal.engine.models import AdjustmentRule, RuleScope
from pricing_portal.errors import RuleFetchError, RuleNotFoundError, RuleStoreError, TransientStoreError
from pricing_portal.services.cache import RuleCache
from pricing_portal.services.retry import retry_with_backoff
from pricing_portal.services.rule_fetcher import RuleFetcher


class FakeStore:
    """Stands in for RulesService; failures are queued per scope."""

    def __init__(self, global_rules=(), user_rules=()):
        self.rules = {RuleScope.GLOBAL: list(global_rules), RuleScope.USER: list(user_rules)}
        self.failures = {RuleScope.GLOBAL: [], RuleScope.USER: []}
        self.calls = []
        self.barrier = None

    def list_rules(self, scope, table_name=None, user_id=None):
        self.calls.append((scope, table_name, user_id))
        if self.barrier is not None:
            self.barrier.wait(timeout=5)
        if self.failures[scope]:
            raise self.failures[scope].pop(0)
        return [
            r for r in self.rules[scope]
            if r.table_name == table_name and (user_id is None or r.user_id == user_id)
        ]


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def fetcher_for(store, cache=None, max_retries=2):
    return RuleFetcher(store, cache=cache, timeout_seconds=5, max_retries=max_retries, retry_delay_seconds=0)


@pytest.fixture
def store():
    return FakeStore(
        global_rules=[AdjustmentRule(table_name="print", percentage=10)],
        user_rules=[AdjustmentRule(table_name="print", percentage=5, scope=RuleScope.USER, user_id="alice")],
    )


# Retry

def test_retry_returns_first_success():
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 2:
            raise TransientStoreError("timeout")
        return "ok"

    assert asyncio.run(retry_with_backoff(flaky, max_retries=2, initial_delay=0)) == "ok"
    assert len(attempts) == 2


def test_retry_delays_double():
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    async def always_fails():
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        asyncio.run(retry_with_backoff(always_fails, max_retries=3, initial_delay=1.0, sleep=fake_sleep))
    assert delays == [1.0, 2.0]


@pytest.mark.parametrize("error", [RuleNotFoundError("gone"), RuleStoreError("bad row"), ValueError("bad")])
def test_retry_does_not_repeat_permanent_errors(error):
    attempts = []

    async def fails():
        attempts.append(1)
        raise error

    with pytest.raises(type(error)):
        asyncio.run(retry_with_backoff(fails, max_retries=3, initial_delay=0))
    assert len(attempts) == 1


# Cache

def test_cache_entries_expire():
    clock = FakeClock()
    cache = RuleCache(ttl_seconds=60, clock=clock)
    cache.set("print:global", ["rule"])

    clock.now = 60
    assert cache.get("print:global") == ["rule"]
    clock.now = 61
    assert cache.get("print:global") is None
    assert len(cache) == 0


def test_cache_invalidates_one_table():
    cache = RuleCache()
    cache.set(RuleCache.key_for("print", RuleScope.GLOBAL), [1])
    cache.set(RuleCache.key_for("print", RuleScope.USER, "alice"), [2])
    cache.set(RuleCache.key_for("print_extra", RuleScope.GLOBAL), [3])
    cache.set(RuleCache.key_for("others", RuleScope.GLOBAL), [4])

    cache.invalidate_table("print")

    assert cache.get("print:global") is None
    assert cache.get("print:user:alice") is None
    assert cache.get("print_extra:global") == [3]
    assert cache.get("others:global") == [4]

    cache.invalidate_all()
    assert len(cache) == 0


# Fetcher

def test_fetch_global_and_user_rules(store):
    rule_set = asyncio.run(fetcher_for(store).fetch_rules("print", "alice"))

    assert [r.percentage for r in rule_set.global_rules] == [10]
    assert [r.percentage for r in rule_set.user_rules] == [5]


def test_fetch_without_user_skips_user_table(store):
    rule_set = asyncio.run(fetcher_for(store).fetch_rules("print"))

    assert rule_set.user_rules == []
    assert [c[0] for c in store.calls] == [RuleScope.GLOBAL]


def test_reads_run_concurrently(store):
    """Both reads must be in flight at once or the barrier times out."""
    store.barrier = threading.Barrier(2)

    rule_set = asyncio.run(fetcher_for(store).fetch_rules("print", "alice"))

    assert len(rule_set.global_rules) == 1
    assert len(rule_set.user_rules) == 1


def test_user_failure_degrades_to_global_only(store):
    store.failures[RuleScope.USER] = [RuleStoreError("broken")]

    rule_set = asyncio.run(fetcher_for(store).fetch_rules("print", "alice"))

    assert len(rule_set.global_rules) == 1
    assert rule_set.user_rules == []


def test_user_table_not_found_degrades(store):
    store.failures[RuleScope.USER] = [RuleNotFoundError("no table")]

    rule_set = asyncio.run(fetcher_for(store).fetch_rules("print", "alice"))

    assert rule_set.user_rules == []
    assert [c[0] for c in store.calls].count(RuleScope.USER) == 1


def test_global_failure_fails_fetch(store):
    store.failures[RuleScope.GLOBAL] = [RuleStoreError("broken")]

    with pytest.raises(RuleFetchError) as excinfo:
        asyncio.run(fetcher_for(store).fetch_rules("print", "alice"))

    assert excinfo.value.table_name == "print"
    assert isinstance(excinfo.value.cause, RuleStoreError)


def test_transient_global_failure_is_retried(store):
    store.failures[RuleScope.GLOBAL] = [TransientStoreError("timeout")]

    rule_set = asyncio.run(fetcher_for(store).fetch_rules("print"))

    assert len(rule_set.global_rules) == 1
    assert len(store.calls) == 2


def test_exhausted_retries_fail_fetch(store):
    store.failures[RuleScope.GLOBAL] = [TransientStoreError("timeout")] * 3

    with pytest.raises(RuleFetchError):
        asyncio.run(fetcher_for(store, max_retries=3).fetch_rules("print"))
    assert len(store.calls) == 3


def test_successful_reads_are_cached(store):
    cache = RuleCache(ttl_seconds=60)
    fetcher = fetcher_for(store, cache=cache)

    asyncio.run(fetcher.fetch_rules("print", "alice"))
    asyncio.run(fetcher.fetch_rules("print", "alice"))
    assert len(store.calls) == 2

    cache.invalidate_table("print")
    asyncio.run(fetcher.fetch_rules("print", "alice"))
    assert len(store.calls) == 4


def test_failed_reads_are_not_cached(store):
    cache = RuleCache(ttl_seconds=60)
    fetcher = fetcher_for(store, cache=cache)
    store.failures[RuleScope.USER] = [RuleStoreError("broken")]

    first = asyncio.run(fetcher.fetch_rules("print", "alice"))
    second = asyncio.run(fetcher.fetch_rules("print", "alice"))

    assert first.user_rules == []
    assert len(second.user_rules) == 1


@pytest.mark.parametrize("user_id", ["*", "global", "user"])
def test_cached_global_rules_never_served_as_user_rules(store, user_id):
    """A user id shaped like a cache key still gets only that user's rules."""
    fetcher = fetcher_for(store, cache=RuleCache(ttl_seconds=60))

    asyncio.run(fetcher.fetch_rules("print"))
    rule_set = asyncio.run(fetcher.fetch_rules("print", user_id))

    assert [r.percentage for r in rule_set.global_rules] == [10]
    assert rule_set.user_rules == []
