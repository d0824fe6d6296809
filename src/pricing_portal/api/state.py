"""
Application state shared by the API routers: store, cache and fetcher.
"""
from dataclasses import dataclass
from typing import Optional

from ..config.settings import Settings, get_settings
from ..services.cache import RuleCache
from ..services.rule_fetcher import RuleFetcher
from ..services.rules_service import RulesService


@dataclass
class PortalState:
    settings: Settings
    rules_service: RulesService
    cache: RuleCache
    fetcher: RuleFetcher


def build_state(settings: Optional[Settings] = None) -> PortalState:
    """Wire the store to the cache so every rule change invalidates its table."""
    settings = settings or get_settings()
    cache = RuleCache(ttl_seconds=settings.cache_ttl_seconds)
    rules_service = RulesService(
        global_rules_csv=settings.global_rules_csv,
        user_rules_csv=settings.user_rules_csv,
        on_change=cache.invalidate_table,
    )
    fetcher = RuleFetcher.from_settings(rules_service, cache, settings)
    return PortalState(settings=settings, rules_service=rules_service, cache=cache, fetcher=fetcher)


_state: Optional[PortalState] = None


def get_state() -> PortalState:
    """FastAPI dependency; tests override it with their own state."""
    global _state
    if _state is None:
        _state = build_state()
    return _state
