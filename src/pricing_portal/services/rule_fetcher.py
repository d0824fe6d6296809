"""
Rule Fetcher - Loads the global and user rule sets for one catalog table.

Both reads run concurrently, each under a timeout and the retry policy.
A failed global read fails the whole fetch; a failed user read only means
the user gets no personal adjustments.
"""
import asyncio
import logging
from typing import Optional

from ..config.settings import Settings
from ..engine.models import AdjustmentRule, RuleScope, RuleSet
from ..errors import RuleFetchError, RuleNotFoundError
from .cache import RuleCache
from .retry import retry_with_backoff
from .rules_service import RulesService

logger = logging.getLogger(__name__)


class RuleFetcher:
    """Fetches rule sets through a cache in front of the rules store."""

    def __init__(
        self,
        store: RulesService,
        cache: Optional[RuleCache] = None,
        timeout_seconds: float = 10.0,
        max_retries: int = 2,
        retry_delay_seconds: float = 1.0,
    ):
        self.store = store
        self.cache = cache
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds

    @classmethod
    def from_settings(cls, store: RulesService, cache: Optional[RuleCache], settings: Settings) -> 'RuleFetcher':
        return cls(
            store=store,
            cache=cache,
            timeout_seconds=settings.fetch_timeout_seconds,
            max_retries=settings.fetch_max_retries,
            retry_delay_seconds=settings.fetch_retry_delay_seconds,
        )

    async def _read(self, scope: RuleScope, table_name: str, user_id: Optional[str]) -> list[AdjustmentRule]:
        key = RuleCache.key_for(table_name, scope, user_id)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return list(cached)

        async def attempt() -> list[AdjustmentRule]:
            return await asyncio.wait_for(
                asyncio.to_thread(self.store.list_rules, scope, table_name, user_id),
                timeout=self.timeout_seconds,
            )

        rules = await retry_with_backoff(
            attempt,
            max_retries=self.max_retries,
            initial_delay=self.retry_delay_seconds,
        )
        if self.cache is not None:
            self.cache.set(key, list(rules))
        return rules

    async def fetch_rules(self, table_name: str, user_id: Optional[str] = None) -> RuleSet:
        """
        Load global rules for ``table_name`` and, if ``user_id`` is given,
        that user's rules for the same table. Both lists are oldest first.

        Raises RuleFetchError when the global rules cannot be read.
        """
        reads = [self._read(RuleScope.GLOBAL, table_name, None)]
        if user_id:
            reads.append(self._read(RuleScope.USER, table_name, user_id))

        results = await asyncio.gather(*reads, return_exceptions=True)
        global_result = results[0]
        user_result = results[1] if user_id else []

        if isinstance(global_result, BaseException):
            logger.error("Error fetching global adjustments for %s: %s", table_name, global_result)
            raise RuleFetchError(table_name, global_result)

        if isinstance(user_result, RuleNotFoundError):
            logger.info("No user-specific adjustments for user %s on %s", user_id, table_name)
            user_result = []
        elif isinstance(user_result, BaseException):
            logger.warning(
                "Error fetching user adjustments for %s (user: %s): %s",
                table_name, user_id, user_result
            )
            user_result = []

        logger.debug(
            "Fetched adjustments for %s (user: %s): %d global, %d user",
            table_name, user_id or 'none', len(global_result), len(user_result)
        )
        return RuleSet(global_rules=global_result, user_rules=user_result)
