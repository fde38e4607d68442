"""Default validation round: fetch every configured subscription.

Each subscription URL listed in the configuration document is fetched
over HTTP. A source succeeds when any attempt returns a 2xx response with
a non-empty body, and fails otherwise. Transient faults are retried here,
so a round only raises when it cannot run at all.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

import httpx

from subcheck_cli.config import SOURCE_LIST_KEY, ConfigLoadError, read_document
from subcheck_cli.validation.results import Outcome, RoundResult, SourceOutcome

logger = logging.getLogger(__name__)


class ValidationRoundError(Exception):
    """Raised when a validation round cannot run at all."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (path: {self.path})"
        return self.message


class SubscriptionProbe:
    """Fetch subscriptions and report per-source outcomes.

    The subscription list is re-read from the configuration document at
    the start of every round, so evicted or newly added sources are picked
    up without restarting.

    Example:
        probe = SubscriptionProbe(Path("config.yaml"), timeout=10.0, retries=2)
        result = probe.run_round()
    """

    def __init__(
        self,
        config_path: Path,
        timeout: float = 20.0,
        retries: int = 3,
        retry_delay: float = 1.0,
        user_agent: str = "subcheck",
        max_workers: int = 8,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config_path = Path(config_path)
        self._timeout = timeout
        self._retries = max(1, retries)
        self._retry_delay = retry_delay
        self._user_agent = user_agent
        self._max_workers = max(1, max_workers)
        self._transport = transport

    def sources(self) -> List[str]:
        """Subscription identifiers currently in the configuration.

        Non-string entries are skipped and duplicates collapse to their
        first occurrence.

        Raises:
            ValidationRoundError: If the document cannot be read or the
                source list is not a list
        """
        try:
            document = read_document(self._config_path)
        except ConfigLoadError as e:
            raise ValidationRoundError(e.message, str(self._config_path)) from e

        entries = document.get(SOURCE_LIST_KEY) or []
        if not isinstance(entries, list):
            raise ValidationRoundError(
                f"'{SOURCE_LIST_KEY}' must be a list", str(self._config_path)
            )

        seen = set()
        sources: List[str] = []
        for entry in entries:
            if isinstance(entry, str) and entry.strip() and entry not in seen:
                seen.add(entry)
                sources.append(entry)
        return sources

    def run_round(self) -> RoundResult:
        """Probe every configured subscription once.

        Returns:
            Outcomes in configuration order

        Raises:
            ValidationRoundError: If the subscription list cannot be read
        """
        sources = self.sources()
        result = RoundResult()
        if not sources:
            logger.warning("No subscriptions configured, nothing to check")
            return result

        logger.info(f"Checking {len(sources)} subscription(s)")
        with httpx.Client(
            timeout=self._timeout,
            follow_redirects=True,
            headers={"User-Agent": self._user_agent},
            transport=self._transport,
        ) as client:
            with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                outcomes = list(pool.map(lambda url: self._probe(client, url), sources))

        for outcome in outcomes:
            result.record(outcome.source_id, outcome.outcome, outcome.detail)

        logger.info(
            f"Subscriptions checked: {len(result.success_ids)} ok, "
            f"{len(result.failure_ids)} failed"
        )
        return result

    def _probe(self, client: httpx.Client, url: str) -> SourceOutcome:
        detail = ""
        for attempt in range(1, self._retries + 1):
            try:
                response = client.get(url)
            except httpx.HTTPError as e:
                detail = str(e) or type(e).__name__
            else:
                if not response.is_success:
                    detail = f"HTTP {response.status_code}"
                elif not response.content.strip():
                    detail = "empty response body"
                else:
                    return SourceOutcome(url, Outcome.SUCCESS, f"HTTP {response.status_code}")

            logger.debug(f"Attempt {attempt}/{self._retries} for {url} failed: {detail}")
            if attempt < self._retries and self._retry_delay > 0:
                time.sleep(self._retry_delay)

        logger.warning(f"Subscription {url} failed: {detail}")
        return SourceOutcome(url, Outcome.FAILURE, detail)
