"""Subscription lifecycle manager.

Folds each round's outcomes into the failure ledger, evicts subscriptions
whose streak reaches the threshold from the configuration document, and
prunes the ledger of evicted entries.
"""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from subcheck_cli.lifecycle.exceptions import LifecycleError, SourceListEditError
from subcheck_cli.lifecycle.failure_ledger import FailureLedger
from subcheck_cli.lifecycle.source_list_editor import SourceListEditor
from subcheck_cli.validation.results import RoundResult

logger = logging.getLogger(__name__)


@dataclass
class LifecycleReport:
    """What one call to LifecycleManager.process() did.

    Attributes:
        recorded: Number of outcomes folded into the ledger
        evicted: Sources that reached the threshold this round
        removed: Number of config entries actually removed
        error: Error from the eviction step, if any
    """

    recorded: int = 0
    evicted: List[str] = field(default_factory=list)
    removed: int = 0
    error: Optional[str] = None


class LifecycleManager:
    """Evict subscriptions that fail too many rounds in a row.

    With a threshold of zero or less the manager is a no-op observer and
    never touches the ledger or the configuration.

    Example:
        manager = LifecycleManager(
            config_path=Path("config.yaml"),
            ledger_path=Path("subs_state.json"),
            threshold=3,
        )
        manager.process(round_result)

    Attributes:
        _config_path: Configuration document holding the source list
        _ledger_path: Where the failure ledger is persisted
        _threshold: Consecutive failures before eviction
        _editor: Source list editor
        _ledger: Failure ledger, loaded on first use
        _lock: Serialises process() calls
    """

    def __init__(
        self,
        config_path: Path,
        ledger_path: Path,
        threshold: int = 0,
        editor: Optional[SourceListEditor] = None,
        ledger: Optional[FailureLedger] = None,
    ) -> None:
        self._config_path = Path(config_path)
        self._ledger_path = Path(ledger_path)
        self._threshold = threshold
        self._editor = editor or SourceListEditor()
        self._ledger = ledger
        self._lock = threading.Lock()

    @property
    def threshold(self) -> int:
        return self._threshold

    @threshold.setter
    def threshold(self, value: int) -> None:
        if value != self._threshold:
            logger.info(f"Subscription eviction threshold changed: {self._threshold} -> {value}")
        self._threshold = value

    @property
    def enabled(self) -> bool:
        return self._threshold > 0

    @property
    def ledger(self) -> FailureLedger:
        """The failure ledger, loading it from disk if needed."""
        if self._ledger is None:
            self._ledger = FailureLedger.load(self._ledger_path)
        return self._ledger

    def process(self, result: RoundResult) -> LifecycleReport:
        """Apply one round's outcomes.

        Steps: record outcomes, compute the eviction set, remove evicted
        sources from the configuration, forget them in the ledger, then
        persist the ledger. The ledger is persisted even when eviction
        fails.

        Args:
            result: Outcomes of the round that just finished

        Returns:
            Report of what was recorded and evicted

        Raises:
            SourceListEditError: If evicted sources could not be removed
                from the configuration (raised after the ledger is saved)
            LedgerPersistError: If the ledger could not be saved
        """
        report = LifecycleReport()

        if not self.enabled:
            return report

        if not result:
            return report

        with self._lock:
            ledger = self.ledger

            for outcome in result:
                ledger.record_outcome(outcome.source_id, outcome.failed)
            report.recorded = len(result)

            evict_error: Optional[SourceListEditError] = None
            to_evict = sorted(ledger.sources_at_or_above(self._threshold))
            if to_evict:
                report.evicted = to_evict
                logger.warning(
                    f"Found {len(to_evict)} subscription(s) failing {self._threshold} "
                    f"rounds in a row: {to_evict}"
                )
                try:
                    report.removed = self._editor.remove_sources(self._config_path, to_evict)
                except SourceListEditError as e:
                    evict_error = e
                    report.error = str(e)
                    logger.error(f"Failed to remove subscriptions from configuration: {e}")
                else:
                    ledger.forget(to_evict)
                    logger.info(f"Removed {len(to_evict)} failing subscription(s)")

            try:
                ledger.persist(self._ledger_path)
            except LifecycleError as e:
                logger.error(f"Failed to save subscription state: {e}")
                if evict_error is None:
                    raise

            if evict_error is not None:
                raise evict_error

        return report
