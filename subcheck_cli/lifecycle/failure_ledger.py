"""Failure ledger for per-subscription consecutive-failure streaks.

The FailureLedger persists how many rounds in a row each subscription
source has failed. A success resets the streak to zero, a failure adds
one. Entries survive process restarts and are only deleted when their
source is evicted.

The ledger is stored as JSON next to the configuration file:

    {"fail_counts": {"https://example.com/sub": 2}}
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Set

from subcheck_cli.lifecycle._files import write_atomic
from subcheck_cli.lifecycle.exceptions import LedgerPersistError

logger = logging.getLogger(__name__)


class FailureLedger:
    """Track consecutive failures per subscription source.

    The ledger has no locking of its own; the lifecycle manager
    serialises access to it.

    Example:
        ledger = FailureLedger.load(Path("/etc/subcheck/subs_state.json"))

        ledger.record_outcome("https://example.com/sub", failed=True)
        doomed = ledger.sources_at_or_above(3)
        ledger.forget(doomed)

        ledger.persist(Path("/etc/subcheck/subs_state.json"))

    Attributes:
        _counts: Consecutive failure count by source identifier
    """

    def __init__(self, counts: Dict[str, int] | None = None) -> None:
        self._counts: Dict[str, int] = dict(counts or {})

    @classmethod
    def load(cls, path: Path) -> "FailureLedger":
        """Load the ledger from disk.

        A missing file yields an empty ledger. A corrupt file is logged
        and also yields an empty ledger, so bad state never blocks a round.

        Args:
            path: Path to the ledger JSON file

        Returns:
            The loaded ledger
        """
        path = Path(path)
        if not path.exists():
            logger.debug(f"No failure ledger at {path}, starting empty")
            return cls()

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to parse failure ledger {path}, starting empty: {e}")
            return cls()
        except OSError as e:
            logger.warning(f"Failed to read failure ledger {path}, starting empty: {e}")
            return cls()

        raw = data.get("fail_counts") if isinstance(data, dict) else None
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring malformed fail_counts in {path}")
            return cls()

        counts: Dict[str, int] = {}
        for source_id, count in raw.items():
            # bool is an int subclass
            if isinstance(count, bool) or not isinstance(count, int) or count < 0:
                logger.warning(f"Dropping invalid fail count for {source_id}: {count!r}")
                continue
            counts[str(source_id)] = count

        logger.debug(f"Loaded failure ledger with {len(counts)} sources from {path}")
        return cls(counts)

    def record_outcome(self, source_id: str, failed: bool) -> int:
        """Fold one round outcome into the streak for ``source_id``.

        Args:
            source_id: Subscription identifier
            failed: Whether the source failed this round

        Returns:
            The updated count
        """
        if failed:
            self._counts[source_id] = self._counts.get(source_id, 0) + 1
            logger.debug(f"Fail count for {source_id} is now {self._counts[source_id]}")
        else:
            if self._counts.get(source_id, 0) > 0:
                logger.debug(f"Source {source_id} recovered, resetting fail count")
            self._counts[source_id] = 0
        return self._counts[source_id]

    def sources_at_or_above(self, threshold: int) -> Set[str]:
        """Sources whose streak has reached ``threshold``.

        A threshold of zero or less disables eviction and returns nothing.
        """
        if threshold <= 0:
            return set()
        return {sid for sid, count in self._counts.items() if count >= threshold}

    def forget(self, source_ids: Iterable[str]) -> None:
        """Drop entries so a re-added source starts with a clean streak."""
        for source_id in source_ids:
            if self._counts.pop(source_id, None) is not None:
                logger.debug(f"Forgot failure history for {source_id}")

    def fail_count(self, source_id: str) -> int:
        return self._counts.get(source_id, 0)

    def counts(self) -> Dict[str, int]:
        """Copy of the full mapping."""
        return dict(self._counts)

    def persist(self, path: Path) -> None:
        """Write the ledger to disk atomically.

        Raises:
            LedgerPersistError: If the file cannot be written
        """
        data = {"fail_counts": self._counts}
        try:
            write_atomic(Path(path), json.dumps(data, indent=2, ensure_ascii=False))
        except OSError as e:
            raise LedgerPersistError(f"Failed to write failure ledger: {e}", str(path)) from e
        logger.debug(f"Saved failure ledger ({len(self._counts)} sources) to {path}")

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._counts

    def __len__(self) -> int:
        return len(self._counts)
