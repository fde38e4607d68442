"""Round result types produced by a validation round.

A round is one complete pass over every configured subscription source.
It yields an ordered list of per-source outcomes which the lifecycle
manager folds into the failure ledger.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Tuple


class Outcome(Enum):
    """Outcome of validating a single source within a round."""

    SUCCESS = "success"
    FAILURE = "failure"

    @property
    def failed(self) -> bool:
        return self is Outcome.FAILURE


@dataclass(frozen=True)
class SourceOutcome:
    """Outcome for one source identifier.

    Attributes:
        source_id: Subscription identifier exactly as written in the config
        outcome: Whether the source could be validated this round
        detail: Optional human-readable reason (HTTP status, error text)
    """

    source_id: str
    outcome: Outcome
    detail: str = ""

    @property
    def failed(self) -> bool:
        return self.outcome.failed


@dataclass
class RoundResult:
    """Ordered outcomes of one validation round.

    Sources absent from a round are not touched by that round's
    ledger update.
    """

    outcomes: List[SourceOutcome] = field(default_factory=list)

    def record(self, source_id: str, outcome: Outcome, detail: str = "") -> None:
        self.outcomes.append(SourceOutcome(source_id, outcome, detail))

    def add_success(self, source_id: str, detail: str = "") -> None:
        self.record(source_id, Outcome.SUCCESS, detail)

    def add_failure(self, source_id: str, detail: str = "") -> None:
        self.record(source_id, Outcome.FAILURE, detail)

    @classmethod
    def from_pairs(cls, pairs: List[Tuple[str, Outcome]]) -> "RoundResult":
        """Build a result from ``(source_id, outcome)`` pairs."""
        result = cls()
        for source_id, outcome in pairs:
            result.record(source_id, outcome)
        return result

    @property
    def success_ids(self) -> List[str]:
        return [o.source_id for o in self.outcomes if not o.failed]

    @property
    def failure_ids(self) -> List[str]:
        return [o.source_id for o in self.outcomes if o.failed]

    def __iter__(self) -> Iterator[SourceOutcome]:
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)
