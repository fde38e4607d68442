"""Validation rounds and their results."""

from subcheck_cli.validation.probe import SubscriptionProbe, ValidationRoundError
from subcheck_cli.validation.results import Outcome, RoundResult, SourceOutcome

__all__ = [
    "Outcome",
    "RoundResult",
    "SourceOutcome",
    "SubscriptionProbe",
    "ValidationRoundError",
]
