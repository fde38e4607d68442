"""Subscription lifecycle management.

Tracks consecutive failures per subscription across rounds and removes
subscriptions from the configuration once they fail too often.
"""

from subcheck_cli.lifecycle.exceptions import (
    LedgerPersistError,
    LifecycleError,
    MalformedSourceListError,
    SourceListEditError,
)
from subcheck_cli.lifecycle.failure_ledger import FailureLedger
from subcheck_cli.lifecycle.manager import LifecycleManager, LifecycleReport
from subcheck_cli.lifecycle.source_list_editor import SourceListEditor

__all__ = [
    "FailureLedger",
    "LedgerPersistError",
    "LifecycleError",
    "LifecycleManager",
    "LifecycleReport",
    "MalformedSourceListError",
    "SourceListEditError",
    "SourceListEditor",
]
