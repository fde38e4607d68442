"""Single-slot mailbox for manual round requests."""

import queue
from typing import Optional


class TriggerMailbox:
    """Holds at most one pending manual trigger.

    Posting never blocks: if a trigger is already pending the new one is
    dropped and ``try_post`` returns False. Bursts of triggers therefore
    collapse into a single pending request.
    """

    def __init__(self) -> None:
        self._slot: "queue.Queue[bool]" = queue.Queue(maxsize=1)

    def try_post(self) -> bool:
        """Post a trigger if the slot is free.

        Returns:
            True if the trigger was accepted, False if one was already pending
        """
        try:
            self._slot.put_nowait(True)
        except queue.Full:
            return False
        return True

    def take(self, timeout: Optional[float] = None) -> bool:
        """Wait up to ``timeout`` seconds for a trigger and consume it.

        Returns:
            True if a trigger was taken, False on timeout
        """
        try:
            self._slot.get(timeout=timeout)
        except queue.Empty:
            return False
        return True

    @property
    def pending(self) -> bool:
        return self._slot.full()
