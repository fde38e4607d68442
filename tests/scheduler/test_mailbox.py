"""Tests for the manual trigger mailbox."""

from subcheck_cli.scheduler.mailbox import TriggerMailbox


class TestTriggerMailbox:
    """Tests for TriggerMailbox."""

    def test_burst_collapses_to_one(self) -> None:
        mailbox = TriggerMailbox()

        accepted = [mailbox.try_post() for _ in range(10)]

        assert accepted == [True] + [False] * 9
        assert mailbox.pending

    def test_take_frees_the_slot(self) -> None:
        mailbox = TriggerMailbox()
        mailbox.try_post()

        assert mailbox.take(timeout=0.1)
        assert not mailbox.pending
        assert mailbox.try_post()

    def test_take_times_out_when_empty(self) -> None:
        assert TriggerMailbox().take(timeout=0.01) is False
