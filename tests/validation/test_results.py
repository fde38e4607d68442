"""Tests for round result types."""

from subcheck_cli.validation.results import Outcome, RoundResult, SourceOutcome


class TestRoundResult:
    def test_from_pairs_keeps_order(self):
        result = RoundResult.from_pairs([("b", Outcome.FAILURE), ("a", Outcome.SUCCESS)])

        assert [o.source_id for o in result] == ["b", "a"]
        assert result.failure_ids == ["b"]
        assert result.success_ids == ["a"]

    def test_empty_result_is_falsy(self):
        assert not RoundResult()
        assert len(RoundResult()) == 0

    def test_outcome_failed_flag(self):
        assert SourceOutcome("a", Outcome.FAILURE).failed
        assert not SourceOutcome("a", Outcome.SUCCESS).failed
