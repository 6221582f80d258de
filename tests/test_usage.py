"""
Tests for the per-job usage ledger and cost estimate.
"""

import pytest

from screendoc.ai.providers.base import TokenUsage
from screendoc.ai.usage import UsageLedger, UsageSummary


class TestUsageLedger:

    def test_starts_empty(self):
        summary = UsageLedger().finalize()

        assert summary.input_tokens == 0
        assert summary.output_tokens == 0
        assert summary.total_tokens == 0

    def test_sums_every_addition(self):
        ledger = UsageLedger()
        ledger.add(TokenUsage(prompt_tokens=100, completion_tokens=50))
        ledger.add(TokenUsage(prompt_tokens=30, completion_tokens=20))

        summary = ledger.finalize()

        assert summary.input_tokens == 130
        assert summary.output_tokens == 70
        assert summary.total_tokens == 200
        assert ledger.updates == 2

    def test_finalize_is_idempotent(self):
        ledger = UsageLedger()
        ledger.add(TokenUsage(prompt_tokens=1, completion_tokens=1))

        assert ledger.finalize() is ledger.finalize()
        assert ledger.finalized

    def test_add_after_finalize_rejected(self):
        ledger = UsageLedger()
        ledger.finalize()

        with pytest.raises(RuntimeError):
            ledger.add(TokenUsage(prompt_tokens=1))


class TestUsageSummary:

    def test_cost_uses_averaged_rates(self):
        summary = UsageSummary(input_tokens=1_000_000, output_tokens=500_000)

        assert summary.estimate_cost() == pytest.approx(2.0 + 5.0)

    def test_cost_with_explicit_rates(self):
        summary = UsageSummary(input_tokens=2_000, output_tokens=1_000)

        assert summary.estimate_cost(1.0, 1.0) == pytest.approx(0.003)

    def test_to_dict(self):
        assert UsageSummary(3, 4).to_dict() == {"input": 3, "output": 4, "total": 7}
