"""
Per-job resource usage ledger.

Each stage adds the token usage of its one model call. The orchestrator
finalizes the ledger when the job reaches a terminal state and the summary
is used for the cost estimate.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from screendoc.ai.providers.base import TokenUsage
from screendoc.core.config import settings


@dataclass(frozen=True)
class UsageSummary:
    """Final token totals of one job."""
    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def estimate_cost(
        self,
        input_cost_per_1m: Optional[float] = None,
        output_cost_per_1m: Optional[float] = None,
    ) -> float:
        """Estimated USD cost using averaged per-million-token rates."""
        input_rate = settings.INPUT_COST_PER_1M if input_cost_per_1m is None else input_cost_per_1m
        output_rate = settings.OUTPUT_COST_PER_1M if output_cost_per_1m is None else output_cost_per_1m
        return (self.input_tokens / 1_000_000) * input_rate + (self.output_tokens / 1_000_000) * output_rate

    def to_dict(self) -> Dict[str, int]:
        return {
            "input": self.input_tokens,
            "output": self.output_tokens,
            "total": self.total_tokens,
        }


class UsageLedger:
    """Mutable accumulator for one job. Closed by ``finalize``."""

    def __init__(self):
        self.input_tokens = 0
        self.output_tokens = 0
        self.updates = 0
        self._summary: Optional[UsageSummary] = None

    @property
    def finalized(self) -> bool:
        return self._summary is not None

    def add(self, usage: TokenUsage) -> None:
        if self._summary is not None:
            raise RuntimeError("Usage ledger already finalized")
        self.input_tokens += usage.prompt_tokens
        self.output_tokens += usage.completion_tokens
        self.updates += 1

    def finalize(self) -> UsageSummary:
        """Freeze the ledger; calling again returns the same summary."""
        if self._summary is None:
            self._summary = UsageSummary(
                input_tokens=self.input_tokens,
                output_tokens=self.output_tokens,
            )
        return self._summary
