"""
AI Monitor - structured logging and in-memory metrics for model calls.

Every stage call is tracked twice: once when the request is sent and once
when the response (or failure) arrives. Each track_* method:
1. Writes one structured JSON log line
2. Updates in-memory aggregates (per stage)

Usage:
    from screendoc.ai.monitoring import ai_monitor

    ai_monitor.track_request(request_id, stage="analysis", model=..., prompt=...)
    ai_monitor.track_response(request_id, stage="analysis", response=response)
    stats = ai_monitor.get_stats()
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, List, Optional, Any

from screendoc.ai.providers.base import AIResponse
from screendoc.core.config import settings


logger = logging.getLogger("screendoc.ai")


# ---------------------------------------------------------------------------
# METRICS DATA CLASSES
# ---------------------------------------------------------------------------
@dataclass
class RequestMetrics:
    """Metrics for a single model call."""
    request_id: str
    stage: str
    model: str
    prompt_tokens: int
    completion_tokens: int
    latency_ms: float
    success: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    estimated_cost: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass
class AggregatedMetrics:
    """Aggregated metrics since process start (or last reset)."""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_prompt_tokens: int = 0
    total_completion_tokens: int = 0
    total_latency_ms: float = 0.0
    estimated_total_cost: float = 0.0
    requests_by_stage: Dict[str, int] = field(default_factory=dict)
    tokens_by_stage: Dict[str, int] = field(default_factory=dict)

    @property
    def total_tokens(self) -> int:
        return self.total_prompt_tokens + self.total_completion_tokens

    @property
    def avg_latency_ms(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.total_latency_ms / self.total_requests

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return (self.successful_requests / self.total_requests) * 100

    def to_dict(self) -> Dict:
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "success_rate": f"{self.success_rate:.1f}%",
            "total_tokens": self.total_tokens,
            "prompt_tokens": self.total_prompt_tokens,
            "completion_tokens": self.total_completion_tokens,
            "avg_latency_ms": round(self.avg_latency_ms, 2),
            "estimated_total_cost": f"${self.estimated_total_cost:.4f}",
            "requests_by_stage": self.requests_by_stage,
            "tokens_by_stage": self.tokens_by_stage,
        }


# ---------------------------------------------------------------------------
# AI MONITOR
# ---------------------------------------------------------------------------
class AIMonitor:
    """Logging + metrics in one call per event."""

    def __init__(self, max_history: int = 1000):
        self._logger = logger
        self._history: List[RequestMetrics] = []
        self._max_history = max_history
        self._lock = Lock()
        self._aggregated = AggregatedMetrics()

    # -----------------------------------------------------------------------
    # MAIN TRACKING METHODS
    # -----------------------------------------------------------------------

    def track_request(
        self,
        request_id: str,
        stage: str,
        model: str,
        prompt: str,
        image_count: int = 0,
        job_id: Optional[str] = None,
    ) -> None:
        """Track a request being sent to the model."""
        log_data = {
            "event": "ai_request",
            "request_id": request_id,
            "job_id": job_id,
            "stage": stage,
            "model": model,
            "prompt_length": len(prompt),
            "images": image_count,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        self._logger.info(f"AI Request: {json.dumps(log_data)}")

    def track_response(
        self,
        request_id: str,
        stage: str,
        response: AIResponse,
        job_id: Optional[str] = None,
    ) -> RequestMetrics:
        """Track a model response (successful or not)."""
        prompt_tokens = response.usage.prompt_tokens if response.usage else 0
        completion_tokens = response.usage.completion_tokens if response.usage else 0
        cost = self._estimate_cost(prompt_tokens, completion_tokens)

        metrics = RequestMetrics(
            request_id=request_id,
            stage=stage,
            model=response.model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            latency_ms=response.latency_ms,
            success=response.success,
            estimated_cost=cost,
        )

        with self._lock:
            self._history.append(metrics)
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history:]
            self._update_aggregated(metrics)

        log_data = {
            "event": "ai_response",
            "request_id": request_id,
            "job_id": job_id,
            "stage": stage,
            "model": response.model,
            "success": response.success,
            "latency_ms": round(response.latency_ms, 2),
            "tokens": {
                "prompt": prompt_tokens,
                "completion": completion_tokens,
                "total": prompt_tokens + completion_tokens,
            },
            "estimated_cost": f"${cost:.6f}",
            "response_length": len(response.content) if response.content else 0,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if response.error:
            log_data["error"] = response.error

        level = logging.INFO if response.success else logging.WARNING
        self._logger.log(level, f"AI Response: {json.dumps(log_data)}")
        return metrics

    def track_error(
        self,
        request_id: str,
        error: str,
        stage: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Track an error in the pipeline."""
        log_data = {
            "event": "ai_error",
            "request_id": request_id,
            "error": error,
            "stage": stage,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if metadata:
            log_data["metadata"] = metadata

        self._logger.error(f"AI Error: {json.dumps(log_data)}")

    def track_event(
        self,
        request_id: str,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Track a generic pipeline event."""
        log_data = {
            "event": event_type,
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if data:
            log_data.update(data)

        self._logger.info(f"AI Event: {json.dumps(log_data, default=str)}")

    # -----------------------------------------------------------------------
    # METRICS METHODS
    # -----------------------------------------------------------------------

    def get_stats(self) -> AggregatedMetrics:
        with self._lock:
            return self._aggregated

    def get_recent_requests(self, limit: int = 10) -> List[RequestMetrics]:
        with self._lock:
            return list(reversed(self._history[-limit:]))

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._history = []
            self._aggregated = AggregatedMetrics()

    # -----------------------------------------------------------------------
    # PRIVATE METHODS
    # -----------------------------------------------------------------------

    def _estimate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        input_cost = (prompt_tokens / 1_000_000) * settings.INPUT_COST_PER_1M
        output_cost = (completion_tokens / 1_000_000) * settings.OUTPUT_COST_PER_1M
        return input_cost + output_cost

    def _update_aggregated(self, metrics: RequestMetrics) -> None:
        agg = self._aggregated
        agg.total_requests += 1

        if metrics.success:
            agg.successful_requests += 1
        else:
            agg.failed_requests += 1

        agg.total_prompt_tokens += metrics.prompt_tokens
        agg.total_completion_tokens += metrics.completion_tokens
        agg.total_latency_ms += metrics.latency_ms
        agg.estimated_total_cost += metrics.estimated_cost

        agg.requests_by_stage[metrics.stage] = agg.requests_by_stage.get(metrics.stage, 0) + 1
        agg.tokens_by_stage[metrics.stage] = agg.tokens_by_stage.get(metrics.stage, 0) + metrics.total_tokens


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
ai_monitor = AIMonitor()
