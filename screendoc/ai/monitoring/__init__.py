"""
Monitoring Module - structured logging and metrics for model calls.

Usage:
    from screendoc.ai.monitoring import ai_monitor
"""

from screendoc.ai.monitoring.monitor import AIMonitor, AggregatedMetrics, RequestMetrics, ai_monitor

__all__ = [
    "AIMonitor",
    "AggregatedMetrics",
    "RequestMetrics",
    "ai_monitor",
]
