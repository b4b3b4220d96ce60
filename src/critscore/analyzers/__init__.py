"""Metric collection and scoring."""

from critscore.analyzers.aggregator import MetricsAggregator
from critscore.analyzers.pipeline import CriticalityPipeline
from critscore.analyzers.providers import MetricProviders
from critscore.analyzers.quota import QuotaGuard
from critscore.analyzers.scorer import Scorer

__all__ = ["CriticalityPipeline", "MetricProviders", "MetricsAggregator", "QuotaGuard", "Scorer"]
