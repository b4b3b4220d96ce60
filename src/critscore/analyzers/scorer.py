"""Criticality score calculation from collected metrics."""

import math
from datetime import datetime, timezone

from critscore.analyzers.rounding import round_half_away
from critscore.errors import InvalidAdditionalParamError
from critscore.models.schemas import AdditionalParam, MetricSet, RepositoryHandle, ScoreRecord

SCORE_PRECISION = 5


def param_score(value: float, max_value: float, weight: float) -> float:
    """Log-normalized, weighted contribution of one metric.

    ``weight * ln(1 + value) / ln(1 + max(value, max_value))``: 0 at
    ``value == 0``, approaching ``weight`` as ``value`` reaches
    ``max_value`` and equal to it beyond.
    """
    if value == 0:
        return 0.0
    return math.log(1.0 + value) / math.log(1.0 + max(value, max_value)) * weight


def parse_additional_params(params: list[str] | None) -> list[AdditionalParam]:
    """Parse ``value:weight:max_threshold`` strings.

    Raises:
        InvalidAdditionalParamError: On the first malformed string.
    """
    additional_params = []
    for raw in params or []:
        parts = raw.split(":")
        if len(parts) != 3:
            raise InvalidAdditionalParamError(raw, "param string should have 3 values (value:weight:threshold)")

        values = []
        for label, part in zip(("value", "weight", "max_threshold"), parts):
            try:
                values.append(float(part))
            except ValueError:
                raise InvalidAdditionalParamError(raw, f"param {label} should be a number") from None

        value, weight, max_threshold = values
        if not all(math.isfinite(v) for v in values):
            raise InvalidAdditionalParamError(raw, "param values should be finite")
        if value < 0:
            raise InvalidAdditionalParamError(raw, "param value should not be negative")
        if max_threshold <= 0:
            raise InvalidAdditionalParamError(raw, "param max_threshold should be positive")

        additional_params.append(AdditionalParam(value=value, weight=weight, max_threshold=max_threshold))

    return additional_params


class Scorer:
    """Reduces a MetricSet to a single criticality score.

    The score is the weighted sum of every normalized metric divided by
    the sum of weights, as a percentage rounded to 5 decimals. Staleness
    (``updated_since``) carries a negative weight, so a score can dip
    slightly below 0.
    """

    WEIGHTS = {
        "created_since": 1.0,
        "updated_since": -1.0,
        "contributor_count": 2.0,
        "org_count": 1.0,
        "commit_frequency": 1.0,
        "recent_releases_count": 0.5,
        "closed_issues_count": 0.5,
        "updated_issues_count": 0.5,
        "comment_frequency": 1.0,
        "dependents_count": 2.0,
    }

    # Values at which a metric saturates to its full weight
    THRESHOLDS = {
        "created_since": 120.0,
        "updated_since": 120.0,
        "contributor_count": 5000.0,
        "org_count": 10.0,
        "commit_frequency": 1000.0,
        "recent_releases_count": 26.0,
        "closed_issues_count": 5000.0,
        "updated_issues_count": 5000.0,
        "comment_frequency": 15.0,
        "dependents_count": 500000.0,
    }

    def __init__(
        self,
        weights: dict[str, float] | None = None,
        thresholds: dict[str, float] | None = None,
    ) -> None:
        self.weights = dict(weights or self.WEIGHTS)
        self.thresholds = dict(thresholds or self.THRESHOLDS)

    def metric_scores(self, metrics: MetricSet) -> dict[str, float]:
        """Normalized, weighted contribution of each metric."""
        values = metrics.model_dump()
        return {
            name: param_score(values[name], self.thresholds[name], weight)
            for name, weight in self.weights.items()
        }

    def total_weight(self, additional_params: list[AdditionalParam] | None = None) -> float:
        return sum(self.weights.values()) + sum(p.weight for p in additional_params or [])

    def validate(self, additional_params: list[AdditionalParam] | None = None) -> float:
        """Check that the weights in play don't cancel out.

        Returns:
            The total weight.
        """
        total_weight = self.total_weight(additional_params)
        if total_weight == 0:
            raise InvalidAdditionalParamError(
                ",".join(f"{p.value}:{p.weight}:{p.max_threshold}" for p in additional_params or []),
                "weights should not sum to zero",
            )
        return total_weight

    def calculate_score(
        self,
        metrics: MetricSet,
        additional_params: list[AdditionalParam] | None = None,
    ) -> float:
        """Combine metrics and additional params into the criticality score."""
        additional_params = additional_params or []
        total_weight = self.validate(additional_params)

        additional_score = sum(param_score(p.value, p.max_threshold, p.weight) for p in additional_params)
        weighted = sum(self.metric_scores(metrics).values()) + additional_score

        return round_half_away(weighted / total_weight * 100, SCORE_PRECISION)

    def score_record(
        self,
        repo: RepositoryHandle,
        metrics: MetricSet,
        additional_params: list[AdditionalParam] | None = None,
        scored_on: datetime | None = None,
    ) -> ScoreRecord:
        """Build the final ScoreRecord for a repository."""
        return ScoreRecord(
            name=repo.name,
            url=repo.html_url,
            language=repo.language,
            metrics=metrics,
            criticality_score=self.calculate_score(metrics, additional_params),
            scored_on=scored_on or datetime.now(timezone.utc),
        )
