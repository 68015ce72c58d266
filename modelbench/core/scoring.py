"""Benchmark metrics and the weighted points formula.

points = size_weight * A + runtime_weight * B + error_weight * C

A: fraction of the training pool used to fit the model
B: runtime as a fraction of the runtime budget, capped at 1
C: misclassification rate on the test set

Lower points are better.
"""

from dataclasses import dataclass, asdict

import numpy as np
from sklearn.metrics import accuracy_score

from modelbench.config import ScoringConfig


@dataclass(frozen=True)
class ScoreCard:
    """Metrics of one finished run."""
    size_fraction: float
    runtime_fraction: float
    error_rate: float
    accuracy: float
    points: float

    def to_dict(self) -> dict:
        return asdict(self)


def size_fraction(sample_size: int, n_total: int) -> float:
    if n_total <= 0:
        raise ValueError("n_total must be positive")
    if sample_size < 0 or sample_size > n_total:
        raise ValueError(f"sample_size must be in [0, {n_total}], got {sample_size}")
    return sample_size / n_total


def runtime_fraction(runtime_seconds: float, budget_seconds: float) -> float:
    if budget_seconds <= 0:
        raise ValueError("budget_seconds must be positive")
    if runtime_seconds < 0:
        raise ValueError("runtime_seconds must be non-negative")
    return min(1.0, runtime_seconds / budget_seconds)


def error_rate(y_true, y_pred) -> float:
    """Share of test predictions that are wrong."""
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    if len(y_true) == 0:
        raise ValueError("Cannot score an empty prediction set")
    if len(y_true) != len(y_pred):
        raise ValueError(
            f"Length mismatch: {len(y_true)} labels vs {len(y_pred)} predictions"
        )
    return 1.0 - accuracy_score(y_true, y_pred)


def compute_points(
    size_frac: float,
    runtime_frac: float,
    error: float,
    config: ScoringConfig
) -> float:
    return (
        config.size_weight * size_frac
        + config.runtime_weight * runtime_frac
        + config.error_weight * error
    )


def score_predictions(
    y_true,
    y_pred,
    sample_size: int,
    n_total: int,
    runtime_seconds: float,
    config: ScoringConfig
) -> ScoreCard:
    """Score one run.

    Parameters
    ----------
    y_true : array-like
        Test labels.
    y_pred : array-like
        Predicted labels for the test set.
    sample_size : int
        Number of training rows the model was fitted on.
    n_total : int
        Total training rows available.
    runtime_seconds : float
        Fit plus predict wall time.
    config : ScoringConfig
        Weights and runtime budget.

    Returns
    -------
    score : ScoreCard
        All metrics of the run.
    """
    a = size_fraction(sample_size, n_total)
    b = runtime_fraction(runtime_seconds, config.runtime_budget_seconds)
    c = error_rate(y_true, y_pred)

    return ScoreCard(
        size_fraction=a,
        runtime_fraction=b,
        error_rate=c,
        accuracy=1.0 - c,
        points=compute_points(a, b, c, config)
    )
