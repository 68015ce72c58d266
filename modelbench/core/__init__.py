"""Core benchmark abstractions.

This subpackage provides:
- Subsample design and row sampling
- The model registry
- Metrics and the weighted points formula
"""

from modelbench.core.sampler import DataSampler, SampleSpec
from modelbench.core.models import ModelRegistry, describe_hyperparameters
from modelbench.core.scoring import (
    ScoreCard,
    size_fraction,
    runtime_fraction,
    error_rate,
    compute_points,
    score_predictions
)

__all__ = [
    'DataSampler',
    'SampleSpec',
    'ModelRegistry',
    'describe_hyperparameters',
    'ScoreCard',
    'size_fraction',
    'runtime_fraction',
    'error_rate',
    'compute_points',
    'score_predictions'
]
