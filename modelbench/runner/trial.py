"""Single-run execution: fit, predict, time and score one model."""

import os
import time
import warnings
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

import numpy as np
import pandas as pd
import psutil
from sklearn.pipeline import Pipeline

from modelbench.config import ScoringConfig
from modelbench.core.sampler import SampleSpec
from modelbench.core.scoring import score_predictions


RESULT_COLUMNS = [
    'run_id', 'model_name', 'sample_size', 'trial', 'seed',
    'size_fraction', 'runtime_fraction', 'error_rate', 'accuracy', 'points',
    'fit_seconds', 'predict_seconds', 'runtime_seconds', 'memory_mb',
    'status', 'error_message', 'timestamp'
]

METRIC_COLUMNS = [
    'size_fraction', 'runtime_fraction', 'error_rate', 'accuracy', 'points',
    'fit_seconds', 'predict_seconds', 'runtime_seconds', 'memory_mb'
]


@dataclass
class TrialJob:
    """Everything a worker needs to execute one run.

    Attributes:
        run_id: Stable run identifier
        model_name: Registry name of the model
        model: Unfitted sklearn pipeline
        spec: Sampling design cell
        X_sample, y_sample: Subsampled training rows
        X_test, y_test: Fixed test set
        n_total: Total training rows (denominator of the size fraction)
        scoring: Weights and runtime budget
        worker_id: Slot used for status tracking
    """
    run_id: str
    model_name: str
    model: Pipeline
    spec: SampleSpec
    X_sample: pd.DataFrame
    y_sample: pd.Series
    X_test: pd.DataFrame
    y_test: pd.Series
    n_total: int
    scoring: ScoringConfig
    worker_id: int = 0


def _base_row(job: TrialJob) -> Dict[str, Any]:
    return {
        'run_id': job.run_id,
        'model_name': job.model_name,
        'sample_size': job.spec.sample_size,
        'trial': job.spec.trial,
        'seed': job.spec.seed
    }


def make_failure_row(job: TrialJob, status: str, message: str = '') -> Dict[str, Any]:
    """Result row for a run that did not complete.

    Args:
        job: The failed job
        status: 'error' or 'timeout'
        message: Error description
    """
    row = _base_row(job)
    row.update({column: np.nan for column in METRIC_COLUMNS})
    row.update({
        'status': status,
        'error_message': message,
        'timestamp': datetime.now().isoformat()
    })
    return row


def run_trial(job: TrialJob) -> Dict[str, Any]:
    """Fit, predict and score one model on one subsample.

    Runtime is the wall time of fit plus predict on the full test set.
    Exceptions raised by the model propagate to the caller.

    Args:
        job: The job to execute

    Returns:
        Result row with every column of RESULT_COLUMNS
    """
    # Convergence and deprecation chatter from sklearn is not actionable here
    warnings.filterwarnings('ignore', category=UserWarning, module='sklearn')
    warnings.filterwarnings('ignore', category=FutureWarning, module='sklearn')

    process = psutil.Process(os.getpid())
    mem_before = process.memory_info().rss / 1024 / 1024  # MB

    start = time.perf_counter()
    job.model.fit(job.X_sample, job.y_sample)
    fit_seconds = time.perf_counter() - start

    start = time.perf_counter()
    y_pred = job.model.predict(job.X_test)
    predict_seconds = time.perf_counter() - start

    mem_after = process.memory_info().rss / 1024 / 1024  # MB
    runtime_seconds = fit_seconds + predict_seconds

    score = score_predictions(
        y_true=job.y_test,
        y_pred=y_pred,
        sample_size=job.spec.sample_size,
        n_total=job.n_total,
        runtime_seconds=runtime_seconds,
        config=job.scoring
    )

    row = _base_row(job)
    row.update(score.to_dict())
    row.update({
        'fit_seconds': fit_seconds,
        'predict_seconds': predict_seconds,
        'runtime_seconds': runtime_seconds,
        'memory_mb': mem_after - mem_before,
        'status': 'completed',
        'error_message': '',
        'timestamp': datetime.now().isoformat()
    })
    return row


def execute_job(job: TrialJob) -> Dict[str, Any]:
    """Run a job in the calling process, converting failures into rows."""
    try:
        return run_trial(job)
    except Exception as e:
        return make_failure_row(job, 'error', f"{type(e).__name__}: {str(e)}")
