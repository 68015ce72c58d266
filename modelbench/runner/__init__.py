"""Benchmark execution.

This package provides job preparation, single-run execution, worker
management with timeout handling, and the benchmark orchestrator.
"""

from .trial import (
    RESULT_COLUMNS,
    TrialJob,
    run_trial,
    execute_job,
    make_failure_row
)
from .scheduler import prepare_jobs, list_run_ids, get_jobs_info
from .worker import run_with_timeout, run_job, run_jobs_parallel
from .benchmark import BenchmarkRunner

__all__ = [
    'RESULT_COLUMNS',
    'TrialJob',
    'run_trial',
    'execute_job',
    'make_failure_row',
    'prepare_jobs',
    'list_run_ids',
    'get_jobs_info',
    'run_with_timeout',
    'run_job',
    'run_jobs_parallel',
    'BenchmarkRunner'
]
