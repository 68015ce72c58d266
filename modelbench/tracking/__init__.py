"""Tracking and monitoring utilities.

This subpackage handles:
- SQLite database operations
- Structured logging
"""

from .database import BenchmarkDatabase, TRIAL_COLUMNS
from .logger import (
    setup_logger,
    log_phase_start,
    log_phase_end,
    log_trial_result,
    log_progress,
    log_performance_metrics,
    log_error,
    log_warning,
    log_success
)

__all__ = [
    # Database
    'BenchmarkDatabase',
    'TRIAL_COLUMNS',
    # Logging
    'setup_logger',
    'log_phase_start',
    'log_phase_end',
    'log_trial_result',
    'log_progress',
    'log_performance_metrics',
    'log_error',
    'log_warning',
    'log_success'
]
