"""Logging helpers for benchmark runs.

The runner, the CLI and the report writer log through these functions so
that every message shares one layout:

    [2025-12-10 10:30:45] INFO: ✓ knn n=500 trial=1: accuracy=0.7512 ...
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union


BANNER_WIDTH = 72

LOG_FORMAT = '[%(asctime)s] %(levelname)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(
    name: str = 'modelbench',
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None
) -> logging.Logger:
    """Configure a named logger for console and optional file output.

    Calling this again for the same name replaces the previous handlers.

    Parameters
    ----------
    name : str, default='modelbench'
        Logger name.
    level : int or str, default=logging.INFO
        Level as a logging constant or a name such as 'DEBUG'.
    log_file : Path, optional
        File receiving a copy of every message. Truncated on setup.

    Returns
    -------
    logger : logging.Logger
        Configured logger.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler()]
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def _banner(logger: logging.Logger, *lines: str) -> None:
    logger.info("=" * BANNER_WIDTH)
    for line in lines:
        logger.info(line)
    logger.info("=" * BANNER_WIDTH)


def log_phase_start(logger: logging.Logger, phase_name: str, details: str = "") -> None:
    """Log a banner opening a phase, e.g. 'BENCHMARK'."""
    lines = [phase_name.upper()]
    if details:
        lines.append(details)
    _banner(logger, *lines)


def log_phase_end(
    logger: logging.Logger,
    phase_name: str,
    elapsed_time: Optional[float] = None
) -> None:
    """Log a banner closing a phase, with its wall time when known."""
    message = f"{phase_name.upper()} COMPLETE"
    if elapsed_time is not None:
        message += f" ({elapsed_time:.1f}s)"
    _banner(logger, message)


def log_trial_result(logger: logging.Logger, result: Dict[str, Any]) -> None:
    """Log the outcome of a single (model, sample size, trial) run.

    Completed runs are logged at INFO with their headline metrics; errors
    and timeouts at WARNING with the recorded message.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance.
    result : dict
        Result row produced by the trial runner.
    """
    label = (
        f"{result['model_name']} n={result['sample_size']} "
        f"trial={result['trial']}"
    )

    if result.get('status') != 'completed':
        message = f"✗ {label}: {str(result.get('status', 'unknown')).upper()}"
        if result.get('error_message'):
            message += f" - {result['error_message']}"
        logger.warning(message)
        return

    logger.info(
        f"✓ {label}: accuracy={result['accuracy']:.4f} "
        f"runtime={result['runtime_seconds']:.2f}s "
        f"points={result['points']:.4f}"
    )


def log_progress(
    logger: logging.Logger,
    finished: int,
    total: int,
    elapsed_seconds: Optional[float] = None
) -> None:
    """Log how many runs have finished, with a naive time-to-go estimate.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance.
    finished : int
        Runs finished so far.
    total : int
        Runs scheduled.
    elapsed_seconds : float, optional
        Wall time since the first run started.
    """
    pct = finished / total * 100 if total > 0 else 100.0
    message = f"Progress: {finished}/{total} runs ({pct:.1f}%)"

    if elapsed_seconds is not None and 0 < finished < total:
        remaining = elapsed_seconds / finished * (total - finished)
        message += f", ~{remaining / 60:.1f} min remaining"

    logger.info(message)


def log_performance_metrics(
    logger: logging.Logger,
    metrics: Dict[str, Any],
    prefix: str = ""
) -> None:
    """Log a block of named metrics, one per line, names aligned."""
    if prefix:
        logger.info(f"{prefix}:")

    width = max((len(name) for name in metrics), default=0)
    for name, value in metrics.items():
        shown = f"{value:.6f}" if isinstance(value, float) else str(value)
        logger.info(f"  {name:<{width}}  {shown}")


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log an exception as 'Error in <context>: <Type>: <message>'."""
    description = f"{type(error).__name__}: {error}"
    if context:
        logger.error(f"Error in {context}: {description}")
    else:
        logger.error(description)


def log_warning(logger: logging.Logger, message: str) -> None:
    logger.warning(f"⚠️  {message}")


def log_success(logger: logging.Logger, message: str) -> None:
    logger.info(f"✓ {message}")
