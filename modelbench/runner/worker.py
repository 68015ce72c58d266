"""Worker process management for benchmark runs.

This module provides functions for executing runs in isolated worker
processes with timeout handling.
"""

import multiprocessing
import queue
import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional

import psutil

from modelbench.runner.trial import TrialJob, execute_job, make_failure_row


def _kill_process_tree(pid: int) -> None:
    """Kill a process and all of its children (e.g. joblib/loky workers)."""
    try:
        parent = psutil.Process(pid)
        children = parent.children(recursive=True)

        for child in children:
            try:
                child.kill()
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                pass

        parent.kill()

    except (psutil.NoSuchProcess, psutil.AccessDenied):
        pass


def _job_process(job: TrialJob, result_queue) -> None:
    """Worker process entry point: execute the job and report the row."""
    result_queue.put(execute_job(job))


def run_with_timeout(job: TrialJob, timeout_seconds: float) -> Dict:
    """Execute a job in a separate process with timeout protection.

    Running in a child process makes forced termination possible: on
    timeout the worker and all of its children are killed.

    Parameters
    ----------
    job : TrialJob
        The job to execute.
    timeout_seconds : float
        Maximum wall time.

    Returns
    -------
    result : dict
        Result row ('completed' or 'error').

    Raises
    ------
    TimeoutError
        If the run exceeds the timeout.
    """
    result_queue = multiprocessing.Queue()

    worker = multiprocessing.Process(
        target=_job_process,
        args=(job, result_queue)
    )

    worker.start()
    worker.join(timeout=timeout_seconds)

    if worker.is_alive():
        _kill_process_tree(worker.pid)
        worker.join(timeout=5)

        raise TimeoutError(
            f"Run {job.run_id} ({job.model_name}, n={job.spec.sample_size}, "
            f"trial {job.spec.trial}) exceeded timeout ({timeout_seconds:.0f}s)"
        )

    try:
        return result_queue.get(timeout=5)
    except queue.Empty:
        return make_failure_row(
            job, 'error',
            f"Worker process ended without result (exit code {worker.exitcode})"
        )


def run_job(job: TrialJob, timeout_seconds: Optional[float] = None) -> Dict:
    """Execute a job, converting timeouts into 'timeout' rows.

    Parameters
    ----------
    job : TrialJob
        The job to execute.
    timeout_seconds : float or None, default=None
        Maximum wall time. None runs the job in the calling process.

    Returns
    -------
    result : dict
        Result row.
    """
    if timeout_seconds is None:
        return execute_job(job)

    try:
        return run_with_timeout(job, timeout_seconds)
    except TimeoutError as e:
        return make_failure_row(job, 'timeout', str(e))


def run_jobs_parallel(
    jobs: List[TrialJob],
    n_workers: int,
    timeout_seconds: Optional[float] = None,
    logger: Optional[logging.Logger] = None,
    on_result: Optional[Callable[[Dict], None]] = None
) -> List[Dict]:
    """Execute jobs concurrently using a process pool.

    Parameters
    ----------
    jobs : list of TrialJob
        Jobs to execute.
    n_workers : int
        Number of concurrent workers.
    timeout_seconds : float or None, default=None
        Per-job timeout.
    logger : logging.Logger, optional
        Logger for unexpected pool failures.
    on_result : callable, optional
        Called in the parent process with each row as it completes.

    Returns
    -------
    results : list of dict
        Result rows in completion order.
    """
    logger = logger or logging.getLogger(__name__)
    results = []

    with ProcessPoolExecutor(max_workers=n_workers) as executor:
        future_to_job = {
            executor.submit(run_job, job, timeout_seconds): job
            for job in jobs
        }

        for future in as_completed(future_to_job):
            job = future_to_job[future]

            try:
                result = future.result()
            except Exception as e:
                logger.error(f"Run {job.run_id}: Unexpected error - {e}")
                result = make_failure_row(job, 'error', f"{type(e).__name__}: {str(e)}")

            results.append(result)
            if on_result is not None:
                on_result(result)

    return results
