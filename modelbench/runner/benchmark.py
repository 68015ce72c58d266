"""Benchmark orchestration.

Runs every active model on every design cell, records each row as it
finishes and returns the accumulated results table.
"""

import time
import logging
from typing import Dict, List, Optional

import pandas as pd

from modelbench.config import BenchmarkConfig
from modelbench.core.models import ModelRegistry
from modelbench.core.sampler import DataSampler
from modelbench.data.loading import FashionData
from modelbench.runner.scheduler import prepare_jobs, list_run_ids, get_jobs_info
from modelbench.runner.trial import RESULT_COLUMNS
from modelbench.runner.worker import run_job, run_jobs_parallel
from modelbench.tracking.database import BenchmarkDatabase
from modelbench.tracking.logger import (
    log_phase_start,
    log_phase_end,
    log_trial_result,
    log_progress,
    log_success,
    log_warning
)


class BenchmarkRunner:
    """Executes the full benchmark.

    Attributes:
        config: Validated BenchmarkConfig
        data: Training pool and test set
        database: Optional tracking database
        logger: Logger for progress messages

    Example:
        >>> runner = BenchmarkRunner(config, data, database=BenchmarkDatabase('bench.db'))
        >>> results = runner.run()
        >>> results.groupby('model_name')['points'].mean()
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        data: FashionData,
        database: Optional[BenchmarkDatabase] = None,
        logger: Optional[logging.Logger] = None
    ):
        config.validate()

        self.config = config
        self.data = data
        self.database = database
        self.logger = logger or logging.getLogger('modelbench')

        self.sampler = DataSampler(config.sampling, random_state=config.random_state)
        self.registry = ModelRegistry(config.models, feature_names=data.feature_names)

        info = self.sampler.get_sample_info(data.X_train)
        if not info['feasible']:
            raise ValueError(
                f"Sample sizes {info['sample_sizes']} exceed the "
                f"{info['pool_rows']} available training rows"
            )

    def _previous_rows(self, run_ids: set) -> List[Dict]:
        previous = self.database.query_trials()
        previous = previous[
            previous['run_id'].isin(run_ids) & (previous['status'] == 'completed')
        ].drop_duplicates('run_id', keep='first')
        return previous.reindex(columns=RESULT_COLUMNS).to_dict('records')

    def _record(self, result: Dict, worker_id: int) -> None:
        if self.database is None:
            return
        runtime = result.get('runtime_seconds')
        self.database.insert_trial(result)
        self.database.update_worker_status(
            worker_id=worker_id,
            run_id=result['run_id'],
            status=result['status'],
            model_name=result['model_name'],
            end_time=result['timestamp'],
            runtime_sec=None if pd.isna(runtime) else float(runtime)
        )

    def run(self, resume: bool = False) -> pd.DataFrame:
        """Run the benchmark.

        Parameters
        ----------
        resume : bool, default=False
            Skip runs already completed in the tracking database and include
            their stored rows in the returned table.

        Returns
        -------
        results : pd.DataFrame
            One row per (model, sample size, trial) with RESULT_COLUMNS.
        """
        if resume and self.database is None:
            raise ValueError("resume requires a tracking database")

        start_time = time.time()
        log_phase_start(
            self.logger, "Benchmark",
            f"{len(self.registry.get_active_models())} models x "
            f"{len(self.config.sampling.sample_sizes)} sample sizes x "
            f"{self.config.sampling.n_trials} trials"
        )

        completed = set()
        if self.database is not None:
            self.database.initialize()
            self.database.clear_run_status()

            # The database holds a single design, so re-rendered reports match this run
            expected = set(list_run_ids(self.sampler, self.registry))
            n_pruned = self.database.prune_trials(expected)
            if n_pruned:
                log_warning(
                    self.logger,
                    f"Removed {n_pruned} stored runs from a different design"
                )
            if resume:
                completed = self.database.get_completed_run_ids() & expected

        jobs = prepare_jobs(
            data=self.data,
            sampler=self.sampler,
            registry=self.registry,
            scoring=self.config.scoring,
            skip_run_ids=completed
        )
        worker_ids = {job.run_id: job.worker_id for job in jobs}

        rows = []
        if completed:
            rows = self._previous_rows(completed)
            log_success(self.logger, f"Resuming: {len(rows)} runs already completed")

        total = get_jobs_info(jobs)['n_jobs']
        self.logger.info(f"Prepared {total} runs")

        timeout_seconds = self.config.parallel.timeout_seconds
        finished = 0

        def on_result(result: Dict) -> None:
            nonlocal finished
            finished += 1
            rows.append(result)
            self._record(result, worker_ids[result['run_id']])
            log_trial_result(self.logger, result)
            log_progress(self.logger, finished, total, time.time() - start_time)

        if self.config.parallel.n_workers > 1 and total > 1:
            run_jobs_parallel(
                jobs,
                n_workers=self.config.parallel.n_workers,
                timeout_seconds=timeout_seconds,
                logger=self.logger,
                on_result=on_result
            )
        else:
            for job in jobs:
                if self.database is not None:
                    self.database.update_worker_status(
                        worker_id=job.worker_id,
                        run_id=job.run_id,
                        status='running',
                        model_name=job.model_name
                    )
                on_result(run_job(job, timeout_seconds))

        results = pd.DataFrame(rows, columns=RESULT_COLUMNS)
        results = results.sort_values(
            ['sample_size', 'trial', 'model_name']
        ).reset_index(drop=True)

        n_failed = int((results['status'] != 'completed').sum())
        if n_failed:
            log_warning(self.logger, f"{n_failed} of {len(results)} runs did not complete")

        log_phase_end(self.logger, "Benchmark", time.time() - start_time)
        return results
