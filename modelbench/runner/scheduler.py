"""Job preparation for benchmark runs.

Builds one TrialJob per (model, sample size, trial). Subsamples are drawn
once per design cell in the main process and shared by every model.
"""

from typing import Iterable, List, Optional

from modelbench.config import ScoringConfig
from modelbench.core.models import ModelRegistry
from modelbench.core.sampler import DataSampler
from modelbench.data.loading import FashionData
from modelbench.runner.trial import TrialJob
from modelbench.utils import compute_run_id


def _run_id(model_name: str, spec, registry: ModelRegistry) -> str:
    return compute_run_id(
        model_name=model_name,
        sample_size=spec.sample_size,
        trial=spec.trial,
        seed=spec.seed,
        hyperparameters=registry.resolve_hyperparameters(model_name)
    )


def list_run_ids(
    sampler: DataSampler,
    registry: ModelRegistry,
    model_names: Optional[Iterable[str]] = None
) -> List[str]:
    """Run ids of every (model, sample size, trial) in the design."""
    model_names = list(model_names) if model_names is not None else registry.get_active_models()
    return [
        _run_id(model_name, spec, registry)
        for spec in sampler.design()
        for model_name in model_names
    ]


def prepare_jobs(
    data: FashionData,
    sampler: DataSampler,
    registry: ModelRegistry,
    scoring: ScoringConfig,
    model_names: Optional[Iterable[str]] = None,
    skip_run_ids: Optional[Iterable[str]] = None
) -> List[TrialJob]:
    """Prepare the jobs of a benchmark.

    Parameters
    ----------
    data : FashionData
        Training pool and test set.
    sampler : DataSampler
        Sampling design.
    registry : ModelRegistry
        Builds the unfitted models.
    scoring : ScoringConfig
        Weights and runtime budget.
    model_names : iterable of str, optional
        Models to include. Defaults to the registry's active models.
    skip_run_ids : iterable of str, optional
        Run ids that already completed (resume).

    Returns
    -------
    jobs : list of TrialJob
        Jobs ordered by sample size, trial, then model.
    """
    model_names = list(model_names) if model_names is not None else registry.get_active_models()
    skip = set(skip_run_ids or ())

    X_train, y_train = data.get_train()
    X_test, y_test = data.get_test()

    jobs = []
    for spec in sampler.design():
        X_sample = y_sample = None

        for model_name in model_names:
            run_id = _run_id(model_name, spec, registry)
            if run_id in skip:
                continue

            if X_sample is None:
                X_sample, y_sample = sampler.sample_rows(X_train, y_train, spec)

            jobs.append(TrialJob(
                run_id=run_id,
                model_name=model_name,
                model=registry.build_model(model_name, seed=spec.seed),
                spec=spec,
                X_sample=X_sample,
                y_sample=y_sample,
                X_test=X_test,
                y_test=y_test,
                n_total=data.n_train,
                scoring=scoring,
                worker_id=len(jobs)
            ))

    return jobs


def get_jobs_info(jobs: List[TrialJob]) -> dict:
    """Get summary information about prepared jobs.

    Parameters
    ----------
    jobs : list of TrialJob
        Prepared jobs.

    Returns
    -------
    info : dict
        Dictionary with job statistics.
    """
    model_counts = {}
    size_counts = {}
    for job in jobs:
        model_counts[job.model_name] = model_counts.get(job.model_name, 0) + 1
        size_counts[job.spec.sample_size] = size_counts.get(job.spec.sample_size, 0) + 1

    return {
        'n_jobs': len(jobs),
        'model_counts': model_counts,
        'sample_size_counts': size_counts
    }
