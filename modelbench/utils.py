"""Utility functions for benchmark runs."""

import hashlib
import json
from typing import Any, Dict


def compute_run_id(
    model_name: str,
    sample_size: int,
    trial: int,
    seed: int,
    hyperparameters: Dict[str, Any] = None
) -> str:
    """Compute a stable identifier for a (model, sample size, trial) run.

    The id changes whenever the model's hyperparameters change, so resuming
    a benchmark after editing a model retrains it.

    Parameters
    ----------
    model_name : str
        Registry name of the model.
    sample_size : int
        Number of training rows.
    trial : int
        Trial number.
    seed : int
        Seed of the row draw.
    hyperparameters : dict, optional
        Model hyperparameters.

    Returns
    -------
    run_id : str
        First 16 hex digits of a SHA256 hash of the run configuration.
    """
    config_str = json.dumps({
        'model': model_name,
        'sample_size': int(sample_size),
        'trial': int(trial),
        'seed': int(seed),
        'hyperparameters': hyperparameters or {}
    }, sort_keys=True, default=str)

    return hashlib.sha256(config_str.encode()).hexdigest()[:16]
