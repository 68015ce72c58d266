"""Subsample design and row sampling.

Each (sample size, trial) pair gets one seed. The rows drawn for a pair are
shared by every model, so models are compared on identical subsamples.
"""

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
import pandas as pd

from modelbench.config import SamplingConfig


@dataclass(frozen=True)
class SampleSpec:
    """One cell of the sampling design.

    Attributes:
        sample_size: Number of training rows drawn
        trial: 1-based trial number within the sample size
        seed: Seed of the row draw
    """
    sample_size: int
    trial: int
    seed: int

    @property
    def sample_id(self) -> str:
        return f"n{self.sample_size}_t{self.trial}"


class DataSampler:
    """Draws uniform random subsamples of the training pool.

    Attributes:
        config: SamplingConfig with sample sizes and trial count
        random_state: Random seed for reproducibility

    Example:
        >>> sampler = DataSampler(SamplingConfig(), random_state=42)
        >>> for spec in sampler.design():
        ...     X_sample, y_sample = sampler.sample_rows(X_train, y_train, spec)
    """

    def __init__(self, config: SamplingConfig, random_state: int):
        """Initialize the data sampler.

        Args:
            config: SamplingConfig with the design
            random_state: Random seed for reproducibility
        """
        self.config = config
        self.random_state = random_state

    def design(self) -> List[SampleSpec]:
        """Build the full sampling design.

        Seeds are drawn from a generator seeded with random_state, so the
        design is identical across calls and across processes.

        Returns:
            One SampleSpec per (sample size, trial) pair, size-major
        """
        rng = np.random.RandomState(self.random_state)
        specs = []
        for sample_size in self.config.sample_sizes:
            for trial in range(1, self.config.n_trials + 1):
                specs.append(SampleSpec(
                    sample_size=int(sample_size),
                    trial=trial,
                    seed=int(rng.randint(0, 2**31 - 1))
                ))
        return specs

    def sample_indices(self, n_rows: int, spec: SampleSpec) -> np.ndarray:
        """Positions of the rows drawn for a spec.

        Raises:
            ValueError: If the sample size exceeds the available rows
        """
        if spec.sample_size > n_rows:
            raise ValueError(
                f"Sample size {spec.sample_size} exceeds the {n_rows} available rows"
            )
        rng = np.random.RandomState(spec.seed)
        return rng.choice(n_rows, size=spec.sample_size, replace=False)

    def sample_rows(
        self,
        X: pd.DataFrame,
        y: pd.Series,
        spec: SampleSpec
    ) -> Tuple[pd.DataFrame, pd.Series]:
        """Sample rows uniformly without replacement.

        Args:
            X: Feature DataFrame
            y: Target Series
            spec: Design cell giving the size and seed

        Returns:
            Tuple of (X_sample, y_sample)
        """
        if len(X) != len(y):
            raise ValueError("X and y must have the same number of rows")

        positions = self.sample_indices(len(X), spec)
        return X.iloc[positions], y.iloc[positions]

    def get_sample_info(self, X: pd.DataFrame) -> dict:
        """Describe the design relative to a training pool.

        Args:
            X: Feature DataFrame of the training pool

        Returns:
            Dict with design information
        """
        n_rows = len(X)
        return {
            'sample_sizes': tuple(self.config.sample_sizes),
            'n_trials': self.config.n_trials,
            'n_samples': len(self.config.sample_sizes) * self.config.n_trials,
            'pool_rows': n_rows,
            'size_fractions': {
                size: size / n_rows if n_rows else float('nan')
                for size in self.config.sample_sizes
            },
            'feasible': all(size <= n_rows for size in self.config.sample_sizes)
        }
