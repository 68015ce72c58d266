"""Consolidated configuration for the classifier benchmark.

This module provides a type-safe, validated configuration structure using
dataclasses. All configuration parameters are consolidated here with:
- Clear documentation
- Type hints
- Validation logic
- Default values for the standard Fashion-MNIST benchmark

The configuration is organized hierarchically:
    BenchmarkConfig (root)
    ├── DataConfig
    ├── SamplingConfig
    ├── ScoringConfig
    ├── ModelsConfig
    │   └── ModelConfig (per model)
    ├── ParallelConfig
    ├── TrackingConfig
    └── ReportConfig

Usage:
    >>> from modelbench.config import BenchmarkConfig
    >>> config = BenchmarkConfig()  # Use defaults
    >>> config.validate()  # Check configuration validity

    >>> # Or customize
    >>> config = BenchmarkConfig(
    ...     sampling=SamplingConfig(sample_sizes=(250, 500), n_trials=2),
    ...     scoring=ScoringConfig(runtime_budget_seconds=60.0)
    ... )
"""

from dataclasses import dataclass, field
from typing import Tuple, Dict, List, Optional, Any
from pathlib import Path

from sklearn.ensemble import (
    RandomForestClassifier, HistGradientBoostingClassifier, VotingClassifier
)
from sklearn.linear_model import LogisticRegression, SGDClassifier
from sklearn.neighbors import KNeighborsClassifier
from sklearn.neural_network import MLPClassifier
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier


# ==============================================================================
# DATA CONFIGURATION
# ==============================================================================

@dataclass
class DataConfig:
    """Dataset location and layout.

    Attributes:
        train_path: CSV file with the training rows (label + pixel columns)
        test_path: CSV file with the fixed held-out test rows
        label_column: Name of the label column in both files
        n_features: Expected number of pixel features per row
        image_side: Side length of the downsampled square image
    """
    train_path: Path = Path('data/fashion_train_7x7.csv')
    test_path: Path = Path('data/fashion_test_7x7.csv')
    label_column: str = 'label'
    n_features: int = 49
    image_side: int = 7

    def __post_init__(self):
        """Convert strings to Path objects."""
        self.train_path = Path(self.train_path)
        self.test_path = Path(self.test_path)

    def validate(self):
        """Validate data configuration."""
        assert self.label_column, "label_column must be non-empty"
        assert self.n_features > 0, "n_features must be positive"
        assert self.image_side ** 2 == self.n_features, \
            "n_features must equal image_side squared"


# ==============================================================================
# SAMPLING CONFIGURATION
# ==============================================================================

@dataclass
class SamplingConfig:
    """Subsample design.

    Every model is trained once per (sample size, trial) pair on a uniform
    random subsample of the training rows.

    Attributes:
        sample_sizes: Number of training rows drawn for each size level
        n_trials: Number of repeated trials per sample size
    """
    sample_sizes: Tuple[int, ...] = (500, 1000, 2000)
    n_trials: int = 3

    def __post_init__(self):
        self.sample_sizes = tuple(int(size) for size in self.sample_sizes)

    def validate(self):
        """Validate sampling configuration."""
        assert len(self.sample_sizes) > 0, "must have at least one sample size"
        assert all(size > 0 for size in self.sample_sizes), "sample sizes must be positive"
        assert list(self.sample_sizes) == sorted(set(self.sample_sizes)), \
            "sample sizes must be unique and increasing"
        assert self.n_trials > 0, "n_trials must be positive"


# ==============================================================================
# SCORING CONFIGURATION
# ==============================================================================

@dataclass
class ScoringConfig:
    """Weighted scoring formula.

    points = size_weight * A + runtime_weight * B + error_weight * C

    where A is the fraction of training rows used, B is the runtime as a
    fraction of the runtime budget (capped at 1) and C is the test-set
    misclassification rate. Lower points are better.

    Attributes:
        size_weight: Weight of the sample-size fraction (A)
        runtime_weight: Weight of the runtime fraction (B)
        error_weight: Weight of the misclassification rate (C)
        runtime_budget_seconds: Runtime at which B saturates at 1
    """
    size_weight: float = 0.25
    runtime_weight: float = 0.25
    error_weight: float = 0.50
    runtime_budget_seconds: float = 3600.0

    def validate(self):
        """Validate scoring configuration."""
        weights = (self.size_weight, self.runtime_weight, self.error_weight)
        assert all(w >= 0 for w in weights), "weights must be non-negative"
        assert abs(sum(weights) - 1.0) < 1e-9, "weights must sum to 1.0"
        assert self.runtime_budget_seconds > 0, "runtime_budget_seconds must be positive"


# ==============================================================================
# MODEL CONFIGURATION
# ==============================================================================

@dataclass
class ModelConfig:
    """Configuration for a single benchmark model.

    Attributes:
        estimator_class: The sklearn estimator class
        hyperparameters: Dict mapping parameter names to static values
        scale_features: Whether to standardize pixels before the estimator
        enabled: Whether this model is available to the benchmark
        description: Short human-readable label used in reports
    """
    estimator_class: type
    hyperparameters: Dict[str, Any] = field(default_factory=dict)
    scale_features: bool = False
    enabled: bool = True
    description: str = ''


@dataclass
class ModelsConfig:
    """The model registry configuration.

    Attributes:
        models: Dict mapping model names to their configs
        active_models: Model names included in a benchmark run
    """
    models: Dict[str, ModelConfig] = field(default_factory=dict)
    active_models: List[str] = field(default_factory=lambda: [
        'multinomial_logistic', 'knn', 'classification_tree',
        'random_forest', 'gradient_boosting', 'linear_svm',
        'kernel_svm', 'neural_net', 'elastic_net', 'voting_ensemble'
    ])

    def __post_init__(self):
        """Initialize default model configs if not provided."""
        if not self.models:
            self.models = get_default_model_configs()

    def validate(self):
        """Validate model configuration."""
        assert len(self.active_models) > 0, "must have at least one active model"
        assert len(set(self.active_models)) == len(self.active_models), \
            "active_models must not contain duplicates"
        for name in self.active_models:
            assert name in self.models, f"Active model '{name}' not in model configs"
            assert self.models[name].enabled, f"Model '{name}' is not enabled"


# ==============================================================================
# PARALLEL EXECUTION CONFIGURATION
# ==============================================================================

@dataclass
class ParallelConfig:
    """Trial execution configuration.

    Runtime is part of the score, so the default runs one trial at a time.
    The default timeout equals the default runtime budget, so a run is only
    killed once its runtime term has saturated.

    Attributes:
        n_workers: Number of trials trained concurrently
        timeout_minutes: Maximum time per trial before forced termination,
            None runs trials in the calling process without a timeout
    """
    n_workers: int = 1
    timeout_minutes: Optional[float] = 60

    def validate(self):
        """Validate parallel configuration."""
        assert self.n_workers > 0, "n_workers must be positive"
        if self.timeout_minutes is not None:
            assert self.timeout_minutes > 0, "timeout_minutes must be positive"

    @property
    def timeout_seconds(self) -> Optional[float]:
        if self.timeout_minutes is None:
            return None
        return self.timeout_minutes * 60


# ==============================================================================
# TRACKING CONFIGURATION
# ==============================================================================

@dataclass
class TrackingConfig:
    """Database and logging configuration.

    Attributes:
        db_path: Path to SQLite database file
        log_level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR')
        log_file: Optional log file written in addition to stdout
    """
    db_path: str = 'benchmark_tracking.db'
    log_level: str = 'INFO'
    log_file: Optional[str] = None

    def validate(self):
        """Validate tracking configuration."""
        assert self.log_level in ['DEBUG', 'INFO', 'WARNING', 'ERROR'], \
            "log_level must be DEBUG, INFO, WARNING, or ERROR"


# ==============================================================================
# REPORT CONFIGURATION
# ==============================================================================

@dataclass
class ReportConfig:
    """Report rendering configuration.

    Attributes:
        output_dir: Directory receiving the CSV tables and rendered reports
        title: Report title
        write_html: Whether to render the HTML report with plotly figures
        decimals: Number of decimals shown in rendered tables
    """
    output_dir: Path = Path('report')
    title: str = 'Fashion-MNIST Classifier Benchmark'
    write_html: bool = True
    decimals: int = 4

    def __post_init__(self):
        self.output_dir = Path(self.output_dir)

    def validate(self):
        """Validate report configuration."""
        assert self.title, "title must be non-empty"
        assert 0 <= self.decimals <= 10, "decimals must be in [0, 10]"


# ==============================================================================
# ROOT CONFIGURATION
# ==============================================================================

@dataclass
class BenchmarkConfig:
    """Complete benchmark configuration.

    This is the root configuration object. Create an instance and call
    validate() before use.

    Attributes:
        random_state: Random seed for the sampling design and model seeds
        data: Dataset configuration
        sampling: Subsample design
        scoring: Weighted scoring formula
        models: Model registry configuration
        parallel: Trial execution configuration
        tracking: Database and logging configuration
        report: Report rendering configuration

    Example:
        >>> config = BenchmarkConfig()
        >>> config.validate()
        >>> print(f"Benchmarking {len(config.models.active_models)} models")
    """
    random_state: int = 315
    data: DataConfig = field(default_factory=DataConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    models: ModelsConfig = field(default_factory=ModelsConfig)
    parallel: ParallelConfig = field(default_factory=ParallelConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    report: ReportConfig = field(default_factory=ReportConfig)

    def validate(self):
        """Validate entire configuration hierarchy.

        Raises:
            AssertionError: If any configuration parameter is invalid
        """
        self.data.validate()
        self.sampling.validate()
        self.scoring.validate()
        self.models.validate()
        self.parallel.validate()
        self.tracking.validate()
        self.report.validate()

        timeout = self.parallel.timeout_seconds
        if timeout is not None:
            assert timeout >= self.scoring.runtime_budget_seconds, \
                "timeout_minutes must not be shorter than the runtime budget"

    @property
    def n_runs(self) -> int:
        """Total number of (model, sample size, trial) runs."""
        return (
            len(self.models.active_models)
            * len(self.sampling.sample_sizes)
            * self.sampling.n_trials
        )

    def summary(self) -> str:
        """Generate a human-readable configuration summary.

        Returns:
            Multi-line string describing key configuration parameters
        """
        timeout = (
            f"{self.parallel.timeout_minutes} minutes"
            if self.parallel.timeout_minutes is not None else "disabled"
        )
        lines = [
            "Benchmark Configuration Summary",
            "=" * 50,
            f"Random State: {self.random_state}",
            "",
            "Data:",
            f"  Train: {self.data.train_path}",
            f"  Test: {self.data.test_path}",
            f"  Features: {self.data.n_features}",
            "",
            "Sampling:",
            f"  Sample sizes: {self.sampling.sample_sizes}",
            f"  Trials per size: {self.sampling.n_trials}",
            "",
            "Scoring:",
            f"  Weights (A, B, C): ({self.scoring.size_weight}, "
            f"{self.scoring.runtime_weight}, {self.scoring.error_weight})",
            f"  Runtime budget: {self.scoring.runtime_budget_seconds:.0f}s",
            "",
            "Models:",
            f"  Active models: {len(self.models.active_models)}",
            f"  Total runs: {self.n_runs}",
            "",
            "Execution:",
            f"  Workers: {self.parallel.n_workers}",
            f"  Timeout: {timeout}",
            "",
            "Tracking:",
            f"  Database: {self.tracking.db_path}",
            f"  Log file: {self.tracking.log_file or 'none'}",
            ""
        ]
        return "\n".join(lines)


# ==============================================================================
# DEFAULT MODEL CONFIGURATIONS
# ==============================================================================

def get_default_model_configs() -> Dict[str, ModelConfig]:
    """Get the default configurations of the ten benchmark models.

    Returns:
        Dict mapping model names to ModelConfig objects
    """
    return {
        'multinomial_logistic': ModelConfig(
            estimator_class=LogisticRegression,
            hyperparameters={
                'solver': 'lbfgs',
                'max_iter': 1000
            },
            scale_features=True,
            description='Multinomial logistic regression'
        ),
        'knn': ModelConfig(
            estimator_class=KNeighborsClassifier,
            hyperparameters={'n_neighbors': 5},
            description='K-nearest neighbors (k=5)'
        ),
        'classification_tree': ModelConfig(
            estimator_class=DecisionTreeClassifier,
            hyperparameters={'max_depth': 10},
            description='Classification tree (depth 10)'
        ),
        'random_forest': ModelConfig(
            estimator_class=RandomForestClassifier,
            hyperparameters={'n_estimators': 500},
            description='Random forest (500 trees)'
        ),
        'gradient_boosting': ModelConfig(
            estimator_class=HistGradientBoostingClassifier,
            hyperparameters={'max_iter': 100},
            description='Gradient-boosted trees (100 rounds)'
        ),
        'linear_svm': ModelConfig(
            estimator_class=SVC,
            hyperparameters={'kernel': 'linear'},
            scale_features=True,
            description='Support vector machine (linear kernel)'
        ),
        'kernel_svm': ModelConfig(
            estimator_class=SVC,
            hyperparameters={'kernel': 'rbf', 'gamma': 'scale'},
            scale_features=True,
            description='Support vector machine (radial kernel)'
        ),
        'neural_net': ModelConfig(
            estimator_class=MLPClassifier,
            hyperparameters={
                'hidden_layer_sizes': (32,),
                'max_iter': 500
            },
            scale_features=True,
            description='Neural network (one hidden layer, 32 units)'
        ),
        'elastic_net': ModelConfig(
            estimator_class=SGDClassifier,
            hyperparameters={
                'loss': 'log_loss',
                'penalty': 'elasticnet',
                'l1_ratio': 0.5,
                'alpha': 1e-4,
                'max_iter': 1000,
                'tol': 1e-3
            },
            scale_features=True,
            description='Elastic-net regularized regression (mix 0.5)'
        ),
        'voting_ensemble': ModelConfig(
            estimator_class=VotingClassifier,
            hyperparameters={
                'members': ['knn', 'random_forest', 'kernel_svm'],
                'voting': 'hard'
            },
            description='Majority vote of knn, random forest and kernel SVM'
        )
    }
