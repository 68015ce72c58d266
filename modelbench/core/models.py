"""Model registry for the benchmark.

Provides a clean interface for building the ten benchmark models from their
configuration as unfitted sklearn pipelines.
"""

from typing import Dict, Any, List, Optional

from sklearn.base import BaseEstimator
from sklearn.pipeline import Pipeline

from modelbench.config import ModelsConfig, ModelConfig
from modelbench.data.preprocessing import create_base_preprocessor, get_preprocessor_info


class ModelRegistry:
    """Builds benchmark models from configuration.

    Attributes:
        config: ModelsConfig with model configurations
        feature_names: Pixel column names used by the scaling step

    Example:
        >>> from modelbench.config import BenchmarkConfig
        >>> config = BenchmarkConfig()
        >>> registry = ModelRegistry(config.models, feature_names)
        >>>
        >>> for name in registry.get_active_models():
        ...     model = registry.build_model(name, seed=42)
        ...     model.fit(X_sample, y_sample)
    """

    def __init__(self, config: ModelsConfig, feature_names: Optional[List[str]] = None):
        """Initialize the registry.

        Args:
            config: ModelsConfig with model configurations
            feature_names: Pixel column names. When None, scaled models
                standardize every input column.
        """
        self.config = config
        self.feature_names = list(feature_names) if feature_names is not None else None

    def get_active_models(self) -> List[str]:
        """Get list of active model names.

        Returns:
            List of model names that are enabled, in configured order
        """
        return [
            name for name in self.config.active_models
            if self.config.models[name].enabled
        ]

    def get_config(self, model_name: str) -> ModelConfig:
        """Get configuration for a specific model.

        Raises:
            KeyError: If model name not found
        """
        if model_name not in self.config.models:
            raise KeyError(f"Model '{model_name}' not found in config")

        return self.config.models[model_name]

    def _preprocessor(self):
        if self.feature_names is None:
            from sklearn.preprocessing import StandardScaler
            return StandardScaler()
        return create_base_preprocessor(self.feature_names)

    def _build_estimator(self, model_name: str, _seen: tuple = ()) -> BaseEstimator:
        clf_config = self.get_config(model_name)
        hyperparameters = dict(clf_config.hyperparameters)

        # Voting ensembles are assembled from other registry entries
        members = hyperparameters.pop('members', None)
        if members is not None:
            if model_name in _seen:
                raise ValueError(f"Model '{model_name}' references itself")
            hyperparameters['estimators'] = [
                (member, self._build_pipeline(member, _seen + (model_name,)))
                for member in members
            ]

        return clf_config.estimator_class(**hyperparameters)

    def _build_pipeline(self, model_name: str, _seen: tuple = ()) -> Pipeline:
        clf_config = self.get_config(model_name)
        steps = []
        if clf_config.scale_features:
            steps.append(('preprocessor', self._preprocessor()))
        steps.append(('classifier', self._build_estimator(model_name, _seen)))
        return Pipeline(steps)

    def resolve_hyperparameters(self, model_name: str, _seen: tuple = ()) -> Dict[str, Any]:
        """Hyperparameters with ensemble members replaced by their own settings.

        Editing a member model therefore changes what identifies the ensemble.

        Raises:
            ValueError: If an ensemble references itself
        """
        hyperparameters = dict(self.get_config(model_name).hyperparameters)
        members = hyperparameters.get('members')
        if members is not None:
            if model_name in _seen:
                raise ValueError(f"Model '{model_name}' references itself")
            hyperparameters['members'] = {
                member: {
                    'hyperparameters': self.resolve_hyperparameters(
                        member, _seen + (model_name,)
                    ),
                    'scale_features': self.get_config(member).scale_features
                }
                for member in members
            }
        return hyperparameters

    def build_model(self, model_name: str, seed: Optional[int] = None) -> Pipeline:
        """Build an unfitted model pipeline.

        Args:
            model_name: Name of the model
            seed: Value assigned to every random_state parameter in the
                pipeline, including ensemble members

        Returns:
            sklearn Pipeline ending in a step named 'classifier'
        """
        pipeline = self._build_pipeline(model_name)

        if seed is not None:
            seeded = {
                key: seed for key in pipeline.get_params(deep=True)
                if key.endswith('random_state')
            }
            pipeline.set_params(**seeded)

        return pipeline

    def get_registry_summary(self) -> str:
        """Generate human-readable summary of the registry.

        Returns:
            Multi-line string describing the models
        """
        active = self.get_active_models()

        lines = [
            "Model Registry Summary",
            "=" * 50,
            f"Total models: {len(self.config.models)}",
            f"Active models: {len(active)}",
        ]

        if self.feature_names is not None:
            info = get_preprocessor_info(create_base_preprocessor(self.feature_names))
            steps = ', '.join(
                f"{t['name']} ({t['type']}, {t['n_features']} features)"
                for t in info['transformers']
            )
            lines.append(f"Scaling step: {steps}")

        lines.extend(["", "Active models:"])

        for name in active:
            clf_config = self.config.models[name]
            scaled = ", scaled" if clf_config.scale_features else ""
            lines.append(
                f"  - {name}: {clf_config.estimator_class.__name__}{scaled}"
                + (f" ({clf_config.description})" if clf_config.description else "")
            )

        return "\n".join(lines)

    def validate_model(self, model_name: str) -> tuple:
        """Validate that a model can be built and has valid config.

        Returns:
            Tuple of (is_valid: bool, message: str)
        """
        try:
            if model_name not in self.config.models:
                return False, f"Model '{model_name}' not found"

            if not self.config.models[model_name].enabled:
                return False, f"Model '{model_name}' is disabled"

            model = self.build_model(model_name, seed=0)

            if not hasattr(model, 'fit'):
                return False, "Model missing 'fit' method"

            if not hasattr(model, 'predict'):
                return False, "Model missing 'predict' method"

            return True, f"Model '{model_name}' is valid"

        except Exception as e:
            return False, f"Error building model: {str(e)}"

    def validate_all(self) -> Dict[str, tuple]:
        """Validate all models in the registry.

        Returns:
            Dict mapping model names to (is_valid, message) tuples
        """
        return {name: self.validate_model(name) for name in self.config.models}


def describe_hyperparameters(config: ModelConfig) -> Dict[str, Any]:
    """Hyperparameters as shown in reports (ensemble members by name)."""
    return {
        key: (', '.join(value) if key == 'members' else value)
        for key, value in config.hyperparameters.items()
    }
