"""Base preprocessing shared by the scale-sensitive models.

Linear models, SVMs and the neural network are fitted on standardized
pixels; tree ensembles and KNN see the raw values.
"""

from typing import List

from sklearn.compose import ColumnTransformer
from sklearn.preprocessing import StandardScaler
from sklearn.pipeline import Pipeline


def create_base_preprocessor(feature_names: List[str]) -> ColumnTransformer:
    """Create the pixel standardization step.

    Parameters
    ----------
    feature_names : list of str
        Names of the pixel columns.

    Returns
    -------
    preprocessor : ColumnTransformer
        Unfitted preprocessor scaling every pixel column.
    """
    pixel_pipeline = Pipeline([
        ('scaler', StandardScaler())
    ])

    return ColumnTransformer(
        transformers=[
            ('pix', pixel_pipeline, list(feature_names))
        ],
        remainder='drop'
    )


def get_preprocessor_info(preprocessor: ColumnTransformer) -> dict:
    """Get information about a preprocessor's configuration.

    Parameters
    ----------
    preprocessor : ColumnTransformer
        The preprocessor to inspect.

    Returns
    -------
    info : dict
        Dictionary with preprocessor information.
    """
    info = {
        'n_transformers': len(preprocessor.transformers),
        'transformers': []
    }

    for name, transformer, columns in preprocessor.transformers:
        info['transformers'].append({
            'name': name,
            'type': type(transformer).__name__,
            'n_features': len(columns) if isinstance(columns, list) else 1
        })

    return info
