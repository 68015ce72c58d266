"""Dataset loading for the benchmark.

The benchmark works on Fashion-MNIST images downsampled from 28x28 to 7x7,
stored as CSV files with one label column and 49 pixel columns. The training
file is the pool that subsamples are drawn from; the test file is the fixed
held-out set every model is scored against.
"""

import logging
from pathlib import Path
from typing import Tuple, Union, Optional

import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)

CLASS_NAMES = [
    'T-shirt/top', 'Trouser', 'Pullover', 'Dress', 'Coat',
    'Sandal', 'Shirt', 'Sneaker', 'Bag', 'Ankle boot'
]

# Standard Fashion-MNIST split sizes
N_TRAIN_ROWS = 60000
N_TEST_ROWS = 10000


class FashionData:
    """Holds the training pool and the fixed test set.

    Attributes:
        X_train: Training pixels
        y_train: Training labels
        X_test: Test pixels
        y_test: Test labels
    """

    def __init__(
        self,
        X_train: pd.DataFrame,
        y_train: pd.Series,
        X_test: pd.DataFrame,
        y_test: pd.Series
    ):
        if list(X_train.columns) != list(X_test.columns):
            raise ValueError("Train and test sets must share the same feature columns")
        if len(X_train) != len(y_train) or len(X_test) != len(y_test):
            raise ValueError("Features and labels must have the same number of rows")
        if len(X_train) == 0 or len(X_test) == 0:
            raise ValueError("Train and test sets must not be empty")

        self.X_train = X_train
        self.y_train = y_train
        self.X_test = X_test
        self.y_test = y_test

    @property
    def n_train(self) -> int:
        """Total number of training rows (denominator of the size fraction)."""
        return len(self.X_train)

    @property
    def n_test(self) -> int:
        return len(self.X_test)

    @property
    def feature_names(self):
        return list(self.X_train.columns)

    def get_train(self) -> Tuple[pd.DataFrame, pd.Series]:
        return self.X_train, self.y_train

    def get_test(self) -> Tuple[pd.DataFrame, pd.Series]:
        return self.X_test, self.y_test

    def class_distribution(self) -> pd.DataFrame:
        """Label frequencies in both sets.

        Returns
        -------
        distribution : pd.DataFrame
            One row per label with train and test proportions.
        """
        distribution = pd.DataFrame({
            'train': self.y_train.value_counts(normalize=True),
            'test': self.y_test.value_counts(normalize=True)
        }).fillna(0.0).sort_index()
        distribution.index.name = 'label'
        return distribution

    def summary(self) -> str:
        """Get summary of the dataset.

        Returns
        -------
        summary : str
            Human-readable summary.
        """
        lines = [
            "Dataset Summary",
            "=" * 60,
            f"Training rows: {self.n_train:,}",
            f"Test rows:     {self.n_test:,}",
            f"Features:      {len(self.feature_names)}",
            f"Classes:       {self.y_train.nunique()}",
            "",
            "Class distribution (train / test):"
        ]
        for label, row in self.class_distribution().iterrows():
            name = _class_name(label)
            lines.append(f"  {name:<14} {row['train']:.3f} / {row['test']:.3f}")
        lines.append("=" * 60)
        return "\n".join(lines)


def _class_name(label) -> str:
    try:
        return CLASS_NAMES[int(label)]
    except (ValueError, IndexError):
        return str(label)


def _split_features(
    df: pd.DataFrame,
    label_column: str,
    source: Path
) -> Tuple[pd.DataFrame, pd.Series]:
    if label_column not in df.columns:
        raise ValueError(f"{source}: missing label column '{label_column}'")

    y = df[label_column]
    X = df.drop(columns=[label_column])

    non_numeric = [col for col in X.columns if not pd.api.types.is_numeric_dtype(X[col])]
    if non_numeric:
        raise ValueError(f"{source}: non-numeric pixel columns {non_numeric[:5]}")
    if X.isna().any().any():
        raise ValueError(f"{source}: pixel columns contain missing values")

    return X.astype(np.float64), y


def load_dataset(
    train_path: Union[str, Path],
    test_path: Union[str, Path],
    label_column: str = 'label',
    n_features: Optional[int] = 49
) -> FashionData:
    """Load the training pool and test set from CSV.

    Parameters
    ----------
    train_path : str or Path
        Training CSV (label column plus pixel columns).
    test_path : str or Path
        Test CSV with the same layout.
    label_column : str, default='label'
        Name of the label column.
    n_features : int or None, default=49
        Expected number of pixel columns. None skips the check.

    Returns
    -------
    data : FashionData
        Loaded dataset.

    Raises
    ------
    ValueError
        If a file is malformed or the feature layouts disagree.
    """
    train_path = Path(train_path)
    test_path = Path(test_path)

    X_train, y_train = _split_features(pd.read_csv(train_path), label_column, train_path)
    X_test, y_test = _split_features(pd.read_csv(test_path), label_column, test_path)

    if n_features is not None and X_train.shape[1] != n_features:
        raise ValueError(
            f"{train_path}: expected {n_features} features, found {X_train.shape[1]}"
        )

    data = FashionData(X_train, y_train, X_test, y_test)
    logger.info(
        f"Loaded {data.n_train:,} training rows and {data.n_test:,} test rows "
        f"with {len(data.feature_names)} features"
    )
    return data


def downsample_images(
    pixels: np.ndarray,
    image_side: int = 28,
    block: int = 4
) -> np.ndarray:
    """Mean-pool flattened square images.

    Parameters
    ----------
    pixels : np.ndarray
        Array of shape (n_images, image_side ** 2).
    image_side : int, default=28
        Side length of the source images.
    block : int, default=4
        Pooling block size. Must divide image_side.

    Returns
    -------
    pooled : np.ndarray
        Array of shape (n_images, (image_side // block) ** 2).
    """
    pixels = np.asarray(pixels, dtype=np.float64)
    if pixels.ndim != 2 or pixels.shape[1] != image_side ** 2:
        raise ValueError(
            f"Expected shape (n, {image_side ** 2}), got {pixels.shape}"
        )
    if image_side % block != 0:
        raise ValueError(f"block {block} does not divide image side {image_side}")

    side = image_side // block
    images = pixels.reshape(-1, side, block, side, block)
    return images.mean(axis=(2, 4)).reshape(len(pixels), side * side)


def _pixel_frame(pooled: np.ndarray, labels, label_column: str) -> pd.DataFrame:
    columns = [f'pixel{i + 1}' for i in range(pooled.shape[1])]
    df = pd.DataFrame(pooled, columns=columns)
    df.insert(0, label_column, np.asarray(labels).astype(int))
    return df


def prepare_downsampled_csv(
    source_csv: Union[str, Path],
    output_csv: Union[str, Path],
    label_column: str = 'label',
    image_side: int = 28,
    block: int = 4
) -> Path:
    """Convert a full-resolution Fashion-MNIST CSV into the pooled layout.

    Parameters
    ----------
    source_csv : str or Path
        CSV with a label column and image_side ** 2 pixel columns.
    output_csv : str or Path
        Destination CSV.

    Returns
    -------
    output_csv : Path
        Path of the written file.
    """
    source = pd.read_csv(source_csv)
    if label_column not in source.columns:
        raise ValueError(f"{source_csv}: missing label column '{label_column}'")

    pooled = downsample_images(
        source.drop(columns=[label_column]).to_numpy(),
        image_side=image_side,
        block=block
    )
    output_csv = Path(output_csv)
    output_csv.parent.mkdir(parents=True, exist_ok=True)
    _pixel_frame(pooled, source[label_column], label_column).to_csv(output_csv, index=False)

    logger.info(f"Wrote {len(pooled):,} downsampled rows to {output_csv}")
    return output_csv


def fetch_fashion_mnist(
    output_dir: Union[str, Path],
    label_column: str = 'label',
    block: int = 4
) -> Tuple[Path, Path]:
    """Download Fashion-MNIST from OpenML and write pooled train/test CSVs.

    OpenML stores the 60,000 training images first, followed by the 10,000
    test images.

    Parameters
    ----------
    output_dir : str or Path
        Directory receiving the two CSV files.

    Returns
    -------
    train_csv, test_csv : Path
        Paths of the written files.
    """
    from sklearn.datasets import fetch_openml

    logger.info("Downloading Fashion-MNIST from OpenML")
    X, y = fetch_openml('Fashion-MNIST', version=1, return_X_y=True, as_frame=False)
    pooled = downsample_images(X, image_side=28, block=block)

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    side = 28 // block
    train_csv = output_dir / f'fashion_train_{side}x{side}.csv'
    test_csv = output_dir / f'fashion_test_{side}x{side}.csv'

    _pixel_frame(pooled[:N_TRAIN_ROWS], y[:N_TRAIN_ROWS], label_column).to_csv(train_csv, index=False)
    _pixel_frame(pooled[N_TRAIN_ROWS:], y[N_TRAIN_ROWS:], label_column).to_csv(test_csv, index=False)

    logger.info(f"Wrote {train_csv} and {test_csv}")
    return train_csv, test_csv
