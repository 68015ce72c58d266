"""Unit tests for data management modules.

This test suite validates dataset loading, downsampling and preprocessing.
"""

import unittest
import sys
import tempfile
from pathlib import Path
import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from modelbench.data import (
    FashionData, load_dataset, downsample_images, prepare_downsampled_csv,
    create_base_preprocessor, get_preprocessor_info, CLASS_NAMES
)


def make_pixel_frame(n_rows, n_features=49, n_classes=10, seed=0):
    """Random pixel table in the benchmark CSV layout."""
    rng = np.random.RandomState(seed)
    df = pd.DataFrame(
        rng.randint(0, 256, size=(n_rows, n_features)),
        columns=[f'pixel{i + 1}' for i in range(n_features)]
    )
    df.insert(0, 'label', np.arange(n_rows) % n_classes)
    return df


class TestLoadDataset(unittest.TestCase):
    """Test CSV loading."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.train_csv = self.temp_dir / 'train.csv'
        self.test_csv = self.temp_dir / 'test.csv'
        make_pixel_frame(200, seed=1).to_csv(self.train_csv, index=False)
        make_pixel_frame(50, seed=2).to_csv(self.test_csv, index=False)

    def test_load(self):
        data = load_dataset(self.train_csv, self.test_csv)

        self.assertIsInstance(data, FashionData)
        self.assertEqual(data.n_train, 200)
        self.assertEqual(data.n_test, 50)
        self.assertEqual(len(data.feature_names), 49)
        self.assertNotIn('label', data.feature_names)

    def test_pixels_are_float(self):
        data = load_dataset(self.train_csv, self.test_csv)
        self.assertTrue(all(dtype == np.float64 for dtype in data.X_train.dtypes))

    def test_wrong_feature_count(self):
        with self.assertRaises(ValueError):
            load_dataset(self.train_csv, self.test_csv, n_features=784)

    def test_missing_label_column(self):
        with self.assertRaises(ValueError):
            load_dataset(self.train_csv, self.test_csv, label_column='class')

    def test_mismatched_columns(self):
        other = make_pixel_frame(50, n_features=36)
        other.to_csv(self.test_csv, index=False)
        with self.assertRaises(ValueError):
            load_dataset(self.train_csv, self.test_csv)

    def test_missing_values(self):
        df = make_pixel_frame(50)
        df.loc[3, 'pixel7'] = np.nan
        df.to_csv(self.test_csv, index=False)
        with self.assertRaises(ValueError):
            load_dataset(self.train_csv, self.test_csv)


class TestFashionData(unittest.TestCase):
    """Test the in-memory dataset."""

    def setUp(self):
        train = make_pixel_frame(100, seed=3)
        test = make_pixel_frame(40, seed=4)
        self.data = FashionData(
            train.drop(columns=['label']), train['label'],
            test.drop(columns=['label']), test['label']
        )

    def test_class_distribution(self):
        distribution = self.data.class_distribution()
        self.assertEqual(len(distribution), 10)
        self.assertAlmostEqual(distribution['train'].sum(), 1.0)
        self.assertAlmostEqual(distribution['test'].sum(), 1.0)

    def test_summary(self):
        summary = self.data.summary()
        self.assertIn("Dataset Summary", summary)
        self.assertIn(CLASS_NAMES[0], summary)

    def test_empty_rejected(self):
        X, y = self.data.get_train()
        with self.assertRaises(ValueError):
            FashionData(X, y, X.iloc[:0], y.iloc[:0])


class TestDownsampling(unittest.TestCase):
    """Test image pooling."""

    def test_output_shape(self):
        pixels = np.zeros((5, 784))
        self.assertEqual(downsample_images(pixels).shape, (5, 49))

    def test_block_means(self):
        """Each output pixel is the mean of its 4x4 block."""
        image = np.arange(784, dtype=float).reshape(28, 28)
        pooled = downsample_images(image.reshape(1, -1))

        self.assertAlmostEqual(pooled[0, 0], image[:4, :4].mean())
        self.assertAlmostEqual(pooled[0, 1], image[:4, 4:8].mean())
        self.assertAlmostEqual(pooled[0, 7], image[4:8, :4].mean())
        self.assertAlmostEqual(pooled[0, 48], image[24:, 24:].mean())

    def test_invalid_shape(self):
        with self.assertRaises(ValueError):
            downsample_images(np.zeros((2, 100)))

    def test_block_must_divide(self):
        with self.assertRaises(ValueError):
            downsample_images(np.zeros((2, 784)), block=5)

    def test_prepare_csv(self):
        temp_dir = Path(tempfile.mkdtemp())
        source = temp_dir / 'full.csv'
        make_pixel_frame(12, n_features=784).to_csv(source, index=False)

        output = prepare_downsampled_csv(source, temp_dir / 'out' / 'small.csv')
        df = pd.read_csv(output)

        self.assertEqual(df.shape, (12, 50))
        self.assertEqual(df.columns[0], 'label')
        self.assertEqual(list(df['label']), [i % 10 for i in range(12)])


class TestPreprocessor(unittest.TestCase):
    """Test base preprocessor."""

    def test_creation(self):
        features = [f'pixel{i + 1}' for i in range(49)]
        preprocessor = create_base_preprocessor(features)

        self.assertIsInstance(preprocessor, ColumnTransformer)
        info = get_preprocessor_info(preprocessor)
        self.assertEqual(info['n_transformers'], 1)
        self.assertEqual(info['transformers'][0]['n_features'], 49)

    def test_standardizes(self):
        df = make_pixel_frame(100).drop(columns=['label']).astype(float)
        preprocessor = create_base_preprocessor(list(df.columns))
        scaled = preprocessor.fit_transform(df)

        self.assertEqual(scaled.shape, (100, 49))
        np.testing.assert_allclose(scaled.mean(axis=0), 0.0, atol=1e-9)


if __name__ == '__main__':
    unittest.main(verbosity=2)
