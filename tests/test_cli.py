"""Unit tests for the command-line interface."""

import unittest
import sys
import tempfile
from pathlib import Path
import numpy as np
import pandas as pd

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from modelbench.cli import parse_args, build_config, main


def write_pixel_csv(path, n_rows, seed):
    """Class-dependent pixel intensities so models have signal to learn."""
    rng = np.random.RandomState(seed)
    labels = np.arange(n_rows) % 10
    pixels = rng.normal(loc=labels[:, None] * 20.0, scale=15.0, size=(n_rows, 49))
    df = pd.DataFrame(pixels.clip(0, 255), columns=[f'pixel{i + 1}' for i in range(49)])
    df.insert(0, 'label', labels)
    df.to_csv(path, index=False)


class TestArguments(unittest.TestCase):
    """Test argument parsing and config construction."""

    def test_run_defaults(self):
        args = parse_args(['run'])
        config = build_config(args)

        self.assertEqual(config.sampling.sample_sizes, (500, 1000, 2000))
        self.assertEqual(config.sampling.n_trials, 3)
        self.assertEqual(config.random_state, 315)
        self.assertEqual(len(config.models.active_models), 10)
        self.assertEqual(config.parallel.timeout_minutes, 60)

    def test_run_overrides(self):
        args = parse_args([
            '--log-level', 'WARNING', 'run',
            '--sample-sizes', '100', '200',
            '--trials', '2',
            '--models', 'knn', 'classification_tree',
            '--seed', '7',
            '--timeout-minutes', '0',
            '--no-html'
        ])
        config = build_config(args)

        self.assertEqual(config.sampling.sample_sizes, (100, 200))
        self.assertEqual(config.models.active_models, ['knn', 'classification_tree'])
        self.assertEqual(config.random_state, 7)
        self.assertIsNone(config.parallel.timeout_seconds)
        self.assertFalse(config.report.write_html)
        self.assertEqual(config.tracking.log_level, 'WARNING')

    def test_unknown_model_rejected(self):
        args = parse_args(['run', '--models', 'perceptron'])
        with self.assertRaises(AssertionError):
            build_config(args)

    def test_command_required(self):
        with self.assertRaises(SystemExit):
            parse_args([])


class TestCommands(unittest.TestCase):
    """Test subcommands end to end on a tiny dataset."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.train_csv = self.temp_dir / 'train.csv'
        self.test_csv = self.temp_dir / 'test.csv'
        write_pixel_csv(self.train_csv, 400, seed=1)
        write_pixel_csv(self.test_csv, 100, seed=2)
        self.db_path = self.temp_dir / 'bench.db'
        self.output_dir = self.temp_dir / 'report'

    def run_args(self, *extra):
        return [
            '--log-level', 'ERROR', 'run',
            '--train-csv', str(self.train_csv),
            '--test-csv', str(self.test_csv),
            '--sample-sizes', '50', '100',
            '--trials', '2',
            '--models', 'knn', 'classification_tree',
            '--timeout-minutes', '0',
            '--db-path', str(self.db_path),
            '--output-dir', str(self.output_dir),
            '--no-html'
        ] + list(extra)

    def test_run_and_report(self):
        self.assertEqual(main(self.run_args()), 0)

        self.assertTrue((self.output_dir / 'report.md').exists())
        results = pd.read_csv(self.output_dir / 'results.csv')
        self.assertEqual(len(results), 2 * 2 * 2)
        self.assertTrue((results['status'] == 'completed').all())

        rerendered = self.temp_dir / 'again'
        code = main(['--log-level', 'ERROR', 'report', '--db-path', str(self.db_path),
                     '--output-dir', str(rerendered), '--no-html'])
        self.assertEqual(code, 0)
        self.assertEqual(len(pd.read_csv(rerendered / 'results.csv')), 8)

    def test_report_matches_latest_run(self):
        """Test re-rendering after two runs with different seeds."""
        self.assertEqual(main(self.run_args('--seed', '1')), 0)
        self.assertEqual(main(self.run_args('--seed', '2')), 0)
        written = pd.read_csv(self.output_dir / 'summary.csv')

        rerendered = self.temp_dir / 'again'
        code = main(['--log-level', 'ERROR', 'report', '--db-path', str(self.db_path),
                     '--output-dir', str(rerendered), '--no-html'])
        self.assertEqual(code, 0)

        summary = pd.read_csv(rerendered / 'summary.csv')
        self.assertTrue((summary['n_trials'] == 2).all())
        self.assertEqual(len(pd.read_csv(rerendered / 'results.csv')), 8)
        pd.testing.assert_frame_equal(
            summary.drop(columns=['runtime_fraction', 'runtime_seconds', 'points', 'points_std']),
            written.drop(columns=['runtime_fraction', 'runtime_seconds', 'points', 'points_std'])
        )

    def test_fresh_and_resume_conflict(self):
        self.assertEqual(main(self.run_args('--fresh', '--resume')), 1)

    def test_missing_csv(self):
        self.train_csv.unlink()
        self.assertEqual(main(self.run_args()), 1)

    def test_report_without_database(self):
        code = main(['--log-level', 'ERROR', 'report',
                     '--db-path', str(self.temp_dir / 'missing.db')])
        self.assertEqual(code, 1)

    def test_prepare_from_csv(self):
        source = self.temp_dir / 'full.csv'
        df = pd.DataFrame(np.zeros((4, 784), dtype=int),
                          columns=[f'pixel{i + 1}' for i in range(784)])
        df.insert(0, 'label', [0, 1, 2, 3])
        df.to_csv(source, index=False)

        output = self.temp_dir / 'small.csv'
        code = main(['--log-level', 'ERROR', 'prepare',
                     '--source-csv', str(source), '--output', str(output)])

        self.assertEqual(code, 0)
        self.assertEqual(pd.read_csv(output).shape, (4, 50))

    def test_prepare_needs_source(self):
        self.assertEqual(main(['--log-level', 'ERROR', 'prepare']), 2)

    def test_models(self):
        self.assertEqual(main(['models']), 0)


if __name__ == '__main__':
    unittest.main(verbosity=2)
