"""Unit tests for benchmark execution (jobs, workers, orchestration).

This test suite validates job preparation, single-run execution, timeout
handling and the BenchmarkRunner end to end on a small design.
"""

import unittest
import sys
import tempfile
import logging
from pathlib import Path
import pandas as pd
import numpy as np
from sklearn.datasets import make_classification
from sklearn.neighbors import KNeighborsClassifier

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from modelbench.config import (
    BenchmarkConfig, SamplingConfig, ModelsConfig, ModelConfig, ParallelConfig, ScoringConfig
)
from modelbench.core import DataSampler, ModelRegistry
from modelbench.data import FashionData
from modelbench.runner import (
    RESULT_COLUMNS, run_trial, execute_job, make_failure_row,
    prepare_jobs, list_run_ids, get_jobs_info, run_job, BenchmarkRunner
)
from modelbench.tracking import BenchmarkDatabase


FAST_MODELS = ['knn', 'classification_tree', 'multinomial_logistic']


def make_data(n_train=600, n_test=150, seed=42):
    """Synthetic 49-feature, 10-class stand-in for the image data."""
    X, y = make_classification(
        n_samples=n_train + n_test,
        n_features=49,
        n_informative=25,
        n_classes=10,
        n_clusters_per_class=1,
        random_state=seed
    )
    X = pd.DataFrame(X, columns=[f'pixel{i + 1}' for i in range(49)])
    y = pd.Series(y, name='label')
    return FashionData(
        X.iloc[:n_train].reset_index(drop=True), y.iloc[:n_train].reset_index(drop=True),
        X.iloc[n_train:].reset_index(drop=True), y.iloc[n_train:].reset_index(drop=True)
    )


def make_config(models=None, sample_sizes=(100, 200), n_trials=2):
    return BenchmarkConfig(
        sampling=SamplingConfig(sample_sizes=sample_sizes, n_trials=n_trials),
        models=ModelsConfig(active_models=list(models or FAST_MODELS)),
        parallel=ParallelConfig(n_workers=1, timeout_minutes=None)
    )


def quiet_logger():
    logger = logging.getLogger('modelbench.tests')
    logger.setLevel(logging.CRITICAL)
    return logger


class TestJobPreparation(unittest.TestCase):
    """Test job preparation."""

    def setUp(self):
        self.data = make_data()
        self.config = make_config()
        self.sampler = DataSampler(self.config.sampling, random_state=self.config.random_state)
        self.registry = ModelRegistry(self.config.models, feature_names=self.data.feature_names)

    def test_one_job_per_run(self):
        jobs = prepare_jobs(self.data, self.sampler, self.registry, self.config.scoring)
        info = get_jobs_info(jobs)

        self.assertEqual(info['n_jobs'], 3 * 2 * 2)
        self.assertEqual(info['model_counts'], {name: 4 for name in FAST_MODELS})
        self.assertEqual(info['sample_size_counts'], {100: 6, 200: 6})

    def test_models_share_subsample(self):
        """Test all models of a design cell train on the same rows."""
        jobs = prepare_jobs(self.data, self.sampler, self.registry, self.config.scoring)
        cell = [job for job in jobs if job.spec == jobs[0].spec]

        self.assertEqual(len(cell), 3)
        for job in cell[1:]:
            self.assertTrue(job.X_sample.index.equals(cell[0].X_sample.index))

    def test_unique_run_ids(self):
        jobs = prepare_jobs(self.data, self.sampler, self.registry, self.config.scoring)
        run_ids = [job.run_id for job in jobs]

        self.assertEqual(len(set(run_ids)), len(run_ids))
        self.assertEqual(sorted(run_ids), sorted(list_run_ids(self.sampler, self.registry)))

    def test_skip_run_ids(self):
        run_ids = list_run_ids(self.sampler, self.registry)
        jobs = prepare_jobs(
            self.data, self.sampler, self.registry, self.config.scoring,
            skip_run_ids=run_ids[:5]
        )
        self.assertEqual(len(jobs), len(run_ids) - 5)
        self.assertFalse({job.run_id for job in jobs} & set(run_ids[:5]))

    def test_ensemble_run_id_tracks_members(self):
        """Test editing a member model changes the ensemble's run ids only."""
        models = ['knn', 'voting_ensemble']
        before = ModelRegistry(ModelsConfig(active_models=models))

        edited = ModelsConfig(active_models=models)
        edited.models['random_forest'].hyperparameters['n_estimators'] = 50
        after = ModelRegistry(edited)

        self.assertEqual(
            list_run_ids(self.sampler, before, ['knn']),
            list_run_ids(self.sampler, after, ['knn'])
        )
        self.assertFalse(
            set(list_run_ids(self.sampler, before, ['voting_ensemble']))
            & set(list_run_ids(self.sampler, after, ['voting_ensemble']))
        )

    def test_model_subset(self):
        jobs = prepare_jobs(
            self.data, self.sampler, self.registry, self.config.scoring,
            model_names=['knn']
        )
        self.assertEqual({job.model_name for job in jobs}, {'knn'})
        self.assertEqual(len(jobs), 4)


class TestTrialExecution(unittest.TestCase):
    """Test running a single job."""

    def setUp(self):
        self.data = make_data()
        config = make_config(models=['knn'], sample_sizes=(100,), n_trials=1)
        sampler = DataSampler(config.sampling, random_state=config.random_state)
        registry = ModelRegistry(config.models, feature_names=self.data.feature_names)
        self.job = prepare_jobs(self.data, sampler, registry, config.scoring)[0]

    def test_run_trial(self):
        result = run_trial(self.job)

        self.assertEqual(set(result), set(RESULT_COLUMNS))
        self.assertEqual(result['status'], 'completed')
        self.assertEqual(result['sample_size'], 100)
        self.assertAlmostEqual(result['size_fraction'], 100 / 600)
        self.assertGreaterEqual(result['accuracy'], 0.0)
        self.assertLessEqual(result['accuracy'], 1.0)
        self.assertAlmostEqual(result['accuracy'] + result['error_rate'], 1.0)
        self.assertAlmostEqual(
            result['runtime_seconds'], result['fit_seconds'] + result['predict_seconds']
        )

    def test_points_match_formula(self):
        result = run_trial(self.job)
        expected = (
            0.25 * result['size_fraction']
            + 0.25 * result['runtime_fraction']
            + 0.5 * result['error_rate']
        )
        self.assertAlmostEqual(result['points'], expected)

    def test_model_error_becomes_row(self):
        """Test failures are captured rather than raised."""
        self.job.X_sample = self.job.X_sample.iloc[:, :10]
        result = execute_job(self.job)

        self.assertEqual(result['status'], 'error')
        self.assertTrue(result['error_message'])
        self.assertTrue(np.isnan(result['points']))

    def test_failure_row(self):
        row = make_failure_row(self.job, 'timeout', 'too slow')

        self.assertEqual(set(row), set(RESULT_COLUMNS))
        self.assertEqual(row['status'], 'timeout')
        self.assertEqual(row['run_id'], self.job.run_id)
        self.assertTrue(np.isnan(row['accuracy']))

    def test_run_job_in_process(self):
        result = run_job(self.job, timeout_seconds=None)
        self.assertEqual(result['status'], 'completed')

    def test_run_job_in_subprocess(self):
        result = run_job(self.job, timeout_seconds=120)
        self.assertEqual(result['status'], 'completed')
        self.assertEqual(result['run_id'], self.job.run_id)

    def test_run_job_timeout(self):
        """Test a run that cannot finish in time is killed and recorded."""
        registry = ModelRegistry(ModelsConfig(), feature_names=self.data.feature_names)
        self.job.model = registry.build_model('random_forest', seed=0)

        result = run_job(self.job, timeout_seconds=0.001)
        self.assertEqual(result['status'], 'timeout')
        self.assertIn('exceeded timeout', result['error_message'])


class TestBenchmarkRunner(unittest.TestCase):
    """Test the orchestrator end to end."""

    def setUp(self):
        self.data = make_data()
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = Path(self.temp_dir) / 'bench.db'

    def test_run_without_database(self):
        runner = BenchmarkRunner(make_config(), self.data, logger=quiet_logger())
        results = runner.run()

        self.assertEqual(len(results), 12)
        self.assertEqual(list(results.columns), RESULT_COLUMNS)
        self.assertTrue((results['status'] == 'completed').all())
        self.assertEqual(results['sample_size'].tolist(), sorted(results['sample_size']))

    def test_reproducible(self):
        """Test identical configs give identical accuracies."""
        first = BenchmarkRunner(make_config(), self.data, logger=quiet_logger()).run()
        second = BenchmarkRunner(make_config(), self.data, logger=quiet_logger()).run()

        self.assertEqual(first['run_id'].tolist(), second['run_id'].tolist())
        np.testing.assert_allclose(first['accuracy'], second['accuracy'])

    def test_results_recorded(self):
        database = BenchmarkDatabase(self.db_path)
        runner = BenchmarkRunner(make_config(), self.data, database=database,
                                 logger=quiet_logger())
        results = runner.run()

        stored = database.query_trials()
        self.assertEqual(len(stored), len(results))
        self.assertEqual(set(stored['run_id']), set(results['run_id']))

        status = database.get_run_status()
        self.assertEqual(len(status), len(results))
        self.assertTrue((status['status'] == 'completed').all())

    def test_resume_skips_completed(self):
        database = BenchmarkDatabase(self.db_path)
        first = BenchmarkRunner(make_config(), self.data, database=database,
                                logger=quiet_logger()).run()

        second = BenchmarkRunner(make_config(), self.data, database=database,
                                 logger=quiet_logger()).run(resume=True)

        # Nothing retrained, all rows returned from the database
        self.assertEqual(len(database.query_trials()), len(first))
        self.assertEqual(sorted(second['run_id']), sorted(first['run_id']))
        np.testing.assert_allclose(
            second.sort_values('run_id')['points'].values,
            first.sort_values('run_id')['points'].values
        )

    def test_resume_runs_new_models(self):
        database = BenchmarkDatabase(self.db_path)
        BenchmarkRunner(make_config(models=['knn']), self.data, database=database,
                        logger=quiet_logger()).run()

        results = BenchmarkRunner(
            make_config(models=['knn', 'classification_tree']), self.data,
            database=database, logger=quiet_logger()
        ).run(resume=True)

        self.assertEqual(len(results), 8)
        self.assertEqual(len(database.query_trials()), 8)

    def test_new_design_replaces_stored_runs(self):
        """Test rows from a run with another seed are removed."""
        database = BenchmarkDatabase(self.db_path)
        first_config = make_config(models=['knn'])
        first_config.random_state = 1
        first = BenchmarkRunner(first_config, self.data, database=database,
                                logger=quiet_logger()).run()

        second_config = make_config(models=['knn'])
        second_config.random_state = 2
        second = BenchmarkRunner(second_config, self.data, database=database,
                                 logger=quiet_logger()).run()

        stored = database.query_trials()
        self.assertEqual(len(stored), len(second))
        self.assertEqual(set(stored['run_id']), set(second['run_id']))
        self.assertFalse(set(stored['run_id']) & set(first['run_id']))

    def test_failing_model_recorded(self):
        """Test a failing model leaves error rows and the others complete."""
        config = make_config(models=['knn', 'classification_tree'])
        config.models.models['broken_knn'] = ModelConfig(
            estimator_class=KNeighborsClassifier,
            hyperparameters={'n_neighbors': 0}
        )
        config.models.active_models.append('broken_knn')

        database = BenchmarkDatabase(self.db_path)
        results = BenchmarkRunner(config, self.data, database=database,
                                  logger=quiet_logger()).run()

        self.assertEqual(len(results), 3 * 2 * 2)
        broken = results[results['model_name'] == 'broken_knn']
        others = results[results['model_name'] != 'broken_knn']
        self.assertEqual(len(broken), 4)
        self.assertTrue((broken['status'] == 'error').all())
        self.assertTrue(broken['points'].isna().all())
        self.assertTrue((others['status'] == 'completed').all())
        self.assertFalse(others['points'].isna().any())

        stored = database.query_trials()
        self.assertEqual(len(stored), 12)
        stored_broken = stored[stored['model_name'] == 'broken_knn']
        self.assertTrue((stored_broken['status'] == 'error').all())
        self.assertTrue(stored_broken['points'].isna().all())
        self.assertEqual(
            set(stored[stored['status'] == 'completed']['model_name']),
            {'knn', 'classification_tree'}
        )

    def test_resume_requires_database(self):
        runner = BenchmarkRunner(make_config(), self.data, logger=quiet_logger())
        with self.assertRaises(ValueError):
            runner.run(resume=True)

    def test_infeasible_sample_size(self):
        with self.assertRaises(ValueError):
            BenchmarkRunner(make_config(sample_sizes=(100, 1000)), self.data,
                            logger=quiet_logger())

    def test_invalid_config(self):
        config = make_config()
        config.scoring = ScoringConfig(size_weight=1.0, runtime_weight=1.0, error_weight=1.0)
        with self.assertRaises(AssertionError):
            BenchmarkRunner(config, self.data, logger=quiet_logger())

    def test_parallel_run(self):
        config = make_config(models=['knn', 'classification_tree'], n_trials=1)
        config.parallel = ParallelConfig(n_workers=2, timeout_minutes=None)

        database = BenchmarkDatabase(self.db_path)
        results = BenchmarkRunner(config, self.data, database=database,
                                  logger=quiet_logger()).run()

        self.assertEqual(len(results), 4)
        self.assertTrue((results['status'] == 'completed').all())
        self.assertEqual(len(database.query_trials()), 4)


if __name__ == '__main__':
    unittest.main(verbosity=2)
