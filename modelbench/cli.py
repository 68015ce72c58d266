"""Command-line interface for the benchmark.

Subcommands:
    run      Train and score every model, then write the report
    report   Re-render the report from a tracking database
    prepare  Build the 49-feature CSVs (downsample or download)
    models   List the model registry
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from modelbench.analysis.aggregate import rank_models
from modelbench.analysis.report import write_report
from modelbench.config import (
    BenchmarkConfig, DataConfig, SamplingConfig, ScoringConfig,
    ModelsConfig, ParallelConfig, TrackingConfig, ReportConfig
)
from modelbench.core.models import ModelRegistry
from modelbench.data.loading import load_dataset, prepare_downsampled_csv, fetch_fashion_mnist
from modelbench.runner.benchmark import BenchmarkRunner
from modelbench.runner.trial import RESULT_COLUMNS
from modelbench.tracking.database import BenchmarkDatabase
from modelbench.tracking.logger import (
    setup_logger, log_error, log_success, log_performance_metrics
)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Configure and parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    data_def = DataConfig()
    sampling_def = SamplingConfig()
    scoring_def = ScoringConfig()
    parallel_def = ParallelConfig()
    tracking_def = TrackingConfig()
    report_def = ReportConfig()

    parser = argparse.ArgumentParser(
        prog='modelbench',
        description="Benchmark classifiers on downsampled Fashion-MNIST.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--log-level', default=tracking_def.log_level,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    subparsers = parser.add_subparsers(dest='command', required=True)

    # ===== run =====
    run = subparsers.add_parser(
        'run', help="Run the benchmark and write the report",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    data_group = run.add_argument_group("Data")
    data_group.add_argument('--train-csv', type=Path, default=data_def.train_path)
    data_group.add_argument('--test-csv', type=Path, default=data_def.test_path)
    data_group.add_argument('--label-column', default=data_def.label_column)
    data_group.add_argument('--n-features', type=int, default=data_def.n_features)

    design_group = run.add_argument_group("Design")
    design_group.add_argument('--sample-sizes', type=int, nargs='+',
                              default=list(sampling_def.sample_sizes))
    design_group.add_argument('--trials', type=int, default=sampling_def.n_trials)
    design_group.add_argument('--models', nargs='+', default=None,
                              help="Subset of model names (default: all ten)")
    design_group.add_argument('--seed', type=int, default=BenchmarkConfig.random_state)
    design_group.add_argument('--runtime-budget', type=float,
                              default=scoring_def.runtime_budget_seconds,
                              help="Seconds at which the runtime term saturates")

    exec_group = run.add_argument_group("Execution")
    exec_group.add_argument('--workers', type=int, default=parallel_def.n_workers)
    exec_group.add_argument('--timeout-minutes', type=float,
                            default=parallel_def.timeout_minutes,
                            help="Per-run timeout; 0 disables process isolation")
    exec_group.add_argument('--resume', action='store_true',
                            help="Skip runs already completed in the database")
    exec_group.add_argument('--fresh', action='store_true',
                            help="Delete the tracking database before running")

    out_group = run.add_argument_group("Output")
    out_group.add_argument('--db-path', type=Path, default=Path(tracking_def.db_path))
    out_group.add_argument('--output-dir', type=Path, default=report_def.output_dir)
    out_group.add_argument('--no-html', action='store_true')
    out_group.add_argument('--log-file', type=Path, default=None)

    # ===== report =====
    report = subparsers.add_parser(
        'report', help="Re-render the report from a tracking database",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    report.add_argument('--db-path', type=Path, default=Path(tracking_def.db_path))
    report.add_argument('--output-dir', type=Path, default=report_def.output_dir)
    report.add_argument('--no-html', action='store_true')

    # ===== prepare =====
    prepare = subparsers.add_parser(
        'prepare', help="Build the 49-feature CSV files",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    prepare.add_argument('--fetch', action='store_true',
                         help="Download Fashion-MNIST from OpenML")
    prepare.add_argument('--source-csv', type=Path, default=None,
                         help="Full-resolution CSV (label + 784 pixels) to downsample")
    prepare.add_argument('--output', type=Path, default=Path('data'),
                         help="Output CSV (with --source-csv) or directory (with --fetch)")

    # ===== models =====
    subparsers.add_parser('models', help="List the model registry")

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> BenchmarkConfig:
    """Translate `run` arguments into a validated BenchmarkConfig."""
    models = ModelsConfig()
    if args.models:
        models.active_models = list(args.models)

    timeout = args.timeout_minutes if args.timeout_minutes else None

    config = BenchmarkConfig(
        random_state=args.seed,
        data=DataConfig(
            train_path=args.train_csv,
            test_path=args.test_csv,
            label_column=args.label_column,
            n_features=args.n_features,
            image_side=int(round(args.n_features ** 0.5))
        ),
        sampling=SamplingConfig(sample_sizes=tuple(args.sample_sizes), n_trials=args.trials),
        scoring=ScoringConfig(runtime_budget_seconds=args.runtime_budget),
        models=models,
        parallel=ParallelConfig(n_workers=args.workers, timeout_minutes=timeout),
        tracking=TrackingConfig(
            db_path=str(args.db_path),
            log_level=args.log_level,
            log_file=str(args.log_file) if args.log_file else None
        ),
        report=ReportConfig(output_dir=args.output_dir, write_html=not args.no_html)
    )
    config.validate()
    return config


def cmd_run(args: argparse.Namespace, logger: logging.Logger) -> int:
    config = build_config(args)
    logger.info("\n" + config.summary())

    data = load_dataset(
        config.data.train_path,
        config.data.test_path,
        label_column=config.data.label_column,
        n_features=config.data.n_features
    )
    logger.info("\n" + data.summary())

    database = BenchmarkDatabase(Path(config.tracking.db_path))
    if args.fresh:
        if args.resume:
            raise ValueError("--fresh and --resume cannot be combined")
        database.reset()

    runner = BenchmarkRunner(config, data, database=database, logger=logger)
    results = runner.run(resume=args.resume)

    scoreboard = rank_models(results)
    if not scoreboard.empty:
        best = scoreboard.iloc[0]
        log_performance_metrics(
            logger,
            {
                'sample_size': int(best['sample_size']),
                'accuracy': float(best['accuracy']),
                'runtime_seconds': float(best['runtime_seconds']),
                'points': float(best['points'])
            },
            prefix=f"Best model: {best['model_name']}"
        )
    logger.info(f"Tracking database: {database.db_path} ({database.get_size_mb():.2f} MB)")

    paths = write_report(
        results,
        config.report.output_dir,
        config=config,
        title=config.report.title,
        write_html=config.report.write_html,
        decimals=config.report.decimals,
        data_summary=data.summary()
    )
    log_success(logger, f"Report: {paths['markdown']}")
    return 0


def cmd_report(args: argparse.Namespace, logger: logging.Logger) -> int:
    database = BenchmarkDatabase(args.db_path)
    if not database.exists():
        logger.error(f"Tracking database not found: {args.db_path}")
        return 1

    results = database.query_trials()
    if results.empty:
        logger.error(f"No runs recorded in {args.db_path}")
        return 1

    # Latest row per run wins
    results = results.drop_duplicates('run_id', keep='first').reindex(columns=RESULT_COLUMNS)
    results = results.sort_values(['sample_size', 'trial', 'model_name']).reset_index(drop=True)

    paths = write_report(results, args.output_dir, write_html=not args.no_html)
    log_success(logger, f"Report: {paths['markdown']}")
    return 0


def cmd_prepare(args: argparse.Namespace, logger: logging.Logger) -> int:
    if args.fetch:
        train_csv, test_csv = fetch_fashion_mnist(args.output)
        log_success(logger, f"Wrote {train_csv} and {test_csv}")
        return 0

    if args.source_csv is None:
        logger.error("prepare needs --fetch or --source-csv")
        return 2

    output = args.output
    if output.suffix != '.csv':
        output = output / f"{args.source_csv.stem}_7x7.csv"
    prepare_downsampled_csv(args.source_csv, output)
    log_success(logger, f"Wrote {output}")
    return 0


def cmd_models(args: argparse.Namespace, logger: logging.Logger) -> int:
    registry = ModelRegistry(ModelsConfig())
    print(registry.get_registry_summary())

    invalid = {
        name: message
        for name, (is_valid, message) in registry.validate_all().items()
        if not is_valid
    }
    for name, message in invalid.items():
        logger.error(f"{name}: {message}")
    return 1 if invalid else 0


COMMANDS = {
    'run': cmd_run,
    'report': cmd_report,
    'prepare': cmd_prepare,
    'models': cmd_models
}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    log_file = getattr(args, 'log_file', None)
    logger = setup_logger('modelbench', level=args.log_level, log_file=log_file)

    try:
        return COMMANDS[args.command](args, logger)
    except (AssertionError, ValueError, KeyError, FileNotFoundError) as e:
        log_error(logger, e, context=args.command)
        return 1


if __name__ == '__main__':
    sys.exit(main())
