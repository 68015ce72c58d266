"""Aggregation and ranking of benchmark results."""

import pandas as pd


SUMMARY_COLUMNS = [
    'rank', 'model_name', 'sample_size', 'n_trials',
    'size_fraction', 'runtime_fraction', 'error_rate', 'accuracy',
    'runtime_seconds', 'points', 'points_std'
]


def _completed(results: pd.DataFrame) -> pd.DataFrame:
    if results.empty:
        return results
    return results[results['status'] == 'completed']


def _ranked(table: pd.DataFrame) -> pd.DataFrame:
    """Sort by points, then accuracy, then name, and number the rows."""
    table = table.sort_values(
        ['points', 'accuracy', 'model_name'],
        ascending=[True, False, True],
        kind='mergesort'
    ).reset_index(drop=True)
    table.insert(0, 'rank', range(1, len(table) + 1))
    return table


def aggregate_results(results: pd.DataFrame) -> pd.DataFrame:
    """Average the trials of each (model, sample size) combination.

    Only completed runs are aggregated.

    Parameters
    ----------
    results : pd.DataFrame
        Per-run results table.

    Returns
    -------
    summary : pd.DataFrame
        One row per (model, sample size) with mean metrics, the standard
        deviation of points and the number of trials, ranked by mean points
        (lowest first).
    """
    completed = _completed(results)
    if completed.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    grouped = completed.groupby(['model_name', 'sample_size'], as_index=False)
    summary = grouped.agg(
        n_trials=('trial', 'count'),
        size_fraction=('size_fraction', 'mean'),
        runtime_fraction=('runtime_fraction', 'mean'),
        error_rate=('error_rate', 'mean'),
        accuracy=('accuracy', 'mean'),
        runtime_seconds=('runtime_seconds', 'mean'),
        points=('points', 'mean'),
        points_std=('points', 'std')
    )
    # Single-trial groups have no spread
    summary['points_std'] = summary['points_std'].fillna(0.0)

    return _ranked(summary)[SUMMARY_COLUMNS]


def rank_models(results: pd.DataFrame) -> pd.DataFrame:
    """Rank models by their best sample size.

    Parameters
    ----------
    results : pd.DataFrame
        Per-run results table.

    Returns
    -------
    scoreboard : pd.DataFrame
        One row per model: the (model, sample size) aggregate with the
        lowest mean points, ranked.
    """
    summary = aggregate_results(results)
    if summary.empty:
        return summary

    best = summary.drop(columns=['rank']).drop_duplicates('model_name', keep='first')
    return _ranked(best)[SUMMARY_COLUMNS]


def summarize_failures(results: pd.DataFrame) -> pd.DataFrame:
    """Count runs that did not complete.

    Returns
    -------
    failures : pd.DataFrame
        Columns model_name, status, n_runs and an example error message.
    """
    columns = ['model_name', 'status', 'n_runs', 'example_error']
    if results.empty:
        return pd.DataFrame(columns=columns)

    failed = results[results['status'] != 'completed']
    if failed.empty:
        return pd.DataFrame(columns=columns)

    failures = failed.groupby(['model_name', 'status'], as_index=False).agg(
        n_runs=('run_id', 'count'),
        example_error=('error_message', 'first')
    )
    return failures.sort_values(['model_name', 'status']).reset_index(drop=True)[columns]
