"""Report rendering.

Writes the results and summary tables as CSV, a Markdown report and an
HTML report with plotly figures.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

import pandas as pd
import plotly.express as px

from modelbench.analysis.aggregate import aggregate_results, rank_models, summarize_failures
from modelbench.config import BenchmarkConfig
from modelbench.core.models import describe_hyperparameters


logger = logging.getLogger(__name__)


def _escape_cell(text: str) -> str:
    # Pipes would split the cell, newlines would end the row
    return ' '.join(text.replace('|', '\\|').splitlines())


def _format_value(value, decimals: int) -> str:
    if isinstance(value, float):
        if value != value:
            return ''
        return f"{value:.{decimals}f}"
    return _escape_cell(str(value))


def markdown_table(df: pd.DataFrame, decimals: int = 4) -> str:
    """Render a DataFrame as a GitHub-flavored Markdown table."""
    if df.empty:
        return '_No rows._'

    header = '| ' + ' | '.join(_escape_cell(str(col)) for col in df.columns) + ' |'
    divider = '|' + '|'.join(
        '---:' if pd.api.types.is_numeric_dtype(df[col]) else '---'
        for col in df.columns
    ) + '|'
    body = [
        '| ' + ' | '.join(_format_value(value, decimals) for value in row) + ' |'
        for row in df.itertuples(index=False, name=None)
    ]
    return '\n'.join([header, divider] + body)


def _config_section(config: BenchmarkConfig) -> list:
    scoring = config.scoring
    lines = [
        '## Setup',
        '',
        f"- Sample sizes: {', '.join(str(s) for s in config.sampling.sample_sizes)}",
        f"- Trials per sample size: {config.sampling.n_trials}",
        f"- Random state: {config.random_state}",
        f"- Models ({len(config.models.active_models)}):"
    ]
    for name in config.models.active_models:
        model_config = config.models.models[name]
        params = ', '.join(
            f"{key}={value}" for key, value in describe_hyperparameters(model_config).items()
        )
        scaled = ', standardized inputs' if model_config.scale_features else ''
        lines.append(
            f"  - `{name}`: {model_config.estimator_class.__name__}"
            f"({params}){scaled}"
        )
    return lines + [
        '',
        '## Scoring',
        '',
        f"points = {scoring.size_weight} * A + {scoring.runtime_weight} * B "
        f"+ {scoring.error_weight} * C",
        '',
        '- A: fraction of the training rows used',
        f"- B: runtime (fit + predict) as a fraction of "
        f"{scoring.runtime_budget_seconds:.0f} seconds, capped at 1",
        '- C: misclassification rate on the test set',
        '',
        'Lower points are better.',
        ''
    ]


def render_markdown(
    results: pd.DataFrame,
    config: Optional[BenchmarkConfig] = None,
    title: str = 'Fashion-MNIST Classifier Benchmark',
    decimals: int = 4,
    data_summary: Optional[str] = None
) -> str:
    """Render the benchmark report as Markdown.

    Parameters
    ----------
    results : pd.DataFrame
        Per-run results table.
    config : BenchmarkConfig, optional
        Configuration shown in the setup section.
    title : str
        Report title.
    decimals : int, default=4
        Decimals shown in tables.
    data_summary : str, optional
        Dataset description included verbatim.

    Returns
    -------
    report : str
        Markdown document.
    """
    lines = [
        f"# {title}",
        '',
        f"Generated {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        ''
    ]

    if config is not None:
        lines.extend(_config_section(config))

    if data_summary:
        lines.extend(['## Data', '', '```', data_summary, '```', ''])

    lines.extend([
        '## Scoreboard',
        '',
        'Each model at its best sample size, averaged over trials.',
        '',
        markdown_table(rank_models(results), decimals),
        '',
        '## All models and sample sizes',
        '',
        markdown_table(aggregate_results(results), decimals),
        ''
    ])

    failures = summarize_failures(results)
    if not failures.empty:
        lines.extend([
            '## Runs that did not complete',
            '',
            markdown_table(failures, decimals),
            ''
        ])

    per_run = results.drop(columns=['run_id', 'error_message', 'timestamp'], errors='ignore')
    lines.extend([
        '## Individual runs',
        '',
        markdown_table(per_run, decimals),
        ''
    ])

    return '\n'.join(lines)


def build_figures(results: pd.DataFrame) -> list:
    """Plotly figures of the aggregated results."""
    summary = aggregate_results(results)
    if summary.empty:
        return []

    summary = summary.sort_values(['model_name', 'sample_size'])

    fig_points = px.line(
        summary,
        x='sample_size',
        y='points',
        color='model_name',
        markers=True,
        error_y='points_std',
        title='Mean points by sample size (lower is better)',
        labels={'sample_size': 'Sample size', 'points': 'Points', 'model_name': 'Model'}
    )

    fig_tradeoff = px.scatter(
        summary,
        x='runtime_seconds',
        y='accuracy',
        color='model_name',
        symbol='sample_size',
        log_x=True,
        title='Accuracy vs runtime',
        labels={'runtime_seconds': 'Runtime (s)', 'accuracy': 'Accuracy', 'model_name': 'Model'}
    )

    return [fig_points, fig_tradeoff]


def render_html(
    results: pd.DataFrame,
    title: str = 'Fashion-MNIST Classifier Benchmark',
    decimals: int = 4
) -> str:
    """Render the benchmark report as a standalone HTML document."""
    float_format = f"{{:.{decimals}f}}".format
    sections = [
        f"<h1>{title}</h1>",
        f"<p>Generated {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}</p>"
    ]

    for i, fig in enumerate(build_figures(results)):
        sections.append(fig.to_html(
            full_html=False,
            include_plotlyjs='cdn' if i == 0 else False
        ))

    sections.extend([
        "<h2>Scoreboard</h2>",
        rank_models(results).to_html(index=False, float_format=float_format),
        "<h2>All models and sample sizes</h2>",
        aggregate_results(results).to_html(index=False, float_format=float_format)
    ])

    failures = summarize_failures(results)
    if not failures.empty:
        sections.extend([
            "<h2>Runs that did not complete</h2>",
            failures.to_html(index=False)
        ])

    body = '\n'.join(sections)
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n<meta charset=\"utf-8\">\n"
        f"<title>{title}</title>\n</head>\n<body>\n{body}\n</body>\n</html>\n"
    )


def write_report(
    results: pd.DataFrame,
    output_dir,
    config: Optional[BenchmarkConfig] = None,
    title: str = 'Fashion-MNIST Classifier Benchmark',
    write_html: bool = True,
    decimals: int = 4,
    data_summary: Optional[str] = None
) -> Dict[str, Path]:
    """Write all report artifacts.

    Parameters
    ----------
    results : pd.DataFrame
        Per-run results table.
    output_dir : str or Path
        Destination directory (created if missing).

    Returns
    -------
    paths : dict
        Mapping of artifact name to written path.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = {
        'results': output_dir / 'results.csv',
        'summary': output_dir / 'summary.csv',
        'scoreboard': output_dir / 'scoreboard.csv',
        'markdown': output_dir / 'report.md'
    }

    results.to_csv(paths['results'], index=False)
    aggregate_results(results).to_csv(paths['summary'], index=False)
    rank_models(results).to_csv(paths['scoreboard'], index=False)
    paths['markdown'].write_text(
        render_markdown(results, config, title, decimals, data_summary),
        encoding='utf-8'
    )

    if write_html:
        paths['html'] = output_dir / 'report.html'
        paths['html'].write_text(render_html(results, title, decimals), encoding='utf-8')

    logger.info(f"Report written to {output_dir}")
    return paths
