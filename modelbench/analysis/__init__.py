"""Result aggregation, ranking and report rendering."""

from .aggregate import (
    SUMMARY_COLUMNS,
    aggregate_results,
    rank_models,
    summarize_failures
)
from .report import (
    markdown_table,
    render_markdown,
    render_html,
    build_figures,
    write_report
)

__all__ = [
    'SUMMARY_COLUMNS',
    'aggregate_results',
    'rank_models',
    'summarize_failures',
    'markdown_table',
    'render_markdown',
    'render_html',
    'build_figures',
    'write_report'
]
