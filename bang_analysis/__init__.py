"""
Trash-Can Bang Analysis

A one-shot report on the 2017 Houston Astros sign-stealing scheme: it joins
the logged trash-can bangs to player game logs and game results, summarizes
when and for whom the signals happened, tests whether they moved offensive
output, and renders the findings as an HTML report.
"""

from .data_processing import BangDataSystem, BangDataset, normalize_name, parse_game_date
from .analysis import build_summary_tables, generate_findings, get_player_bang_summary
from .models import bang_ttest, runs_regression, pearson_correlation
from .visualization import build_report_sections, render_html_report, export_results

__version__ = "1.0"

__all__ = [
    'BangDataSystem',
    'BangDataset',
    'normalize_name',
    'parse_game_date',
    'build_summary_tables',
    'generate_findings',
    'get_player_bang_summary',
    'bang_ttest',
    'runs_regression',
    'pearson_correlation',
    'build_report_sections',
    'render_html_report',
    'export_results'
]
