"""
Visualization and report rendering for the bang analysis.

Contains one chart per summary table, HTML table formatting, the HTML report
writer, and the JSON export of headline numbers.
"""

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd
import numpy as np
import base64
import html
import io
import json
import logging
from typing import List, Dict

from config import PLOT_CONFIG, REPORT_CONFIG, PITCH_GROUP_ORDER

logger = logging.getLogger(__name__)

sns.set_theme(style='whitegrid')


def figure_to_base64(fig) -> str:
    """Render a figure to PNG, close it, and return the base64 text."""
    buffer = io.BytesIO()
    fig.savefig(buffer, format='png', dpi=PLOT_CONFIG['dpi'], bbox_inches='tight')
    plt.close(fig)
    return base64.b64encode(buffer.getvalue()).decode('ascii')


def plot_bangs_by_month(by_month: pd.DataFrame):
    """Monthly bang totals with bangs per game on a second axis."""
    if by_month.empty:
        logger.warning("No monthly bang data to plot")
        return None

    fig, ax = plt.subplots(figsize=PLOT_CONFIG['figsize'])
    ax.bar(by_month['month'], by_month['bangs'], color=PLOT_CONFIG['bar_color'], alpha=0.8)
    ax.set_xlabel('Month')
    ax.set_ylabel('Bangs')
    ax.set_title('Bangs by Month')

    rate_ax = ax.twinx()
    rate_ax.plot(by_month['month'], by_month['bangs_per_game'], color=PLOT_CONFIG['alt_color'],
                 marker='o', label='Bangs per game')
    rate_ax.set_ylabel('Bangs per game')
    rate_ax.grid(False)
    rate_ax.legend(loc='upper right')

    fig.tight_layout()
    return fig


def plot_bangs_by_game(by_game: pd.DataFrame):
    """Bangs and runs scored over the home schedule."""
    if by_game.empty:
        logger.warning("No per-game bang data to plot")
        return None

    fig, axes = plt.subplots(2, 1, figsize=PLOT_CONFIG['wide_figsize'], sharex=True)

    axes[0].bar(by_game['game_date'], by_game['bangs'], color=PLOT_CONFIG['bar_color'])
    axes[0].set_ylabel('Bangs')
    axes[0].set_title('Bangs per Home Game')

    if 'runs_scored' in by_game.columns:
        axes[1].plot(by_game['game_date'], by_game['runs_scored'], color=PLOT_CONFIG['alt_color'],
                     marker='o', markersize=3)
    axes[1].set_ylabel('Runs scored')
    axes[1].set_xlabel('Game date')

    fig.autofmt_xdate()
    fig.tight_layout()
    return fig


def plot_bangs_by_player(by_player: pd.DataFrame):
    """Horizontal bars of bangs per batter."""
    if by_player.empty:
        logger.warning("No player bang data to plot")
        return None

    fig, ax = plt.subplots(figsize=PLOT_CONFIG['figsize'])
    sns.barplot(data=by_player, x='bangs', y='batter', color=PLOT_CONFIG['bar_color'], ax=ax)
    ax.set_xlabel('Bangs')
    ax.set_ylabel('')
    ax.set_title('Bangs by Batter')
    fig.tight_layout()
    return fig


def plot_bangs_by_inning(by_inning: pd.DataFrame):
    """Bars of bangs per inning."""
    if by_inning.empty:
        logger.warning("No inning data to plot")
        return None

    fig, ax = plt.subplots(figsize=PLOT_CONFIG['figsize'])
    ax.bar(by_inning['inning'].astype(str), by_inning['bangs'], color=PLOT_CONFIG['bar_color'])
    ax.set_xlabel('Inning')
    ax.set_ylabel('Bangs')
    ax.set_title('Bangs by Inning')
    fig.tight_layout()
    return fig


def plot_count_heatmap(matrix: pd.DataFrame):
    """Balls x strikes heatmap of bang counts."""
    if matrix.empty or matrix.to_numpy().sum() == 0:
        logger.warning("No count data for heatmap")
        return None

    fig, ax = plt.subplots(figsize=(6, 6))
    sns.heatmap(matrix, annot=True, fmt='d', cmap=PLOT_CONFIG['palette'], ax=ax)
    ax.set_title('Bangs by Count')
    ax.set_xlabel('Strikes')
    ax.set_ylabel('Balls')
    fig.tight_layout()
    return fig


def plot_bangs_by_pitcher(by_pitcher: pd.DataFrame):
    """Horizontal bars for the opposing pitchers with the most bangs."""
    if by_pitcher.empty:
        logger.warning("No pitcher data to plot")
        return None

    fig, ax = plt.subplots(figsize=PLOT_CONFIG['figsize'])
    sns.barplot(data=by_pitcher, x='bangs', y='pitcher', color=PLOT_CONFIG['alt_color'], ax=ax)
    ax.set_xlabel('Bangs')
    ax.set_ylabel('')
    ax.set_title('Opposing Pitchers Facing the Most Bangs')
    fig.tight_layout()
    return fig


def plot_pitch_categories(by_category: pd.DataFrame):
    """Bangs per pitch category, colored by pitch group."""
    if by_category.empty:
        logger.warning("No pitch category data to plot")
        return None

    fig, ax = plt.subplots(figsize=PLOT_CONFIG['figsize'])
    hue_order = [g for g in PITCH_GROUP_ORDER if g in set(by_category['pitch_group'])]
    sns.barplot(data=by_category, x='pitch_category', y='bangs', hue='pitch_group',
                hue_order=hue_order, dodge=False, palette='Set2', ax=ax)
    ax.set_xlabel('Pitch category')
    ax.set_ylabel('Bangs')
    ax.set_title('Bangs by Pitch Category')
    fig.tight_layout()
    return fig


def plot_batting_splits(home_away: pd.DataFrame, bang_splits: pd.DataFrame):
    """Side-by-side rate stats for home/away and bang/no-bang splits."""
    fig, axes = plt.subplots(1, 2, figsize=PLOT_CONFIG['wide_figsize'], sharey=True)

    for ax, table, title in [(axes[0], home_away, 'Home vs Away'),
                             (axes[1], bang_splits, 'Bang vs No Bang (home games)')]:
        long = table.melt(id_vars='split', value_vars=['AVG', 'OBP', 'SLG', 'OPS'],
                          var_name='stat', value_name='value')
        sns.barplot(data=long, x='stat', y='value', hue='split', palette='Set1', ax=ax)
        ax.set_title(title)
        ax.set_xlabel('')
        ax.set_ylabel('Rate')

    fig.tight_layout()
    return fig


def plot_runs_regression(by_game: pd.DataFrame, regression: Dict = None):
    """Scatter of runs scored against bangs with the fitted OLS line."""
    data = by_game.dropna(subset=['bangs', 'runs_scored']) if 'runs_scored' in by_game.columns else by_game.iloc[0:0]
    if data.empty:
        logger.warning("No game results for the runs regression plot")
        return None

    fig, ax = plt.subplots(figsize=PLOT_CONFIG['figsize'])
    ax.scatter(data['bangs'], data['runs_scored'], color=PLOT_CONFIG['bar_color'], alpha=0.7)

    if regression is not None and regression['features'] == ['bangs']:
        coefs = regression['coefficients'].set_index('term')['estimate']
        xs = np.linspace(data['bangs'].min(), data['bangs'].max(), 50)
        ax.plot(xs, coefs['Intercept'] + coefs['bangs'] * xs, color=PLOT_CONFIG['alt_color'],
                label=f"OLS fit (R-squared = {regression['r_squared']:.3f})")
        ax.legend()

    ax.set_xlabel('Bangs in game')
    ax.set_ylabel('Runs scored')
    ax.set_title('Runs Scored vs Bangs')
    fig.tight_layout()
    return fig


def format_table(df: pd.DataFrame, decimals: int = REPORT_CONFIG['decimals'],
                 max_rows: int = REPORT_CONFIG['max_table_rows']) -> str:
    """Render a DataFrame as an HTML table, rounded and truncated."""
    if df is None or df.empty:
        return "<p><em>No data available.</em></p>"
    shown = df.head(max_rows).round(decimals)
    return shown.to_html(index=False, border=0, classes='summary-table', na_rep='NA')


def _test_table(result: Dict, kind: str) -> pd.DataFrame:
    if kind == 'ttest':
        return pd.DataFrame({
            'group': result['groups'],
            'n': result['n'],
            f"mean {result['metric']}": result['means'],
        })
    if kind == 'regression':
        return result['coefficients']
    return pd.DataFrame([result])


def build_report_sections(summary: Dict) -> List[Dict]:
    """Assemble report sections: title, narrative lines, HTML table, and chart.

    Args:
        summary (Dict): Summary tables plus test results and 'findings'.

    Returns:
        List[Dict]: Sections with keys 'title', 'text', 'table', 'image'
            (image is base64 PNG text or None).
    """
    findings = summary.get('findings', {})

    def chart(fig):
        return figure_to_base64(fig) if fig is not None else None

    sections = [
        {'title': 'Bangs by Month', 'text': findings.get('Bang Volume', []),
         'table': format_table(summary['by_month']),
         'image': chart(plot_bangs_by_month(summary['by_month']))},
        {'title': 'Bangs by Game', 'text': [],
         'table': format_table(summary['by_game']),
         'image': chart(plot_bangs_by_game(summary['by_game']))},
        {'title': 'Bangs by Batter', 'text': findings.get('Who Heard Bangs', []),
         'table': format_table(summary['by_player']),
         'image': chart(plot_bangs_by_player(summary['by_player']))},
        {'title': 'Bangs by Inning', 'text': [],
         'table': format_table(summary['by_inning']),
         'image': chart(plot_bangs_by_inning(summary['by_inning']))},
        {'title': 'Bangs by Count', 'text': [],
         'table': format_table(summary['by_count']),
         'image': chart(plot_count_heatmap(summary['count_matrix']))},
        {'title': 'Bangs by Opposing Pitcher', 'text': [],
         'table': format_table(summary['by_pitcher']),
         'image': chart(plot_bangs_by_pitcher(summary['by_pitcher']))},
        {'title': 'Bangs by Pitch Category', 'text': [],
         'table': format_table(summary['by_category']),
         'image': chart(plot_pitch_categories(summary['by_category']))},
        {'title': 'Bangs by Lineup Slot', 'text': [],
         'table': format_table(summary['by_lineup']), 'image': None},
        {'title': 'Bangs by Score Situation', 'text': [],
         'table': format_table(summary['by_situation']), 'image': None},
        {'title': 'Batting Splits', 'text': findings.get('Batting Impact', []),
         'table': format_table(summary['home_away']) + format_table(summary['bang_splits'])
                  + format_table(summary['player_splits']),
         'image': chart(plot_batting_splits(summary['home_away'], summary['bang_splits']))},
    ]

    test_tables = ''
    for key, label in [('ttest', 'Two-sample t-test'), ('regression', 'OLS regression'),
                       ('correlation', 'Pearson correlation')]:
        result = summary.get(key)
        test_tables += f"<h3>{label}</h3>"
        test_tables += format_table(_test_table(result, key)) if result is not None \
            else "<p><em>Not enough data to run this test.</em></p>"

    sections.append({
        'title': 'Statistical Tests', 'text': findings.get('Statistical Tests', []),
        'table': test_tables,
        'image': chart(plot_runs_regression(summary['by_game'], summary.get('regression')))
    })
    return sections


def render_html_report(sections: List[Dict], filename: str,
                       title: str = REPORT_CONFIG['title']):
    """Write the report sections into a single self-contained HTML file.

    Args:
        sections (List[Dict]): Output of build_report_sections
        filename (str): Output HTML path
        title (str): Document title and top heading
    """
    with open(filename, 'w', encoding='utf-8') as f:
        f.write("<!DOCTYPE html>\n<html>\n<head>\n<meta charset=\"utf-8\">\n")
        f.write(f"<title>{html.escape(title)}</title>\n")
        f.write("<style>\n"
                "body { font-family: sans-serif; max-width: 1100px; margin: auto; }\n"
                ".summary-table { border-collapse: collapse; margin: 1em 0; }\n"
                ".summary-table td, .summary-table th { padding: 4px 10px; border-bottom: 1px solid #ddd; }\n"
                "img { max-width: 100%; }\n"
                "</style>\n</head>\n<body>\n")
        f.write(f"<h1>{html.escape(title)}</h1>\n")

        for section in sections:
            f.write(f"<h2>{html.escape(section['title'])}</h2>\n")
            if section['text']:
                f.write("<ul>\n")
                for line in section['text']:
                    f.write(f"  <li>{html.escape(line)}</li>\n")
                f.write("</ul>\n")
            f.write(section['table'] + "\n")
            if section['image']:
                f.write(f"<img src=\"data:image/png;base64,{section['image']}\" "
                        f"alt=\"{html.escape(section['title'])}\">\n")

        f.write("</body>\n</html>\n")

    logger.info(f"HTML report saved as '{filename}'")


def _json_default(value):
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, pd.Timestamp):
        return value.strftime('%Y-%m-%d')
    return str(value)


def _json_safe(value):
    """Replace NaN with None throughout, turning frames into record lists."""
    if isinstance(value, pd.DataFrame):
        return [_json_safe(row) for row in value.to_dict('records')]
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if isinstance(value, (float, np.floating)) and np.isnan(value):
        return None
    return value


def export_results(summary: Dict, filename: str = "bang_report.json"):
    """Export headline numbers and test results to JSON.

    Args:
        summary (Dict): Summary tables plus test results
        filename (str): Output filename for JSON export
    """
    regression = summary.get('regression')
    export_data = {
        "total_bangs": int(summary['total_bangs']),
        "games_with_bangs": int((summary['by_game']['bangs'] > 0).sum()),
        "by_month": summary['by_month'],
        "top_batters": summary['by_player'].head(10),
        "home_away": summary['home_away'],
        "bang_splits": summary['bang_splits'],
        "ttest": summary.get('ttest'),
        "regression": {k: v for k, v in regression.items() if k != 'model'} if regression else None,
        "correlation": summary.get('correlation'),
        "findings": summary.get('findings', {})
    }

    with open(filename, 'w') as f:
        json.dump(_json_safe(export_data), f, indent=2, allow_nan=False, default=_json_default)

    logger.info(f"Results exported to {filename}")
