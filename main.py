"""
Main execution file for the trash-can bang analysis.

This file orchestrates the complete pipeline from data loading through
summaries, statistical tests, and the HTML report.
"""

import os
import logging
import warnings

from bang_analysis.data_processing import BangDataSystem
from bang_analysis.analysis import build_summary_tables, generate_findings, get_player_bang_summary
from bang_analysis.models import bang_ttest, runs_regression, pearson_correlation
from bang_analysis.visualization import build_report_sections, render_html_report, export_results
from config import DATA_DIR, RESULTS_DIR, REPORT_FILENAME, EXPORT_FILENAME

# Configure logging and suppress warnings for cleaner output
warnings.filterwarnings('ignore')
logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


def _run_test(name, func, *args):
    """Run one statistical test; insufficient data yields None instead of an error."""
    try:
        return func(*args)
    except ValueError as e:
        logger.warning(f"{name} unavailable: {str(e)}")
        return None


def main(data_dir: str = DATA_DIR, results_dir: str = RESULTS_DIR):
    """Run the end-to-end pipeline: load, join, summarize, test, render.

    Steps:
        1) Load the bang log, player game logs, and game results; clean and join them.
        2) Build the per-month, per-game, per-player, per-inning, per-count,
           per-pitcher, and batting-split summary tables.
        3) Run the t-test, the runs regression, and the bangs/runs correlation.
        4) Derive narrative findings.
        5) Render the HTML report.
        6) Export headline numbers to JSON.

    Returns:
        Tuple: (dataset, summary)
            - dataset: BangDataset with cleaned bangs, player_games, games.
            - summary: Dict of summary tables, test results, and findings.
    """
    logger.info("Starting trash-can bang analysis...")

    try:
        system = BangDataSystem(data_dir=data_dir)

        logger.info("Step 1: Loading and joining data...")
        dataset = system.load_and_preprocess_data()
        logger.info(f"{len(dataset.bangs)} bangs, {len(dataset.player_games)} player-games, "
                    f"{len(dataset.games)} games")

        logger.info("Step 2: Building summary tables...")
        summary = build_summary_tables(dataset)

        logger.info("Step 3: Running statistical tests...")
        summary['ttest'] = _run_test("t-test", bang_ttest, dataset.player_games)
        summary['regression'] = _run_test("Runs regression", runs_regression, summary['by_game'])
        summary['correlation'] = _run_test("Correlation", pearson_correlation,
                                           summary['by_game'], 'bangs', 'runs_scored')

        logger.info("Step 4: Generating findings...")
        summary['findings'] = generate_findings(summary)
        for category, lines in summary['findings'].items():
            logger.info(f"\n{category}:")
            for line in lines:
                logger.info(f"  • {line}")

        logger.info("Step 5: Rendering HTML report...")
        os.makedirs(results_dir, exist_ok=True)
        sections = build_report_sections(summary)
        render_html_report(sections, os.path.join(results_dir, REPORT_FILENAME))

        logger.info("Step 6: Exporting results...")
        try:
            export_results(summary, os.path.join(results_dir, EXPORT_FILENAME))
        except Exception as e:
            logger.warning(f"JSON export failed: {str(e)}")
            logger.info("Continuing without JSON export...")

        logger.info("Bang analysis pipeline completed successfully!")

        return dataset, summary

    except Exception as e:
        logger.error(f"Error in main execution: {str(e)}")
        raise


def run_player_analysis(player_name: str, dataset=None):
    """Print one batter's bang summary and home/road batting line.

    Args:
        player_name (str): Player name, "First Last" or "Last, First"
        dataset: Loaded BangDataset (optional, will run main if not provided)
    """
    if dataset is None:
        logger.info("Running full analysis first...")
        dataset, _ = main()

    print(get_player_bang_summary(player_name, dataset.bangs, dataset.player_games))


if __name__ == "__main__":
    dataset, summary = main()

    # Optional: Run player-specific analysis
    # run_player_analysis("Jose Altuve", dataset)

    print("\nAnalysis complete! Check the generated files:")
    print(f"- {os.path.join(RESULTS_DIR, REPORT_FILENAME)} (HTML report)")
    print(f"- {os.path.join(RESULTS_DIR, EXPORT_FILENAME)} (headline numbers)")
