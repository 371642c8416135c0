import os

import pandas as pd

import main
from bang_analysis.data_processing import BangDataset
from config import REPORT_FILENAME, EXPORT_FILENAME


def test_main_writes_report(data_dir, tmp_path):
    results_dir = tmp_path / 'results'
    dataset, summary = main.main(data_dir=str(data_dir), results_dir=str(results_dir))

    assert isinstance(dataset, BangDataset)
    assert isinstance(summary, dict)
    assert len(dataset.bangs) == 5
    assert summary['ttest'] is not None
    assert summary['regression'] is not None
    assert os.path.exists(results_dir / REPORT_FILENAME)
    assert os.path.exists(results_dir / EXPORT_FILENAME)


def test_main_reports_unavailable_tests(data_dir, tmp_path):
    # A schedule without results leaves nothing to regress runs on
    games = pd.read_csv(data_dir / 'astros_games.csv').drop(columns=['R', 'RA'])
    games.to_csv(data_dir / 'astros_games.csv', index=False)

    _, summary = main.main(data_dir=str(data_dir), results_dir=str(tmp_path / 'results'))

    assert summary['regression'] is None
    assert summary['correlation'] is None
    assert "The runs regression could not be fit on this data" in summary['findings']['Statistical Tests']


def test_run_player_analysis_prints_summary(dataset, capsys):
    main.run_player_analysis('Carlos Correa', dataset)
    out = capsys.readouterr().out
    assert 'Player: Carlos Correa' in out
    assert 'Bangs heard: 1 across 1 games' in out
