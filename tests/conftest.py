import pandas as pd
import pytest

from bang_analysis.data_processing import BangDataSystem


@pytest.fixture
def raw_bangs():
    return pd.DataFrame({
        'game_date': ['2017-05-28', '2017-05-28', '2017-05-28', '2017-06-10', '2017-06-10'],
        'opponent': ['Rangers', 'Rangers', 'Rangers', 'Royals', 'Royals'],
        'batter': ['Jose Altuve', 'Jose Altuve', 'Carlos Correa', 'Jose Altuve', 'Yulieski Gurriel'],
        'inning': [1, 1, 3, 5, 5],
        'balls': [0, 1, 0, 2, 0],
        'strikes': [0, 0, 1, 2, 0],
        'pitch_category': ['CH', 'SL', 'FF', 'CB', 'CH'],
        'lineup': [2, 2, 3, 2, 5],
        'at_bat_id': [1, 1, 5, 20, 22],
        'pitcher': ['Cole Hamels', 'Cole Hamels', 'Cole Hamels', 'Jason Hammel', 'Jason Hammel'],
        'astros_score': [0, 0, 2, 1, 1],
        'opponent_score': [0, 0, 1, 3, 3],
    })


@pytest.fixture
def raw_games():
    return pd.DataFrame({
        'Date': ['Sunday, May 28', 'Monday, May 29', 'Saturday, Jun 10', 'Sunday, Jun 11'],
        'Unnamed: 4': ['', '@', '', ''],
        'Opp': ['TEX', 'NYY', 'KCR', 'KCR'],
        'R': [7, 2, 4, 5],
        'RA': [3, 5, 6, 1],
    })


def _log(rows):
    columns = ['Date', 'HomeAway', 'Opp', 'AB', 'H', '2B', '3B', 'HR', 'BB', 'HBP', 'SF']
    return pd.DataFrame(rows, columns=columns)


@pytest.fixture
def raw_player_logs():
    return {
        'jose_altuve': _log([
            ['May 28', '', 'TEX', 4, 2, 1, 0, 0, 1, 0, 0],
            ['May 29', '@', 'NYY', 4, 1, 0, 0, 0, 0, 0, 0],
            ['Jun 10', '', 'KCR', 3, 1, 0, 0, 1, 1, 0, 1],
            ['Jun 11', '', 'KCR', 4, 0, 0, 0, 0, 0, 0, 0],
        ]),
        'carlos_correa': _log([
            ['May 28', '', 'TEX', 4, 1, 0, 0, 1, 0, 1, 0],
            ['May 29', '@', 'NYY', 3, 0, 0, 0, 0, 0, 0, 0],
            ['Jun 10', '', 'KCR', 4, 2, 0, 0, 0, 0, 0, 0],
            ['Jun 11', '', 'KCR', 4, 1, 0, 0, 0, 1, 0, 0],
        ]),
        'yuli_gurriel': _log([
            ['Jun 10', '', 'KCR', 4, 1, 1, 0, 0, 0, 0, 0],
            ['Jun 11', '', 'KCR', 3, 0, 0, 0, 0, 0, 0, 0],
        ]),
    }


@pytest.fixture
def data_dir(tmp_path, raw_bangs, raw_games, raw_player_logs):
    raw_bangs.to_csv(tmp_path / 'astros_bangs.csv', index=False)
    raw_games.to_csv(tmp_path / 'astros_games.csv', index=False)
    log_dir = tmp_path / 'player_logs'
    log_dir.mkdir()
    for stem, log in raw_player_logs.items():
        log.to_csv(log_dir / f"{stem}.csv", index=False)
    return tmp_path


@pytest.fixture
def dataset(data_dir):
    return BangDataSystem(data_dir=str(data_dir)).load_and_preprocess_data()
