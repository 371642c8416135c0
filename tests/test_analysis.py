import numpy as np
import pandas as pd
import pytest

from bang_analysis.analysis import (
    bangs_by_month, bangs_by_game, bangs_by_player, bangs_by_inning, bangs_by_count,
    count_matrix, bangs_by_pitcher, bangs_by_pitch_category, bangs_by_lineup,
    bangs_by_score_situation, add_rate_stats, batting_line, home_away_splits,
    bang_splits, player_home_away_splits, build_summary_tables, generate_findings,
    get_player_bang_summary
)
from bang_analysis.data_processing import clean_bangs


def test_bangs_by_month(dataset):
    table = bangs_by_month(dataset.bangs)
    assert list(table['month']) == ['2017-05', '2017-06']
    assert list(table['bangs']) == [3, 2]
    assert list(table['games']) == [1, 1]
    assert list(table['bangs_per_game']) == [3.0, 2.0]


def test_bangs_by_game_includes_home_games_without_bangs(dataset):
    table = bangs_by_game(dataset.bangs, dataset.games)
    assert list(table['game_date']) == [pd.Timestamp('2017-05-28'), pd.Timestamp('2017-06-10'),
                                        pd.Timestamp('2017-06-11')]
    assert list(table['bangs']) == [3, 2, 0]
    assert list(table['runs_scored']) == [7, 4, 5]
    assert list(table['opponent']) == ['TEX', 'KCR', 'KCR']


def test_bangs_by_game_without_results(dataset):
    table = bangs_by_game(dataset.bangs)
    assert list(table['bangs']) == [3, 2]
    assert 'runs_scored' not in table.columns


def test_bangs_by_player(dataset):
    table = bangs_by_player(dataset.bangs, dataset.player_games)
    assert list(table['batter']) == ['Jose Altuve', 'Carlos Correa', 'Yulieski Gurriel']
    assert list(table['bangs']) == [3, 1, 1]
    assert list(table['games_with_bangs']) == [2, 1, 1]
    assert list(table['breaking_offspeed_share']) == [1.0, 0.0, 1.0]
    assert list(table['home_games']) == [3, 3, 2]
    assert table['bangs_per_home_game'].iloc[2] == pytest.approx(0.5)


def test_bangs_by_player_min_bangs(dataset):
    table = bangs_by_player(dataset.bangs, min_bangs=2)
    assert list(table['batter']) == ['Jose Altuve']
    assert 'home_games' not in table.columns


def test_inning_lineup_and_situation_shares(dataset):
    inning = bangs_by_inning(dataset.bangs)
    assert list(inning['inning']) == [1, 3, 5]
    assert list(inning['bangs']) == [2, 1, 2]
    assert inning['share'].sum() == pytest.approx(1.0)

    lineup = bangs_by_lineup(dataset.bangs)
    assert dict(zip(lineup['lineup'], lineup['bangs'])) == {2: 3, 3: 1, 5: 1}

    situation = bangs_by_score_situation(dataset.bangs)
    assert list(situation['score_situation']) == ['leading', 'tied', 'trailing']
    assert list(situation['bangs']) == [1, 2, 2]


def test_bangs_by_count_and_matrix(dataset):
    table = bangs_by_count(dataset.bangs)
    assert list(table['count']) == ['0-0', '0-1', '1-0', '2-2']
    assert list(table['bangs']) == [2, 1, 1, 1]

    matrix = count_matrix(dataset.bangs)
    assert matrix.shape == (4, 3)
    assert matrix.loc[0, 0] == 2
    assert matrix.loc[2, 2] == 1
    assert matrix.to_numpy().sum() == 5


def test_bangs_by_pitcher(dataset):
    table = bangs_by_pitcher(dataset.bangs, top_n=1)
    assert list(table['pitcher']) == ['Cole Hamels']
    assert table['bangs'].iloc[0] == 3


def test_bangs_by_pitch_category(dataset):
    table = bangs_by_pitch_category(dataset.bangs)
    assert list(table['pitch_group']) == ['fastball', 'breaking', 'breaking', 'offspeed']
    counts = dict(zip(table['pitch_category'], table['bangs']))
    assert counts == {'FF': 1, 'SL': 1, 'CB': 1, 'CH': 2}


def test_add_rate_stats_zero_denominator_is_missing():
    df = pd.DataFrame({'AB': [4, 0], 'H': [2, 0], 'BB': [1, 0], 'HBP': [0, 0],
                       'SF': [0, 0], 'TB': [3, 0], 'HR': [0, 0]})
    rates = add_rate_stats(df)
    assert rates.loc[0, 'AVG'] == pytest.approx(0.5)
    assert rates.loc[0, 'OBP'] == pytest.approx(0.6)
    assert rates.loc[0, 'SLG'] == pytest.approx(0.75)
    assert rates.loc[0, 'OPS'] == pytest.approx(1.35)
    assert np.isnan(rates.loc[1, 'AVG'])
    assert np.isnan(rates.loc[1, 'OPS'])


def test_batting_line_totals(dataset):
    line = batting_line(dataset.player_games)
    assert line['AB'] == 37
    assert line['H'] == 9
    assert line['games'] == 10


def test_home_away_splits(dataset):
    table = home_away_splits(dataset.player_games).set_index('split')
    home, away = table.loc['home'], table.loc['away']

    assert home['games'] == 8
    assert home['AVG'] == pytest.approx(8 / 30)
    assert home['OBP'] == pytest.approx(12 / 35)
    assert home['SLG'] == pytest.approx(16 / 30)
    assert home['OPS'] == pytest.approx(12 / 35 + 16 / 30)

    assert away['games'] == 2
    assert away['AVG'] == pytest.approx(1 / 7)
    assert away['OPS'] == pytest.approx(2 / 7)


def test_bang_splits(dataset):
    table = bang_splits(dataset.player_games).set_index('split')
    assert table.loc['bang', 'games'] == 4
    assert table.loc['bang', 'AVG'] == pytest.approx(5 / 15)
    assert table.loc['bang', 'OBP'] == pytest.approx(8 / 19)
    assert table.loc['bang', 'SLG'] == pytest.approx(13 / 15)
    assert table.loc['no bang', 'games'] == 4
    assert table.loc['no bang', 'AVG'] == pytest.approx(0.2)
    assert table.loc['no bang', 'OBP'] == pytest.approx(0.25)


def test_player_home_away_splits(dataset):
    table = player_home_away_splits(dataset.player_games).set_index('player')
    altuve = table.loc['Jose Altuve']
    assert altuve['bangs'] == 3
    assert altuve['home_OPS'] == pytest.approx(5 / 14 + 7 / 11)
    assert altuve['away_OPS'] == pytest.approx(0.5)
    assert np.isnan(table.loc['Yuli Gurriel', 'away_OPS'])
    # Players with no road games sort last
    assert table.index[-1] == 'Yuli Gurriel'


def test_generate_findings_mentions_top_batter(dataset):
    summary = build_summary_tables(dataset)
    findings = generate_findings(summary)
    assert any('Jose Altuve' in line for line in findings['Who Heard Bangs'])
    assert any('80.0%' in line for line in findings['Bang Volume'])
    assert findings['Statistical Tests'][0] == "The t-test could not be run on this data"


def test_generate_findings_without_bangs():
    assert generate_findings({'total_bangs': 0}) == {"No Analysis": ["No bang events were loaded"]}


def test_player_summary(dataset):
    text = get_player_bang_summary('Altuve, Jose', dataset.bangs, dataset.player_games)
    assert 'Bangs heard: 3 across 2 games' in text
    assert 'over 3 games' in text
    assert get_player_bang_summary('Nobody Here', dataset.bangs, dataset.player_games) == \
        "No data found for player: Nobody Here"


@pytest.fixture
def uncertain_pitch_bangs(raw_bangs):
    # Altuve's middle signal has no pitch recorded; Gurriel's uses an unknown code
    raw_bangs['pitch_category'] = ['FF', np.nan, 'FF', 'FF', 'XX']
    return clean_bangs(raw_bangs)


def test_breaking_offspeed_share_skips_unrecorded_pitches(uncertain_pitch_bangs):
    table = bangs_by_player(uncertain_pitch_bangs).set_index('batter')
    assert table.loc['Jose Altuve', 'bangs'] == 3
    assert table.loc['Jose Altuve', 'breaking_offspeed_share'] == 0.0
    assert table.loc['Yulieski Gurriel', 'breaking_offspeed_share'] == 0.0


def test_findings_share_ignores_unknown_pitch_groups(dataset, uncertain_pitch_bangs):
    summary = build_summary_tables(dataset._replace(bangs=uncertain_pitch_bangs))
    findings = generate_findings(summary)
    assert summary['pitch_groups'].sum() == 4
    assert "0.0% of bangs came before a breaking or off-speed pitch" in findings['Bang Volume']
