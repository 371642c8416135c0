import numpy as np
import pandas as pd
import pytest
from scipy import stats

from bang_analysis.analysis import bangs_by_game
from bang_analysis.models import (
    two_sample_ttest, bang_ttest, ols_regression, runs_regression, pearson_correlation
)


def test_bang_ttest_groups_home_player_games(dataset):
    result = bang_ttest(dataset.player_games)

    bang_ops = [1.35, 0.4 + 4 / 3, 1.4, 0.75]
    no_bang_ops = [0.0, 1.0, 0.65, 0.0]
    expected = stats.ttest_ind(bang_ops, no_bang_ops, equal_var=False)

    assert result['groups'] == ['bang', 'no bang']
    assert result['n'] == [4, 4]
    assert result['means'][0] == pytest.approx(np.mean(bang_ops))
    assert result['means'][1] == pytest.approx(0.4125)
    assert result['t_statistic'] == pytest.approx(expected.statistic)
    assert result['p_value'] == pytest.approx(expected.pvalue)
    assert result['significant'] == (expected.pvalue < 0.05)


def test_two_sample_ttest_drops_missing_values():
    df = pd.DataFrame({'value': [1.0, 2.0, np.nan, 3.0, 5.0, 7.0],
                       'group': ['a', 'a', 'a', 'b', 'b', 'b']})
    result = two_sample_ttest(df, 'value', 'group', groups=('a', 'b'))
    assert result['n'] == [2, 3]
    assert result['mean_difference'] == pytest.approx(1.5 - 5.0)


def test_two_sample_ttest_too_few_observations():
    df = pd.DataFrame({'value': [1.0, 2.0, 3.0], 'group': ['a', 'b', 'b']})
    with pytest.raises(ValueError):
        two_sample_ttest(df, 'value', 'group', groups=('a', 'b'))


def test_runs_regression_on_game_table(dataset):
    games = bangs_by_game(dataset.bangs, dataset.games)
    result = runs_regression(games)
    coefs = result['coefficients'].set_index('term')

    assert result['n'] == 3
    assert coefs.loc['bangs', 'estimate'] == pytest.approx(0.5)
    assert coefs.loc['Intercept', 'estimate'] == pytest.approx(4.5)
    assert result['r_squared'] == pytest.approx(0.25)


def test_ols_matches_simple_linear_regression():
    df = pd.DataFrame({'x': [0, 1, 2, 3, 4, 5], 'y': [2.1, 4.8, 8.3, 10.9, 14.2, 16.8]})
    result = ols_regression(df, 'y', ['x'])
    expected = stats.linregress(df['x'], df['y'])
    slope = result['coefficients'].set_index('term').loc['x']

    assert slope['estimate'] == pytest.approx(expected.slope)
    assert slope['std_error'] == pytest.approx(expected.stderr)
    assert slope['p_value'] == pytest.approx(expected.pvalue)
    assert result['r_squared'] == pytest.approx(expected.rvalue ** 2)


def test_ols_multiple_features_and_missing_rows():
    rng = np.random.default_rng(0)
    x1 = rng.normal(size=40)
    x2 = rng.normal(size=40)
    y = 1.0 + 2.0 * x1 - 0.5 * x2 + rng.normal(scale=0.01, size=40)
    df = pd.DataFrame({'y': y, 'x1': x1, 'x2': x2})
    df.loc[0, 'x2'] = np.nan

    result = ols_regression(df, 'y', ['x1', 'x2'])
    coefs = result['coefficients'].set_index('term')['estimate']

    assert result['n'] == 39
    assert coefs['Intercept'] == pytest.approx(1.0, abs=0.01)
    assert coefs['x1'] == pytest.approx(2.0, abs=0.01)
    assert coefs['x2'] == pytest.approx(-0.5, abs=0.01)
    assert result['adj_r_squared'] <= result['r_squared']


def test_ols_too_few_rows():
    df = pd.DataFrame({'y': [1.0, 2.0], 'x': [0.0, 1.0]})
    with pytest.raises(ValueError):
        ols_regression(df, 'y', ['x'])


def test_pearson_correlation(dataset):
    games = bangs_by_game(dataset.bangs, dataset.games)
    result = pearson_correlation(games, 'bangs', 'runs_scored')
    assert result['n'] == 3
    assert result['r'] == pytest.approx(0.5)


def test_pearson_correlation_too_few_pairs():
    df = pd.DataFrame({'a': [1.0, 2.0, np.nan], 'b': [1.0, np.nan, 3.0]})
    with pytest.raises(ValueError):
        pearson_correlation(df, 'a', 'b')
