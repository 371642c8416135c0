"""
Statistical models and tests for the bang analysis.

Contains the two-sample t-test, the ordinary-least-squares regression, and the
correlation used to judge whether bangs moved offensive output.
"""

import pandas as pd
import numpy as np
from scipy import stats
from sklearn.linear_model import LinearRegression
from sklearn.metrics import r2_score
import logging
from typing import Dict, List, Tuple

from config import MIN_SAMPLES, TTEST_CONFIG, REGRESSION_CONFIG
from .analysis import add_rate_stats

logger = logging.getLogger(__name__)


def two_sample_ttest(df: pd.DataFrame, value_col: str, group_col: str,
                     groups: Tuple = (True, False), labels: Tuple = None,
                     alpha: float = TTEST_CONFIG['alpha']) -> Dict:
    """Welch's two-sample t-test of ``value_col`` between two groups.

    Missing values in ``value_col`` are dropped before testing.

    Args:
        df (pd.DataFrame): Observations, one per row.
        value_col (str): Numeric column to compare.
        group_col (str): Column whose values select the two groups.
        groups (Tuple): The two ``group_col`` values to compare, first minus second.
        labels (Tuple): Display names for the two groups (default: the values).
        alpha (float): Significance level reported with the result.

    Returns:
        Dict: metric, groups, n, means, mean_difference, t_statistic,
            p_value, alpha, significant.

    Raises:
        ValueError: If either group has fewer than MIN_SAMPLES['ttest_group']
            observations.
    """
    first, second = groups
    a = pd.to_numeric(df.loc[df[group_col] == first, value_col], errors='coerce').dropna()
    b = pd.to_numeric(df.loc[df[group_col] == second, value_col], errors='coerce').dropna()

    min_n = MIN_SAMPLES['ttest_group']
    if len(a) < min_n or len(b) < min_n:
        raise ValueError(f"t-test needs at least {min_n} observations per group "
                         f"(got {len(a)} and {len(b)})")

    t_stat, p_value = stats.ttest_ind(a, b, equal_var=False)

    logger.info(f"t-test on {value_col}: t={t_stat:.3f}, p={p_value:.4f}")

    return {
        'metric': value_col,
        'groups': list(labels) if labels else [str(first), str(second)],
        'n': [len(a), len(b)],
        'means': [float(a.mean()), float(b.mean())],
        'mean_difference': float(a.mean() - b.mean()),
        't_statistic': float(t_stat),
        'p_value': float(p_value),
        'alpha': alpha,
        'significant': bool(p_value < alpha)
    }


def bang_ttest(player_games: pd.DataFrame, metric: str = TTEST_CONFIG['metric'],
               home_only: bool = TTEST_CONFIG['home_only']) -> Dict:
    """Compare per-game ``metric`` in player-games with a bang vs. without."""
    scope = player_games
    if metric not in scope.columns:
        scope = add_rate_stats(scope)
    if home_only:
        scope = scope[scope['is_home'].eq(True)]
    return two_sample_ttest(scope, metric, 'had_bang', groups=(True, False),
                            labels=('bang', 'no bang'))


def ols_regression(df: pd.DataFrame, target: str, features: List[str]) -> Dict:
    """
    Fit ``target ~ features`` by ordinary least squares.

    The fit itself comes from scikit-learn; classical standard errors,
    t values and two-sided p-values (Student t with n - k - 1 degrees of
    freedom) are derived from the residuals. Rows with a missing target or
    feature are dropped.

    Args:
        df (pd.DataFrame): Observations
        target (str): Response column
        features (List[str]): Predictor columns

    Returns:
        Dict: target, features, n, coefficients (DataFrame with term, estimate,
        std_error, t_value, p_value), r_squared, adj_r_squared,
        residual_std_error, model

    Raises:
        ValueError: If fewer than len(features) + 2 complete rows remain
    """
    data = df[[target] + list(features)].apply(pd.to_numeric, errors='coerce').dropna()
    n, k = len(data), len(features)
    if n < k + 2:
        raise ValueError(f"OLS needs at least {k + 2} complete rows (got {n})")

    X = data[list(features)].to_numpy(dtype=float)
    y = data[target].to_numpy(dtype=float)

    model = LinearRegression().fit(X, y)
    fitted = model.predict(X)
    residuals = y - fitted

    dof = n - k - 1
    sigma2 = float(residuals @ residuals) / dof
    design = np.column_stack([np.ones(n), X])
    covariance = sigma2 * np.linalg.pinv(design.T @ design)
    std_errors = np.sqrt(np.diag(covariance))

    params = np.concatenate([[model.intercept_], model.coef_])
    with np.errstate(divide='ignore', invalid='ignore'):
        t_values = params / std_errors
    p_values = 2 * stats.t.sf(np.abs(t_values), dof)

    r_squared = float(r2_score(y, fitted))
    adj_r_squared = 1 - (1 - r_squared) * (n - 1) / dof

    coefficients = pd.DataFrame({
        'term': ['Intercept'] + list(features),
        'estimate': params,
        'std_error': std_errors,
        't_value': t_values,
        'p_value': p_values
    })

    logger.info(f"OLS {target} ~ {' + '.join(features)}: n={n}, R^2={r_squared:.3f}")

    return {
        'target': target,
        'features': list(features),
        'n': n,
        'coefficients': coefficients,
        'r_squared': r_squared,
        'adj_r_squared': float(adj_r_squared),
        'residual_std_error': float(np.sqrt(sigma2)),
        'model': model
    }


def runs_regression(game_table: pd.DataFrame,
                    target: str = REGRESSION_CONFIG['target'],
                    features: List[str] = None) -> Dict:
    """Regress runs scored on the number of bangs per game."""
    features = features or REGRESSION_CONFIG['features']
    return ols_regression(game_table, target, features)


def pearson_correlation(df: pd.DataFrame, x: str, y: str) -> Dict:
    """Pearson correlation between two columns over complete pairs.

    Raises:
        ValueError: If fewer than MIN_SAMPLES['correlation'] complete pairs exist.
    """
    data = df[[x, y]].apply(pd.to_numeric, errors='coerce').dropna()
    if len(data) < MIN_SAMPLES['correlation']:
        raise ValueError(f"Correlation needs at least {MIN_SAMPLES['correlation']} pairs (got {len(data)})")

    r, p_value = stats.pearsonr(data[x], data[y])
    return {'x': x, 'y': y, 'r': float(r), 'p_value': float(p_value), 'n': len(data)}
