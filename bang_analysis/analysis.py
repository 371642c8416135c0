"""
Analysis module for bang summaries and batting splits.

Contains the group-by summaries over the bang log, the batting-line
calculations over player game logs, and the narrative findings that
accompany the report.
"""

import pandas as pd
import numpy as np
import logging
from typing import Dict, List

from config import BATTING_COLUMNS, MIN_SAMPLES, TOP_N_PITCHERS, PITCH_GROUP_ORDER
from .data_processing import attach_game_results, normalize_name

logger = logging.getLogger(__name__)

RATE_COLUMNS = ['AVG', 'OBP', 'SLG', 'OPS']
SCORE_SITUATIONS = ['leading', 'tied', 'trailing']
BREAKING_OFFSPEED = ['breaking', 'offspeed']


def _safe_div(num, den):
    """Element-wise division with NaN in place of inf or 0/0."""
    with np.errstate(divide='ignore', invalid='ignore'):
        out = np.asarray(num, dtype=float) / np.asarray(den, dtype=float)
    return np.where(np.isfinite(out), out, np.nan)


def _share_table(bangs: pd.DataFrame, column: str) -> pd.DataFrame:
    # Share is taken over bangs with a known value in ``column``
    counts = (bangs[column].dropna().value_counts()
              .rename_axis(column).reset_index(name='bangs'))
    counts['share'] = counts['bangs'] / counts['bangs'].sum()
    return counts.sort_values(column).reset_index(drop=True)


def bangs_by_month(bangs: pd.DataFrame) -> pd.DataFrame:
    """Bang totals, games with a bang, and bangs per such game for each month."""
    valid = bangs.dropna(subset=['month'])
    summary = valid.groupby('month').agg(
        bangs=('game_date', 'size'),
        games=('game_date', 'nunique')
    ).reset_index()
    summary['bangs_per_game'] = summary['bangs'] / summary['games']
    return summary


def bangs_by_game(bangs: pd.DataFrame, games: pd.DataFrame = None) -> pd.DataFrame:
    """
    Per-game bang counts joined to the game result.

    With a results table, every home game appears (games without a signal
    carry ``bangs = 0``); without one, only dates that had a bang appear.

    Args:
        bangs (pd.DataFrame): Cleaned bang events
        games (pd.DataFrame): Cleaned game results (optional)

    Returns:
        pd.DataFrame: game_date, opponent, bangs, runs_scored, runs_allowed, won
    """
    per_date = bangs.dropna(subset=['game_date']).groupby('game_date').agg(
        opponent=('opponent', 'first'),
        bangs=('game_date', 'size')
    ).reset_index()

    if games is None:
        return per_date.sort_values('game_date').reset_index(drop=True)

    home = games[games['is_home'].eq(True)] if games['is_home'].notna().any() else games

    orphan_dates = ~per_date['game_date'].isin(home['game_date'])
    if orphan_dates.any():
        logger.info(f"{int(orphan_dates.sum())} bang dates have no matching home game")

    table = attach_game_results(per_date, home, how='right')
    table['bangs'] = table['bangs'].fillna(0).astype(int)

    columns = ['game_date', 'opponent', 'bangs', 'runs_scored', 'runs_allowed', 'won']
    return table.sort_values('game_date').reset_index(drop=True)[columns]


def bangs_by_player(bangs: pd.DataFrame, player_games: pd.DataFrame = None,
                    min_bangs: int = MIN_SAMPLES['player_bangs']) -> pd.DataFrame:
    """
    Bang totals per batter.

    ``breaking_offspeed_share`` is the fraction of a batter's signals that came
    on breaking or off-speed pitches, counting only signals with a recorded pitch
    category. When player game logs are given, the
    batter's home game count and bangs per home game are added.

    Args:
        bangs (pd.DataFrame): Cleaned bang events
        player_games (pd.DataFrame): Player-game stat lines (optional)
        min_bangs (int): Batters with fewer bangs are left out

    Returns:
        pd.DataFrame: One row per batter, most bangs first
    """
    valid = bangs.dropna(subset=['batter']).copy()
    # Signals with no recorded pitch stay out of the share
    valid['breaking_offspeed'] = (valid['pitch_group'].isin(BREAKING_OFFSPEED)
                                  .astype(float).where(valid['pitch_category'].notna()))
    summary = valid.groupby('batter').agg(
        batter_key=('batter_key', 'first'),
        bangs=('game_date', 'size'),
        games_with_bangs=('game_date', 'nunique'),
        breaking_offspeed_share=('breaking_offspeed', 'mean')
    ).reset_index()
    summary['bangs_per_game'] = _safe_div(summary['bangs'], summary['games_with_bangs'])

    if player_games is not None:
        home_games = player_games[player_games['is_home'].eq(True)].groupby('player_key').size()
        summary['home_games'] = summary['batter_key'].map(home_games)
        summary['bangs_per_home_game'] = _safe_div(summary['bangs'], summary['home_games'])

    summary = summary[summary['bangs'] >= min_bangs]
    summary = summary.sort_values(['bangs', 'batter'], ascending=[False, True])
    return summary.drop(columns='batter_key').reset_index(drop=True)


def bangs_by_inning(bangs: pd.DataFrame) -> pd.DataFrame:
    """Bang counts and shares per inning."""
    table = _share_table(bangs, 'inning')
    table['inning'] = table['inning'].astype(int)
    return table


def bangs_by_count(bangs: pd.DataFrame) -> pd.DataFrame:
    """Bang counts and shares per ball-strike count, in count order."""
    valid = bangs.dropna(subset=['count'])
    table = valid.groupby(['count', 'balls', 'strikes']).size().rename('bangs').reset_index()
    table['balls'] = table['balls'].astype(int)
    table['strikes'] = table['strikes'].astype(int)
    table['share'] = table['bangs'] / table['bangs'].sum()
    return table.sort_values(['balls', 'strikes']).reset_index(drop=True)


def count_matrix(bangs: pd.DataFrame) -> pd.DataFrame:
    """Balls x strikes matrix of bang counts (0-3 balls, 0-2 strikes)."""
    valid = bangs.dropna(subset=['balls', 'strikes'])
    matrix = (valid.groupby([valid['balls'].astype(int), valid['strikes'].astype(int)])
              .size().unstack(fill_value=0))
    matrix = matrix.reindex(index=range(4), columns=range(3), fill_value=0)
    matrix.index.name = 'balls'
    matrix.columns.name = 'strikes'
    return matrix


def bangs_by_pitcher(bangs: pd.DataFrame, top_n: int = TOP_N_PITCHERS) -> pd.DataFrame:
    """Opposing pitchers who were on the mound for the most bangs."""
    summary = bangs.dropna(subset=['pitcher']).groupby('pitcher').agg(
        bangs=('game_date', 'size'),
        games=('game_date', 'nunique')
    ).reset_index()
    summary = summary.sort_values(['bangs', 'pitcher'], ascending=[False, True])
    return summary.head(top_n).reset_index(drop=True)


def bangs_by_pitch_category(bangs: pd.DataFrame) -> pd.DataFrame:
    """Bang counts per pitch category with its strategic group."""
    summary = (bangs.dropna(subset=['pitch_category'])
               .groupby(['pitch_category', 'pitch_group']).size()
               .rename('bangs').reset_index())
    summary['share'] = summary['bangs'] / summary['bangs'].sum()
    summary['pitch_group'] = pd.Categorical(summary['pitch_group'], categories=PITCH_GROUP_ORDER)
    summary = summary.sort_values(['pitch_group', 'bangs'], ascending=[True, False])
    summary['pitch_group'] = summary['pitch_group'].astype(str)
    return summary.reset_index(drop=True)


def bangs_by_lineup(bangs: pd.DataFrame) -> pd.DataFrame:
    """Bang counts and shares per batting-order slot."""
    table = _share_table(bangs, 'lineup')
    table['lineup'] = table['lineup'].astype(int)
    return table


def bangs_by_score_situation(bangs: pd.DataFrame) -> pd.DataFrame:
    """Bang counts when the Astros were leading, tied, or trailing."""
    table = _share_table(bangs, 'score_situation')
    order = {situation: i for i, situation in enumerate(SCORE_SITUATIONS)}
    return table.sort_values('score_situation', key=lambda s: s.map(order)).reset_index(drop=True)


def add_rate_stats(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add AVG, OBP, SLG and OPS to a frame of counting stats.

    OBP = (H + BB + HBP) / (AB + BB + HBP + SF), SLG = TB / AB. Rows with a
    zero denominator get NaN.
    """
    df = df.copy()
    df['AVG'] = _safe_div(df['H'], df['AB'])
    df['OBP'] = _safe_div(df['H'] + df['BB'] + df['HBP'],
                          df['AB'] + df['BB'] + df['HBP'] + df['SF'])
    df['SLG'] = _safe_div(df['TB'], df['AB'])
    df['OPS'] = df['OBP'] + df['SLG']
    return df


def batting_line(df: pd.DataFrame) -> pd.Series:
    """Aggregate counting stats over ``df`` and compute the rate stats."""
    totals = df[BATTING_COLUMNS].sum().to_frame().T
    line = add_rate_stats(totals).iloc[0]
    line['games'] = len(df)
    return line


def _split_table(player_games: pd.DataFrame, splits: Dict[str, pd.Series]) -> pd.DataFrame:
    rows = []
    for label, mask in splits.items():
        row = batting_line(player_games[mask]).to_dict()
        row['split'] = label
        rows.append(row)
    table = pd.DataFrame(rows)[['split', 'games'] + BATTING_COLUMNS + RATE_COLUMNS]
    table['games'] = table['games'].astype(int)
    return table.reset_index(drop=True)


def home_away_splits(player_games: pd.DataFrame) -> pd.DataFrame:
    """Team batting line at home vs. on the road."""
    return _split_table(player_games, {
        'home': player_games['is_home'].eq(True),
        'away': player_games['is_home'].eq(False),
    })


def bang_splits(player_games: pd.DataFrame, home_only: bool = True) -> pd.DataFrame:
    """Batting line in player-games with a bang vs. without one."""
    scope = player_games[player_games['is_home'].eq(True)] if home_only else player_games
    return _split_table(scope, {
        'bang': scope['had_bang'].eq(True),
        'no bang': scope['had_bang'].eq(False),
    })


def player_home_away_splits(player_games: pd.DataFrame) -> pd.DataFrame:
    """Per-player home OPS, road OPS, and the home-minus-road difference."""
    known = player_games[player_games['is_home'].notna()].copy()
    known['is_home'] = known['is_home'].astype(bool)

    totals = known.groupby(['player', 'is_home'])[BATTING_COLUMNS].sum().reset_index()
    totals = add_rate_stats(totals)

    table = totals.pivot(index='player', columns='is_home', values='OPS')
    table = table.reindex(columns=[True, False])
    table.columns = ['home_OPS', 'away_OPS']
    table['OPS_diff'] = table['home_OPS'] - table['away_OPS']
    table['bangs'] = player_games.groupby('player')['bangs'].sum()

    table = table.reset_index()[['player', 'bangs', 'home_OPS', 'away_OPS', 'OPS_diff']]
    return table.sort_values('OPS_diff', ascending=False, na_position='last').reset_index(drop=True)


def build_summary_tables(dataset) -> Dict:
    """Run every aggregator over a loaded BangDataset."""
    bangs, player_games, games = dataset.bangs, dataset.player_games, dataset.games
    return {
        'total_bangs': len(bangs),
        'pitch_groups': bangs.dropna(subset=['pitch_category'])['pitch_group'].value_counts(),
        'by_month': bangs_by_month(bangs),
        'by_game': bangs_by_game(bangs, games),
        'by_player': bangs_by_player(bangs, player_games),
        'by_inning': bangs_by_inning(bangs),
        'by_count': bangs_by_count(bangs),
        'count_matrix': count_matrix(bangs),
        'by_pitcher': bangs_by_pitcher(bangs),
        'by_category': bangs_by_pitch_category(bangs),
        'by_lineup': bangs_by_lineup(bangs),
        'by_situation': bangs_by_score_situation(bangs),
        'home_away': home_away_splits(player_games),
        'bang_splits': bang_splits(player_games),
        'player_splits': player_home_away_splits(player_games),
    }


def generate_findings(summary: Dict) -> Dict[str, List[str]]:
    """Turn the summary tables and test results into short narrative sentences.

    Args:
        summary (Dict): Output of build_summary_tables, optionally extended with
            'ttest', 'regression' and 'correlation' results (None when a test
            could not be run).

    Returns:
        Dict[str, List[str]]: Sentences grouped by report section.
    """
    if not summary.get('total_bangs'):
        return {"No Analysis": ["No bang events were loaded"]}

    findings = {
        "Bang Volume": [],
        "Who Heard Bangs": [],
        "Batting Impact": [],
        "Statistical Tests": []
    }

    total = summary['total_bangs']
    by_game = summary['by_game']
    games_with = int((by_game['bangs'] > 0).sum())
    findings["Bang Volume"].append(
        f"{total} bangs were logged across {games_with} games ({total / max(games_with, 1):.1f} per game with a bang)"
    )

    by_month = summary['by_month']
    if not by_month.empty:
        peak = by_month.loc[by_month['bangs'].idxmax()]
        findings["Bang Volume"].append(
            f"Bangs peaked in {peak['month']} with {int(peak['bangs'])} signals over {int(peak['games'])} games"
        )

    groups = summary['pitch_groups']
    if groups.sum() > 0:
        share = groups.reindex(BREAKING_OFFSPEED, fill_value=0).sum() / groups.sum()
        findings["Bang Volume"].append(
            f"{share:.1%} of bangs came before a breaking or off-speed pitch"
        )

    by_player = summary['by_player']
    if not by_player.empty:
        top = by_player.iloc[0]
        findings["Who Heard Bangs"].append(
            f"{top['batter']} heard the most bangs ({int(top['bangs'])} across {int(top['games_with_bangs'])} games)"
        )
        findings["Who Heard Bangs"].append(
            f"{len(by_player)} different batters received at least one signal"
        )

    by_pitcher = summary['by_pitcher']
    if not by_pitcher.empty:
        top = by_pitcher.iloc[0]
        findings["Who Heard Bangs"].append(
            f"{top['pitcher']} was on the mound for the most bangs ({int(top['bangs'])})"
        )

    home_away = summary['home_away'].set_index('split')
    if {'home', 'away'}.issubset(home_away.index):
        findings["Batting Impact"].append(
            f"Team OPS was {home_away.loc['home', 'OPS']:.3f} at home vs {home_away.loc['away', 'OPS']:.3f} on the road"
        )

    splits = summary['bang_splits'].set_index('split')
    if {'bang', 'no bang'}.issubset(splits.index):
        findings["Batting Impact"].append(
            f"In home games, batters hit for a {splits.loc['bang', 'OPS']:.3f} OPS when they heard a bang "
            f"and {splits.loc['no bang', 'OPS']:.3f} when they did not"
        )

    ttest = summary.get('ttest')
    if ttest is not None:
        verdict = "significant" if ttest['significant'] else "not significant"
        findings["Statistical Tests"].append(
            f"Welch t-test on per-game {ttest['metric']}: t = {ttest['t_statistic']:.2f}, "
            f"p = {ttest['p_value']:.3f} ({verdict} at alpha = {ttest['alpha']})"
        )
    else:
        findings["Statistical Tests"].append("The t-test could not be run on this data")

    regression = summary.get('regression')
    if regression is not None:
        slope = regression['coefficients'].set_index('term').loc['bangs']
        findings["Statistical Tests"].append(
            f"Each additional bang is associated with {slope['estimate']:+.2f} runs "
            f"(p = {slope['p_value']:.3f}, R-squared = {regression['r_squared']:.3f})"
        )
    else:
        findings["Statistical Tests"].append("The runs regression could not be fit on this data")

    correlation = summary.get('correlation')
    if correlation is not None:
        findings["Statistical Tests"].append(
            f"Correlation between bangs and runs per game: r = {correlation['r']:.3f} (n = {correlation['n']})"
        )

    return findings


def get_player_bang_summary(player_name: str, bangs: pd.DataFrame,
                            player_games: pd.DataFrame) -> str:
    """Readable multi-line summary of one batter's bangs and home/road batting.

    Args:
        player_name (str): Any spelling that normalizes to the player's key
            (e.g. 'Jose Altuve' or 'Altuve, Jose').
        bangs (pd.DataFrame): Cleaned bang events.
        player_games (pd.DataFrame): Player-game stat lines with bang counts.

    Returns:
        str: Summary text, or a short message when the player is unknown.
    """
    key = normalize_name(player_name)
    player_bangs = bangs[bangs['batter_key'] == key]
    games = player_games[player_games['player_key'] == key]

    if player_bangs.empty and games.empty:
        return f"No data found for player: {player_name}"

    groups = player_bangs['pitch_group'].value_counts()
    home = batting_line(games[games['is_home'].eq(True)])
    away = batting_line(games[games['is_home'].eq(False)])

    summary = f"""
Player: {player_name}
Bangs heard: {len(player_bangs)} across {player_bangs['game_date'].nunique()} games
Pitch groups: {', '.join(f'{g} {n}' for g, n in groups.items()) or 'none'}

Batting:
- Home: {home['AVG']:.3f} AVG / {home['OPS']:.3f} OPS over {int(home['games'])} games
- Away: {away['AVG']:.3f} AVG / {away['OPS']:.3f} OPS over {int(away['games'])} games
"""
    return summary
