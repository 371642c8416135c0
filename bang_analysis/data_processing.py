"""
Data processing module for the trash-can bang analysis.

Contains the loader class plus the cleaning and joining helpers that reconcile
the bang log, the per-player game logs, and the team game results into
analysis-ready tables.
"""

import pandas as pd
import numpy as np
import os
import re
import glob
import warnings
import logging
from collections import namedtuple

from thefuzz import fuzz, process
from unidecode import unidecode

from config import (
    SEASON, BANGS_FILE, GAMES_FILE, PLAYER_LOG_DIR,
    BANG_COLUMN_ALIASES, GAME_LOG_COLUMN_ALIASES, HOME_AWAY_COLUMNS, AWAY_MARKER,
    BATTING_COLUMNS, PITCH_GROUPS, TEAM_ALIASES, NAME_ALIASES, NAME_SUFFIXES,
    NAME_MATCH_THRESHOLD
)

warnings.filterwarnings('ignore')
logger = logging.getLogger(__name__)

BangDataset = namedtuple('BangDataset', ['bangs', 'player_games', 'games'])

# Formats tried in order; year-less baseball-reference dates get the season appended
_FULL_DATE_FORMATS = ['%Y-%m-%d', '%m/%d/%Y', '%m/%d/%y', '%Y%m%d']
_SEASON_DATE_FORMATS = ['%b %d %Y', '%B %d %Y']

_WEEKDAY_PREFIX = re.compile(r'^[A-Za-z]+day,\s*')
_DOUBLEHEADER_SUFFIX = re.compile(r'\s*\(\d\)\s*$')

BANG_COLUMNS = [
    'game_date', 'opponent', 'batter', 'inning', 'balls', 'strikes',
    'pitch_category', 'lineup', 'at_bat_id', 'pitcher', 'team_score', 'opponent_score'
]


class BangDataSystem:
    """
    Loader for the three bang-analysis sources.

    The bang log, the team schedule, and the directory of per-player game logs
    live at fixed locations under ``data_dir``. Loading never validates the
    joins: rows that fail to match simply carry missing values downstream.

    Attributes:
        data_dir (str): Directory holding the CSV sources
        season (int): Year applied to baseball-reference dates that omit it
        dataset (BangDataset): Cleaned and joined tables (set after loading)
    """

    def __init__(self, data_dir: str = "data", season: int = SEASON):
        """
        Initialize the loader.

        Args:
            data_dir (str): Directory containing astros_bangs.csv, astros_games.csv
                and the player_logs/ directory
            season (int): Season year for dates written without one
        """
        self.data_dir = data_dir
        self.season = season
        self.dataset = None

    @property
    def bangs_path(self) -> str:
        return os.path.join(self.data_dir, BANGS_FILE)

    @property
    def games_path(self) -> str:
        return os.path.join(self.data_dir, GAMES_FILE)

    @property
    def player_log_dir(self) -> str:
        return os.path.join(self.data_dir, PLAYER_LOG_DIR)

    def load_bangs(self) -> pd.DataFrame:
        """Read the raw bang log (one row per detected signal)."""
        bangs = pd.read_csv(self.bangs_path)
        logger.info(f"Loaded {len(bangs)} bang records from {self.bangs_path}")
        return bangs

    def load_games(self) -> pd.DataFrame:
        """Read the raw team schedule and results."""
        games = pd.read_csv(self.games_path)
        logger.info(f"Loaded {len(games)} game results from {self.games_path}")
        return games

    def load_player_logs(self) -> pd.DataFrame:
        """
        Read every per-player game log in the player log directory.

        Files are read in sorted order. When a log has no ``Player`` column the
        player name is taken from the file name (``jose_altuve.csv`` -> ``Jose Altuve``).

        Returns:
            pd.DataFrame: All game logs stacked into one raw frame

        Raises:
            FileNotFoundError: If the directory is missing or holds no CSV files
        """
        if not os.path.isdir(self.player_log_dir):
            raise FileNotFoundError(f"Player log directory not found: {self.player_log_dir}")

        paths = sorted(glob.glob(os.path.join(self.player_log_dir, '*.csv')))
        if not paths:
            raise FileNotFoundError(f"No player logs found in {self.player_log_dir}")

        frames = []
        for path in paths:
            log = pd.read_csv(path)
            if 'Player' not in log.columns:
                log['Player'] = player_name_from_path(path)
            frames.append(log)

        logs = pd.concat(frames, ignore_index=True, sort=False)
        logger.info(f"Loaded {len(logs)} player-game rows from {len(paths)} game logs")
        return logs

    def load_and_preprocess_data(self) -> BangDataset:
        """
        Load, clean, and join all three sources.

        Returns:
            BangDataset: ``bangs`` (cleaned bang events), ``player_games`` (stat lines
            with per-game bang counts attached), and ``games`` (cleaned results)

        Raises:
            FileNotFoundError: If any required source is missing
        """
        logger.info("Loading and preprocessing data...")

        try:
            raw_bangs = self.load_bangs()
            raw_games = self.load_games()
            raw_logs = self.load_player_logs()
        except Exception as e:
            logger.error(f"Error loading data: {str(e)}")
            raise

        bangs = clean_bangs(raw_bangs, self.season)
        games = clean_games(raw_games, self.season)
        player_games = clean_player_games(raw_logs, self.season)
        player_games = attach_bang_counts(player_games, bangs)

        self.dataset = BangDataset(bangs=bangs, player_games=player_games, games=games)
        return self.dataset


def player_name_from_path(path: str) -> str:
    """Turn a game-log file name into a display name."""
    stem = os.path.splitext(os.path.basename(path))[0]
    return ' '.join(part.capitalize() for part in re.split(r'[_\-\s]+', stem) if part)


def normalize_name(name):
    """
    Build a join key from a player name.

    Accents, punctuation, and generational suffixes are removed, "Last, First"
    is reordered to "first last", and known spelling variants are resolved
    through NAME_ALIASES. Anything that is not a non-empty string gives NaN.
    """
    if not isinstance(name, str) or not name.strip():
        return np.nan

    if ',' in name:
        last, _, first = name.partition(',')
        name = f"{first} {last}"

    text = unidecode(name).lower().replace('.', '').replace("'", '')
    text = re.sub(r'[^a-z0-9]+', ' ', text)

    tokens = [tok for tok in text.split() if tok not in NAME_SUFFIXES]
    if not tokens:
        return np.nan

    key = ' '.join(tokens)
    return NAME_ALIASES.get(key, key)


def fuzzy_match_name(name, choices, threshold=NAME_MATCH_THRESHOLD):
    """Return the closest of ``choices`` to ``name``, or None below ``threshold``."""
    if not choices:
        return None
    match = process.extractOne(name, choices, scorer=fuzz.token_sort_ratio)
    if match and match[1] >= threshold:
        return match[0]
    return None


def normalize_team(team):
    """Map an opponent spelling to its team code; unknown spellings are kept as given."""
    if not isinstance(team, str) or not team.strip():
        return np.nan
    team = team.strip()
    return TEAM_ALIASES.get(team.lower(), team)


def parse_game_date(values: pd.Series, season: int = SEASON) -> pd.Series:
    """
    Parse the date spellings used across the three sources.

    Handles ISO (``2017-05-28``), US (``5/28/2017``), and baseball-reference
    forms (``May 28``, ``Sunday, May 28``, ``Jul 4 (1)``). Year-less dates take
    ``season``. Values that match none of these become NaT.
    """
    if pd.api.types.is_datetime64_any_dtype(values):
        return values

    text = values.astype(str).str.strip()
    text = text.str.replace(_WEEKDAY_PREFIX, '', regex=True)
    text = text.str.replace(_DOUBLEHEADER_SUFFIX, '', regex=True)

    parsed = pd.Series(pd.NaT, index=values.index, dtype='datetime64[ns]')
    for fmt in _FULL_DATE_FORMATS:
        missing = parsed.isna()
        if not missing.any():
            break
        parsed[missing] = pd.to_datetime(text[missing], format=fmt, errors='coerce')

    with_season = text + f" {season}"
    for fmt in _SEASON_DATE_FORMATS:
        missing = parsed.isna()
        if not missing.any():
            break
        parsed[missing] = pd.to_datetime(with_season[missing], format=fmt, errors='coerce')

    return parsed


def derive_home_flag(markers: pd.Series) -> pd.Series:
    """``@`` marks a road game; any other value (blank included) is a home game."""
    return markers.fillna('').astype(str).str.strip() != AWAY_MARKER


def _find_home_away_column(df: pd.DataFrame):
    for col in HOME_AWAY_COLUMNS:
        if col in df.columns:
            return col
    return None


def _drop_repeated_headers(df: pd.DataFrame) -> pd.DataFrame:
    # baseball-reference exports repeat the header row every 20 or so games
    if 'game_date' not in df.columns:
        return df
    return df[df['game_date'].astype(str).str.strip() != 'Date'].reset_index(drop=True)


def _to_numeric(df: pd.DataFrame, columns) -> pd.DataFrame:
    for col in columns:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors='coerce')
    return df


def clean_bangs(df: pd.DataFrame, season: int = SEASON) -> pd.DataFrame:
    """
    Normalize the raw bang log into one tidy row per signal.

    Adds ``batter_key`` for joining, a ``count`` string ("balls-strikes"),
    the strategic ``pitch_group``, the ``score_situation`` at the time of the
    signal, and the calendar ``month``.

    Args:
        df (pd.DataFrame): Raw bang log as read from CSV
        season (int): Year applied to year-less dates

    Returns:
        pd.DataFrame: Cleaned bang events
    """
    df = df.rename(columns=lambda c: BANG_COLUMN_ALIASES.get(str(c).strip().lower(), c)).copy()

    # Missing source columns become all-missing columns
    for col in BANG_COLUMNS:
        if col not in df.columns:
            df[col] = np.nan

    df['game_date'] = parse_game_date(df['game_date'], season)
    df['month'] = df['game_date'].dt.strftime('%Y-%m')

    df['batter'] = df['batter'].where(df['batter'].isna(), df['batter'].astype(str).str.strip())
    df['batter_key'] = df['batter'].map(normalize_name)
    df['opponent'] = df['opponent'].map(normalize_team)

    df = _to_numeric(df, ['inning', 'balls', 'strikes', 'lineup', 'team_score', 'opponent_score'])

    has_count = df['balls'].notna() & df['strikes'].notna()
    count_text = (df['balls'].fillna(0).astype(int).astype(str) + '-' +
                  df['strikes'].fillna(0).astype(int).astype(str))
    df['count'] = count_text.where(has_count)

    category = df['pitch_category'].where(df['pitch_category'].isna(),
                                          df['pitch_category'].astype(str).str.strip().str.upper())
    df['pitch_category'] = category
    df['pitch_group'] = category.map(PITCH_GROUPS).fillna('other')

    diff = df['team_score'] - df['opponent_score']
    situation = np.select([diff > 0, diff == 0, diff < 0], ['leading', 'tied', 'trailing'], default='')
    df['score_situation'] = pd.Series(situation, index=df.index).replace('', np.nan)

    unparsed = df['game_date'].isna().sum()
    if unparsed:
        logger.info(f"{unparsed} bang rows have unparseable dates")

    return df


def clean_player_games(df: pd.DataFrame, season: int = SEASON) -> pd.DataFrame:
    """
    Normalize stacked baseball-reference batting game logs.

    Derives ``is_home`` from the ``@`` marker column and computes total bases
    from extra-base hits when the log has no ``TB`` column.

    Args:
        df (pd.DataFrame): Raw player game logs with a ``Player`` column
        season (int): Year applied to year-less dates

    Returns:
        pd.DataFrame: One stat line per player-game
    """
    marker_col = _find_home_away_column(df)
    df = df.rename(columns=GAME_LOG_COLUMN_ALIASES).copy()
    df = _drop_repeated_headers(df)

    if marker_col is not None:
        df['is_home'] = derive_home_flag(df[marker_col])
    else:
        logger.warning("No home/away marker column in player game logs")
        df['is_home'] = np.nan

    df['game_date'] = parse_game_date(df['game_date'], season)
    if 'player' not in df.columns:
        df['player'] = np.nan
    df['player'] = df['player'].where(df['player'].isna(), df['player'].astype(str).str.strip())
    df['player_key'] = df['player'].map(normalize_name)
    if 'opponent' in df.columns:
        df['opponent'] = df['opponent'].map(normalize_team)
    else:
        df['opponent'] = np.nan

    df = _to_numeric(df, BATTING_COLUMNS + ['2B', '3B'])

    if 'TB' not in df.columns:
        if {'H', '2B', '3B', 'HR'}.issubset(df.columns):
            # Singles count once, each extra base adds one
            df['TB'] = df['H'] + df['2B'] + 2 * df['3B'] + 3 * df['HR']
        else:
            df['TB'] = np.nan

    for col in BATTING_COLUMNS:
        if col not in df.columns:
            df[col] = np.nan

    columns = ['game_date', 'player', 'player_key', 'opponent', 'is_home'] + BATTING_COLUMNS
    return df[columns]


def clean_games(df: pd.DataFrame, season: int = SEASON) -> pd.DataFrame:
    """
    Normalize the team schedule into one result row per game.

    Args:
        df (pd.DataFrame): Raw baseball-reference schedule
        season (int): Year applied to year-less dates

    Returns:
        pd.DataFrame: ``game_date``, ``opponent``, ``is_home``, ``runs_scored``,
        ``runs_allowed``, ``won``
    """
    marker_col = _find_home_away_column(df)
    df = df.rename(columns=GAME_LOG_COLUMN_ALIASES).copy()
    df = _drop_repeated_headers(df)

    df['game_date'] = parse_game_date(df['game_date'], season)
    if marker_col is not None:
        df['is_home'] = derive_home_flag(df[marker_col])
    else:
        df['is_home'] = np.nan
    if 'opponent' in df.columns:
        df['opponent'] = df['opponent'].map(normalize_team)
    else:
        df['opponent'] = np.nan

    for col in ['runs_scored', 'runs_allowed']:
        if col not in df.columns:
            df[col] = np.nan
    df = _to_numeric(df, ['runs_scored', 'runs_allowed'])

    decided = df['runs_scored'].notna() & df['runs_allowed'].notna()
    df['won'] = (df['runs_scored'] > df['runs_allowed']).where(decided)

    return df[['game_date', 'opponent', 'is_home', 'runs_scored', 'runs_allowed', 'won']]


def attach_bang_counts(player_games: pd.DataFrame, bangs: pd.DataFrame) -> pd.DataFrame:
    """
    Attach the number of bangs each batter heard in each game.

    Left join on (date, name key). A batter key with no exact match among that
    date's game logs is resolved to the closest logged name with
    ``fuzzy_match_name``. Player-games without a matching signal get
    ``bangs = 0``; ``had_bang`` flags games with at least one.
    """
    counts = (bangs.groupby(['game_date', 'batter_key']).size()
              .rename('bangs').reset_index())

    logged = player_games.dropna(subset=['game_date', 'player_key'])
    rosters = {date: sorted(set(keys)) for date, keys in logged.groupby('game_date')['player_key']}
    resolved = 0
    for idx, row in counts.iterrows():
        roster = rosters.get(row['game_date'], [])
        if row['batter_key'] in roster:
            continue
        match = fuzzy_match_name(row['batter_key'], roster)
        if match is not None:
            logger.info(f"Matched bang-log name '{row['batter_key']}' to '{match}' on "
                        f"{row['game_date'].date()}")
            counts.at[idx, 'batter_key'] = match
            resolved += 1
    if resolved:
        counts = counts.groupby(['game_date', 'batter_key'], as_index=False)['bangs'].sum()

    merged = player_games.merge(
        counts, left_on=['game_date', 'player_key'], right_on=['game_date', 'batter_key'],
        how='left'
    ).drop(columns='batter_key')

    merged['bangs'] = merged['bangs'].fillna(0).astype(int)
    merged['had_bang'] = merged['bangs'] > 0

    matched = counts.merge(player_games[['game_date', 'player_key']].drop_duplicates(),
                           left_on=['game_date', 'batter_key'],
                           right_on=['game_date', 'player_key'], how='inner')
    unmatched = int(counts['bangs'].sum() - matched['bangs'].sum())
    if unmatched:
        logger.info(f"{unmatched} bangs did not match a player game log")

    return merged


def attach_game_results(per_date: pd.DataFrame, games: pd.DataFrame, how: str = 'left') -> pd.DataFrame:
    """
    Join game results onto a table keyed by ``game_date``.

    Result columns already present in ``per_date`` are not duplicated: the
    value from ``games`` wins, and the ``per_date`` value is kept only where
    ``games`` has none.
    """
    result_cols = ['game_date', 'opponent', 'runs_scored', 'runs_allowed', 'won']
    results = games[[c for c in result_cols if c in games.columns]]

    merged = per_date.merge(results, on='game_date', how=how, suffixes=('', '_game'))
    for col in result_cols[1:]:
        dup = f"{col}_game"
        if dup in merged.columns:
            merged[col] = merged[dup].combine_first(merged[col])
            merged = merged.drop(columns=dup)

    if how == 'left':
        missing = merged['runs_scored'].isna().sum()
        if missing:
            logger.info(f"{missing} rows did not match a game result")

    return merged
