"""
Configuration file for the trash-can bang analysis.

Contains all constants, mappings, and configuration parameters used throughout the project.
"""

# Season covered by the bang log; baseball-reference dates omit the year
SEASON = 2017

# File paths (relative to the project root)
DATA_DIR = "data"
RESULTS_DIR = "results"
BANGS_FILE = "astros_bangs.csv"
GAMES_FILE = "astros_games.csv"
PLAYER_LOG_DIR = "player_logs"
REPORT_FILENAME = "bang_report.html"
EXPORT_FILENAME = "bang_report.json"

# Raw header spellings -> canonical bang columns
BANG_COLUMN_ALIASES = {
    'date': 'game_date',
    'game_date': 'game_date',
    'opponent': 'opponent',
    'opp': 'opponent',
    'batter': 'batter',
    'batter_name': 'batter',
    'inning': 'inning',
    'balls': 'balls',
    'strikes': 'strikes',
    'pitch_category': 'pitch_category',
    'pitch_type': 'pitch_category',
    'lineup': 'lineup',
    'lineup_position': 'lineup',
    'at_bat_id': 'at_bat_id',
    'at_bat_event': 'at_bat_id',
    'pitcher': 'pitcher',
    'astros_score': 'team_score',
    'team_score': 'team_score',
    'opponent_score': 'opponent_score',
    'opp_score': 'opponent_score',
}

# Game-log / schedule headers -> canonical columns
GAME_LOG_COLUMN_ALIASES = {
    'Date': 'game_date',
    'Opp': 'opponent',
    'Player': 'player',
    'R': 'runs_scored',
    'RA': 'runs_allowed',
}

# Columns that may hold the "@" home/away marker in baseball-reference exports
HOME_AWAY_COLUMNS = ['HomeAway', 'Home_Away', 'Unnamed: 5', 'Unnamed: 4', 'Unnamed: 3']
AWAY_MARKER = '@'

# Counting stats read from each player game log
BATTING_COLUMNS = ['AB', 'H', 'BB', 'HBP', 'SF', 'TB', 'HR']

# Pitch category codes -> strategic pitch groups
# Bangs were used to flag anything that was not a fastball
PITCH_GROUPS = {
    'FB': 'fastball',    # Four-seam / generic fastball
    'FF': 'fastball',
    'FT': 'fastball',    # Two-seamer
    'SI': 'fastball',    # Sinker
    'FC': 'fastball',    # Cutter
    'SL': 'breaking',
    'CB': 'breaking',
    'CU': 'breaking',
    'KC': 'breaking',
    'CH': 'offspeed',
    'FS': 'offspeed',    # Splitter
    'KN': 'offspeed',    # Knuckleball
}
PITCH_GROUP_ORDER = ['fastball', 'breaking', 'offspeed', 'other']

# Opponent spellings -> baseball-reference team codes
TEAM_ALIASES = {
    'angels': 'LAA', 'laa': 'LAA', 'ana': 'LAA',
    'athletics': 'OAK', "a's": 'OAK', 'oak': 'OAK',
    'blue jays': 'TOR', 'tor': 'TOR',
    'braves': 'ATL', 'atl': 'ATL',
    'cubs': 'CHC', 'chc': 'CHC',
    'diamondbacks': 'ARI', 'ari': 'ARI',
    'dodgers': 'LAD', 'lad': 'LAD',
    'giants': 'SFG', 'sfg': 'SFG', 'sf': 'SFG',
    'indians': 'CLE', 'cle': 'CLE',
    'mariners': 'SEA', 'sea': 'SEA',
    'mets': 'NYM', 'nym': 'NYM',
    'orioles': 'BAL', 'bal': 'BAL',
    'phillies': 'PHI', 'phi': 'PHI',
    'rangers': 'TEX', 'tex': 'TEX',
    'rays': 'TBR', 'tbr': 'TBR', 'tb': 'TBR',
    'red sox': 'BOS', 'bos': 'BOS',
    'royals': 'KCR', 'kcr': 'KCR', 'kc': 'KCR',
    'tigers': 'DET', 'det': 'DET',
    'twins': 'MIN', 'min': 'MIN',
    'white sox': 'CHW', 'chw': 'CHW', 'cws': 'CHW',
    'yankees': 'NYY', 'nyy': 'NYY',
}

# Normalized-name spellings that differ between the bang log and game logs
NAME_ALIASES = {
    'cameron maybin': 'cam maybin',
    'yulieski gurriel': 'yuli gurriel',
}

# Generational suffixes dropped from name keys
NAME_SUFFIXES = {'jr', 'sr', 'ii', 'iii', 'iv'}

# token_sort_ratio score (0-100) a bang-log name needs to match that day's game-log name
NAME_MATCH_THRESHOLD = 80

# Minimum sample sizes for summary tables
MIN_SAMPLES = {
    'player_bangs': 1,     # Min bangs for a batter to appear in the player table
    'ttest_group': 2,      # Min observations per t-test group
    'correlation': 3       # Min paired observations for a correlation
}

# Number of opposing pitchers shown in the pitcher table and chart
TOP_N_PITCHERS = 15

# Statistical test configuration
TTEST_CONFIG = {
    'metric': 'OPS',       # Per-game rate stat compared between groups
    'home_only': True,     # Bangs only happened at Minute Maid Park
    'alpha': 0.05
}

REGRESSION_CONFIG = {
    'target': 'runs_scored',
    'features': ['bangs']
}

# Plot configuration
PLOT_CONFIG = {
    'figsize': (10, 6),
    'wide_figsize': (14, 6),
    'dpi': 120,
    'palette': 'Oranges',
    'bar_color': '#EB6E1F',     # Astros orange
    'alt_color': '#002D62'      # Astros navy
}

# HTML report configuration
REPORT_CONFIG = {
    'title': 'Trash-Can Bangs and the 2017 Astros',
    'decimals': 3,
    'max_table_rows': 30
}
