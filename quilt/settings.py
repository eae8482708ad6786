"""
Dashboard configuration.
Plain module-level constants; the only environment override is the history file path.
"""

import os
from pathlib import Path

# Project root (the directory holding app.py)
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Optional pre-built table of historical annual returns
DATA_DIR = PROJECT_ROOT / "data"
HISTORY_FILE = Path(os.environ.get("QUILT_HISTORY_FILE", DATA_DIR / "annual_returns.xlsx"))
HISTORY_COLUMNS = ["asset_class", "year", "annual_return"]

# Year labels
YTD_LABEL = "YTD"
ANNUALISED_LABEL = "Annualised"

# Controls
DEFAULT_START_YEAR = 2015
EARLIEST_START_YEAR = 2005
DEFAULT_BENCHMARK = "U.S. Large Cap"
MODES = ["Absolute", "Relative"]
COLOR_MODES = ["Return", "Category"]

# "first": ties broken by row order; "dense": equal returns share a rank
RANK_METHOD = "first"

# Chart
RETURN_COLORSCALE = "RdYlGn"
CELL_HEIGHT = 46
MIN_CHART_HEIGHT = 420
