"""
Optional pre-built table of historical annual returns.

The workbook holds one row per (asset_class, year, annual_return). When it is
present, only the current year has to be fetched live; when it is missing or
unreadable every year is computed from live prices instead.
"""

import logging
from datetime import date
from pathlib import Path

import pandas as pd

from quilt.returns import RETURN_COLUMNS, sort_returns
from quilt.settings import ANNUALISED_LABEL, HISTORY_COLUMNS, YTD_LABEL
from quilt.tickers import ASSETS, by_asset_class

logger = logging.getLogger(__name__)


class HistoryError(Exception):
    """Raised when a history file exists but cannot be used."""
    pass


def load_history(path, assets=ASSETS):
    """
    Read annual returns from an Excel workbook or CSV file.

    Args:
        path: File path; ``.csv`` is read as CSV, anything else as Excel
        assets: Registry used to attach categories

    Returns:
        Returns frame with RETURN_COLUMNS, or None if the file does not exist

    Raises:
        HistoryError: If the file is unreadable or its contents are malformed
    """
    if path is None:
        return None
    path = Path(path)
    if not path.exists():
        return None

    try:
        if path.suffix.lower() == ".csv":
            raw = pd.read_csv(path)
        else:
            raw = pd.read_excel(path)
    except Exception as e:
        raise HistoryError(f"Cannot read {path.name}: {e}") from e

    raw.columns = [str(c).strip().lower().replace(" ", "_") for c in raw.columns]
    missing = [c for c in HISTORY_COLUMNS if c not in raw.columns]
    if missing:
        raise HistoryError(f"{path.name} is missing columns: {', '.join(missing)}")

    df = raw[HISTORY_COLUMNS].dropna(subset=["asset_class", "year"]).copy()
    df["asset_class"] = df["asset_class"].astype(str).str.strip()

    # Derived labels are always recomputed
    year_text = df["year"].astype(str).str.strip()
    df = df[~year_text.isin([YTD_LABEL, ANNUALISED_LABEL])].copy()

    years = pd.to_numeric(df["year"], errors="coerce")
    if years.isna().any():
        raise HistoryError(f"{path.name} has non-numeric years")
    df["year"] = years.astype(int).astype(str)

    values = pd.to_numeric(df["annual_return"], errors="coerce")
    if (values.isna() & df["annual_return"].notna()).any():
        raise HistoryError(f"{path.name} has non-numeric returns")
    df["annual_return"] = values
    df = df.dropna(subset=["annual_return"])

    registry = by_asset_class(assets)
    unknown = sorted(set(df["asset_class"]) - set(registry))
    if unknown:
        logger.warning("Ignoring unknown asset classes in %s: %s", path.name, ", ".join(unknown))
        df = df[df["asset_class"].isin(registry)].copy()

    df["category"] = df["asset_class"].map(lambda name: registry[name].category)
    df = df.drop_duplicates(subset=["asset_class", "year"], keep="last")
    logger.info("Loaded %d historical returns from %s", len(df), path.name)
    return sort_returns(df[RETURN_COLUMNS], assets)


def resolve_history(path):
    """
    Load the history file if possible.

    Returns:
        (history frame or None, provenance note for the user)
    """
    name = Path(path).name if path is not None else "historical data file"
    try:
        history = load_history(path)
    except HistoryError as e:
        logger.warning("Falling back to live prices: %s", e)
        return None, (
            f"The historical data file ({name}) could not be read, so every year "
            "is computed from live Yahoo Finance prices."
        )

    if history is None or history.empty:
        return None, "No historical data file found; every year is computed from live Yahoo Finance prices."

    last_year = max(history["year"])
    return history, (
        f"Full years up to {last_year} come from {name}; later years and YTD "
        "are computed from live Yahoo Finance prices."
    )


def merge_history(history, live):
    """History rows not computed live, plus every live row."""
    if history is None or history.empty:
        return live
    if live.empty:
        return sort_returns(history.reset_index(drop=True))
    live_keys = set(zip(live["asset_class"], live["year"]))
    keep = [
        (asset_class, year) not in live_keys
        for asset_class, year in zip(history["asset_class"], history["year"])
    ]
    merged = pd.concat([history[keep], live], ignore_index=True)
    return sort_returns(merged[RETURN_COLUMNS])


def live_fetch_start(history, start_year, cutoff, assets=ASSETS):
    """
    First date the live download has to cover.

    Only the cutoff's year is fetched when the history holds every
    (asset class, year) pair from ``start_year`` up to that year; any gap
    means every year is fetched live.
    """
    ytd_start = date(cutoff.year, 1, 1)
    if start_year >= cutoff.year:
        return ytd_start
    if history is None or history.empty:
        return date(start_year, 1, 1)
    covered = set(zip(history["asset_class"], history["year"]))
    needed = {
        (asset.asset_class, str(y))
        for asset in assets
        for y in range(start_year, cutoff.year)
    }
    if needed <= covered:
        return ytd_start
    return date(start_year, 1, 1)
