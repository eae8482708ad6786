"""
Price fetcher - adjusted close prices from Yahoo Finance.
Network IO lives here; everything downstream works on the returned frame.
"""

import logging
from datetime import timedelta

import pandas as pd
import yfinance as yf

logger = logging.getLogger(__name__)


class PriceFetchError(Exception):
    """Raised when the price provider call fails."""
    pass


def download_price_data(tickers, start, end):
    """Download adjusted close prices from Yahoo Finance.

    Returns a frame indexed by date with one column per ticker. ``end`` is
    inclusive; the provider treats it as exclusive so one day is added.
    """
    tickers = list(tickers)
    if len(tickers) == 0:
        return pd.DataFrame()

    logger.info("Downloading %d tickers from %s to %s", len(tickers), start, end)
    try:
        data = yf.download(
            tickers,
            start=start,
            end=end + timedelta(days=1),
            auto_adjust=True,
            progress=False,
        )
    except Exception as e:
        raise PriceFetchError(f"Price download failed: {e}") from e

    if data is None or data.empty:
        logger.warning("Provider returned no prices for %s", ", ".join(tickers))
        return pd.DataFrame()

    if isinstance(data.columns, pd.MultiIndex):
        data = data["Close"].copy()
    else:
        data = data[["Close"]].rename(columns={"Close": tickers[0]})

    data.index = pd.to_datetime(data.index).tz_localize(None)
    data = data.reindex(columns=tickers)
    data.columns.name = None
    return data.dropna(how="all").sort_index()


def missing_tickers(prices, tickers):
    """Tickers with no usable price in the frame."""
    present = set(to_price_points(prices)["symbol"])
    missing = [t for t in tickers if t not in present]
    if missing:
        logger.warning("No price data for: %s", ", ".join(missing))
    return missing


def to_price_points(prices):
    """Long form: one row per (symbol, trading day)."""
    if prices.empty:
        return pd.DataFrame(columns=["symbol", "date", "adjusted_close"])
    long = (
        prices.rename_axis("date")
        .reset_index()
        .melt(id_vars="date", var_name="symbol", value_name="adjusted_close")
        .dropna(subset=["adjusted_close"])
    )
    return long[["symbol", "date", "adjusted_close"]].reset_index(drop=True)
