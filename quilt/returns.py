"""
Return calculator.
Daily adjusted closes -> calendar-year, year-to-date and annualised returns per asset class.
"""

import logging

import numpy as np
import pandas as pd

from quilt.settings import ANNUALISED_LABEL, YTD_LABEL
from quilt.tickers import ASSETS, asset_classes

logger = logging.getLogger(__name__)

RETURN_COLUMNS = ["asset_class", "category", "year", "annual_return"]


def year_return(series, year, cutoff=None):
    """
    Simple return of one price series over one calendar year.

    Start price is the first January close of ``year``. End price is the last
    December close, or, for an in-progress year, the last close on or before
    ``cutoff``.

    Args:
        series: Adjusted closes indexed by date
        year: Calendar year
        cutoff: YTD cutoff date, or None for a full year

    Returns:
        Return as decimal (0.05 = 5%), or None if either endpoint is missing
    """
    s = series.dropna().sort_index()
    in_year = s[s.index.year == year]

    january = in_year[in_year.index.month == 1]
    if january.empty:
        return None
    start_price = january.iloc[0]

    if cutoff is None:
        december = in_year[in_year.index.month == 12]
        if december.empty:
            return None
        end_price = december.iloc[-1]
    else:
        to_date = in_year[in_year.index <= pd.Timestamp(cutoff)]
        if to_date.empty:
            return None
        end_price = to_date.iloc[-1]

    return float(end_price / start_price - 1)


def annual_returns(prices, cutoff=None, assets=ASSETS):
    """
    One row per (asset class, year) found in ``prices``.

    The cutoff's year is labelled "YTD" and measured up to the cutoff; later
    years are ignored. Years with a missing start or end price are skipped.
    """
    if prices.empty:
        return pd.DataFrame(columns=RETURN_COLUMNS)

    years = sorted(set(prices.index.year))
    if cutoff is not None:
        years = [y for y in years if y <= cutoff.year]

    rows = []
    for asset in assets:
        if asset.ticker not in prices.columns:
            continue
        series = prices[asset.ticker]
        for year in years:
            in_progress = cutoff is not None and year == cutoff.year
            r = year_return(series, year, cutoff if in_progress else None)
            if r is None:
                logger.debug("Skipping %s %s: missing start or end price", asset.asset_class, year)
                continue
            rows.append({
                "asset_class": asset.asset_class,
                "category": asset.category,
                "year": YTD_LABEL if in_progress else str(year),
                "annual_return": r,
            })

    return pd.DataFrame(rows, columns=RETURN_COLUMNS)


def annualised_returns(returns):
    """CAGR per asset class over its full-year rows: (prod(1 + r)) ** (1 / n) - 1."""
    full = returns[~returns["year"].isin([YTD_LABEL, ANNUALISED_LABEL])]
    full = full.dropna(subset=["annual_return"])

    rows = []
    for asset_class, group in full.groupby("asset_class", sort=False):
        n = len(group)
        growth = np.prod(1 + group["annual_return"].to_numpy(dtype=float))
        rows.append({
            "asset_class": asset_class,
            "category": group["category"].iloc[0],
            "year": ANNUALISED_LABEL,
            "annual_return": float(growth ** (1.0 / n) - 1),
        })

    return pd.DataFrame(rows, columns=RETURN_COLUMNS)


def with_annualised(returns):
    """Drop any stale annualised rows and append freshly computed ones."""
    base = returns[returns["year"] != ANNUALISED_LABEL]
    annualised = annualised_returns(base)
    if annualised.empty:
        return sort_returns(base)
    return sort_returns(pd.concat([base, annualised], ignore_index=True))


def year_labels(returns):
    """Column order: numeric years ascending, then YTD, then Annualised."""
    labels = set(returns["year"])
    ordered = sorted(label for label in labels if label not in (YTD_LABEL, ANNUALISED_LABEL))
    for special in (YTD_LABEL, ANNUALISED_LABEL):
        if special in labels:
            ordered.append(special)
    return ordered


def sort_returns(returns, assets=ASSETS):
    """Registry order, then year-label order."""
    if returns.empty:
        return returns.reset_index(drop=True)
    asset_order = {name: i for i, name in enumerate(asset_classes(assets))}
    label_order = {label: i for i, label in enumerate(year_labels(returns))}
    out = returns.assign(
        _asset=returns["asset_class"].map(asset_order).fillna(len(asset_order)),
        _label=returns["year"].map(label_order),
    )
    out = out.sort_values(["_asset", "_label"], kind="mergesort")
    return out.drop(columns=["_asset", "_label"]).reset_index(drop=True)
