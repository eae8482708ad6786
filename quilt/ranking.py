"""
Per-year ranking, display labels, benchmark-relative adjustment and category filter.
Pure functions over the returns frame (asset_class, category, year, annual_return).
"""

import logging

import numpy as np

from quilt.returns import year_labels
from quilt.settings import RANK_METHOD

logger = logging.getLogger(__name__)

RANK_METHODS = ("first", "dense")


def filter_categories(returns, categories):
    """Keep rows whose category is selected."""
    return returns[returns["category"].isin(list(categories))].reset_index(drop=True)


def relative_returns(returns, benchmark):
    """
    Subtract the benchmark's return from every row of the same year label.

    The benchmark itself ends up at 0. Labels where the benchmark has no row
    get NaN for every asset.
    """
    bench = returns[returns["asset_class"] == benchmark]
    bench = bench.drop_duplicates(subset="year").set_index("year")["annual_return"]

    out = returns.copy()
    out["annual_return"] = out["annual_return"] - out["year"].map(bench).astype(float)

    gaps = missing_benchmark_years(returns, benchmark)
    if gaps:
        logger.warning("Benchmark %s has no return for %s", benchmark, ", ".join(gaps))
    return out


def missing_benchmark_years(returns, benchmark):
    """Year labels present in ``returns`` with no row for ``benchmark``."""
    have = set(returns.loc[returns["asset_class"] == benchmark, "year"])
    return [label for label in year_labels(returns) if label not in have]


def rank_returns(returns, method=RANK_METHOD):
    """
    Rank asset classes within each year label, best return = 1.

    Rows with a missing return are dropped first. ``method="first"`` breaks
    ties by row order; ``method="dense"`` lets equal returns share a rank.
    """
    if method not in RANK_METHODS:
        raise ValueError(f"Unknown rank method: {method}")

    ranked = returns.dropna(subset=["annual_return"]).reset_index(drop=True)
    if ranked.empty:
        return ranked.assign(rank=np.array([], dtype=int))

    ranks = ranked.groupby("year", sort=False)["annual_return"].rank(method=method, ascending=False)
    return ranked.assign(rank=ranks.astype(int))


def format_label(asset_class, value):
    return f"{asset_class}\n{value * 100:.1f}%"


def label_returns(ranked):
    labels = [
        format_label(asset_class, value)
        for asset_class, value in zip(ranked["asset_class"], ranked["annual_return"])
    ]
    return ranked.assign(label=labels)
