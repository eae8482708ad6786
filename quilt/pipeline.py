"""
Recompute pipeline.

    prices -> annual/YTD returns (+ history) -> annualised
           -> relative adjustment -> category filter -> rank -> label

``compute_returns`` runs once per download; ``recompute`` runs on every
control change and is pure.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

import pandas as pd

from quilt.history import merge_history
from quilt.ranking import (
    RANK_METHODS,
    filter_categories,
    label_returns,
    missing_benchmark_years,
    rank_returns,
    relative_returns,
)
from quilt.returns import annual_returns, sort_returns, with_annualised, year_labels
from quilt.settings import (
    ANNUALISED_LABEL,
    COLOR_MODES,
    DEFAULT_BENCHMARK,
    DEFAULT_START_YEAR,
    MODES,
    RANK_METHOD,
    YTD_LABEL,
)
from quilt.tickers import ASSETS, categories, lookup

logger = logging.getLogger(__name__)


@dataclass
class Controls:
    """Everything the user can change in the sidebar."""
    start_year: int = DEFAULT_START_YEAR
    cutoff: date = field(default_factory=date.today)
    mode: str = "Absolute"
    benchmark: str = DEFAULT_BENCHMARK
    categories: List[str] = field(default_factory=categories)
    color_by: str = "Return"
    rank_method: str = RANK_METHOD

    @property
    def relative(self) -> bool:
        return self.mode == "Relative"

    def validate(self, assets=ASSETS):
        if self.start_year > self.cutoff.year:
            raise ValueError(f"Start year {self.start_year} is after the YTD date {self.cutoff}")
        if self.mode not in MODES:
            raise ValueError(f"Unknown view mode: {self.mode}")
        if self.color_by not in COLOR_MODES:
            raise ValueError(f"Unknown colour mode: {self.color_by}")
        if self.rank_method not in RANK_METHODS:
            raise ValueError(f"Unknown rank method: {self.rank_method}")
        if self.relative:
            try:
                # Tickers are accepted too; the pipeline keys on display names
                self.benchmark = lookup(self.benchmark, assets).asset_class
            except KeyError:
                raise ValueError(f"Unknown benchmark: {self.benchmark}")


@dataclass
class QuiltResult:
    table: pd.DataFrame
    year_labels: List[str]
    flagged_years: List[str] = field(default_factory=list)
    benchmark: Optional[str] = None

    @property
    def empty(self) -> bool:
        return self.table.empty


def compute_returns(prices, cutoff, history=None, assets=ASSETS, start_year=None):
    """Annual, YTD and annualised returns from live prices merged with history."""
    live = annual_returns(prices, cutoff, assets)
    if history is not None and not history.empty:
        # The cutoff's year is always the live YTD row
        history = history[pd.to_numeric(history["year"]) < cutoff.year]
    returns = merge_history(history, live)

    if start_year is not None and not returns.empty:
        keep = returns["year"].isin([YTD_LABEL, ANNUALISED_LABEL])
        numeric = pd.to_numeric(returns["year"], errors="coerce")
        returns = returns[keep | (numeric >= start_year)]

    returns = with_annualised(returns.reset_index(drop=True))
    logger.info("Computed %d returns across %d year labels", len(returns), len(year_labels(returns)))
    return returns


def recompute(controls, returns):
    """Controls + returns -> ranked, labelled rows. Same input, same output."""
    flagged = []
    if controls.relative:
        flagged = missing_benchmark_years(returns, controls.benchmark)
        returns = relative_returns(returns, controls.benchmark)

    visible = filter_categories(returns, controls.categories)
    ranked = label_returns(rank_returns(sort_returns(visible), controls.rank_method))

    labels = year_labels(returns)
    return QuiltResult(
        table=ranked,
        year_labels=labels,
        flagged_years=flagged,
        benchmark=controls.benchmark if controls.relative else None,
    )
