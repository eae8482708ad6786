"""Shared fixtures: small hand-checkable price frames and a two-asset registry."""

import pandas as pd
import pytest

from quilt.tickers import AssetInfo


def make_prices(data):
    """{ticker: {"YYYY-MM-DD": price}} -> wide frame indexed by date."""
    frame = pd.DataFrame({t: pd.Series(p, dtype=float) for t, p in data.items()})
    frame.index = pd.to_datetime(frame.index)
    return frame.sort_index()


@pytest.fixture
def two_assets():
    return (
        AssetInfo("Asset A", "AAA", "Equities"),
        AssetInfo("Asset B", "BBB", "Bonds"),
    )


@pytest.fixture
def scenario_prices():
    # A: 100 -> 110 (+10%), B: 50 -> 45 (-10%)
    return make_prices({
        "AAA": {"2020-01-02": 100.0, "2020-06-30": 104.0, "2020-12-31": 110.0},
        "BBB": {"2020-01-02": 50.0, "2020-06-30": 48.0, "2020-12-31": 45.0},
    })
