"""
End-to-end tests for compute_returns + recompute on fixed price frames.
"""

from datetime import date

import pandas as pd
import pytest

from quilt.pipeline import Controls, compute_returns, recompute
from quilt.returns import RETURN_COLUMNS
from quilt.tests.conftest import make_prices


def _value(table, asset_class, year, column="annual_return"):
    hit = table[(table["asset_class"] == asset_class) & (table["year"] == year)]
    return hit[column].iloc[0]


@pytest.fixture
def multi_year_prices():
    return make_prices({
        "AAA": {
            "2020-01-02": 100.0, "2020-12-31": 110.0,
            "2021-01-04": 110.0, "2021-12-31": 121.0,
            "2022-01-03": 121.0, "2022-03-31": 133.1, "2022-04-29": 150.0,
        },
        "BBB": {
            "2020-01-02": 50.0, "2020-12-31": 45.0,
            "2021-02-01": 45.0, "2021-12-31": 54.0,
            "2022-01-03": 54.0, "2022-03-31": 51.3,
        },
    })


class TestScenario:

    def test_absolute_mode(self, scenario_prices, two_assets):
        returns = compute_returns(scenario_prices, date(2021, 1, 15), assets=two_assets)
        controls = Controls(
            cutoff=date(2021, 1, 15),
            start_year=2020,
            categories=["Equities", "Bonds"],
        )

        result = recompute(controls, returns)
        table = result.table

        assert _value(table, "Asset A", "2020") == pytest.approx(0.10, abs=1e-9)
        assert _value(table, "Asset B", "2020") == pytest.approx(-0.10, abs=1e-9)
        assert _value(table, "Asset A", "2020", "rank") == 1
        assert _value(table, "Asset B", "2020", "rank") == 2
        assert _value(table, "Asset A", "2020", "label") == "Asset A\n10.0%"

    def test_relative_mode(self, scenario_prices, two_assets):
        returns = compute_returns(scenario_prices, date(2021, 1, 15), assets=two_assets)
        controls = Controls(
            cutoff=date(2021, 1, 15),
            start_year=2020,
            mode="Relative",
            benchmark="Asset A",
            categories=["Equities", "Bonds"],
        )

        table = recompute(controls, returns).table

        assert _value(table, "Asset A", "2020") == 0.0
        assert _value(table, "Asset B", "2020") == pytest.approx(-0.20, abs=1e-9)


class TestComputeReturns:

    def test_years_ytd_and_annualised(self, multi_year_prices, two_assets):
        returns = compute_returns(multi_year_prices, date(2022, 3, 31), assets=two_assets)

        a = returns[returns["asset_class"] == "Asset A"]
        assert a["year"].tolist() == ["2020", "2021", "YTD", "Annualised"]
        assert _value(returns, "Asset A", "YTD") == pytest.approx(0.10, abs=1e-9)
        assert _value(returns, "Asset A", "Annualised") == pytest.approx(0.10, abs=1e-9)

        # B has no January 2021 close, so 2021 is skipped and only 2020 feeds its CAGR
        b = returns[returns["asset_class"] == "Asset B"]
        assert b["year"].tolist() == ["2020", "YTD", "Annualised"]
        assert _value(returns, "Asset B", "Annualised") == pytest.approx(-0.10, abs=1e-9)

    def test_start_year_trims_history(self, multi_year_prices, two_assets):
        returns = compute_returns(
            multi_year_prices, date(2022, 3, 31), assets=two_assets, start_year=2021
        )
        assert "2020" not in set(returns["year"])
        assert _value(returns, "Asset A", "Annualised") == pytest.approx(0.10, abs=1e-9)

    def test_history_fills_earlier_years(self, two_assets):
        history = pd.DataFrame([
            ("Asset A", "Equities", "2019", 0.30),
            ("Asset B", "Bonds", "2019", 0.05),
        ], columns=RETURN_COLUMNS)
        prices = make_prices({
            "AAA": {"2020-01-02": 100.0, "2020-12-31": 110.0},
            "BBB": {"2020-01-02": 50.0, "2020-12-31": 45.0},
        })

        returns = compute_returns(prices, date(2020, 12, 31), history=history, assets=two_assets)

        assert _value(returns, "Asset A", "2019") == 0.30
        assert _value(returns, "Asset A", "YTD") == pytest.approx(0.10, abs=1e-9)
        assert _value(returns, "Asset A", "Annualised") == pytest.approx(0.30, abs=1e-9)

    def test_empty_prices_without_history(self, two_assets):
        returns = compute_returns(pd.DataFrame(), date(2024, 1, 31), assets=two_assets)
        assert returns.empty


class TestRecompute:

    def _controls(self, **kwargs):
        base = dict(cutoff=date(2022, 3, 31), start_year=2020, categories=["Equities", "Bonds"])
        base.update(kwargs)
        return Controls(**base)

    def test_deterministic(self, multi_year_prices, two_assets):
        returns = compute_returns(multi_year_prices, date(2022, 3, 31), assets=two_assets)
        controls = self._controls(mode="Relative", benchmark="Asset B")

        first = recompute(controls, returns)
        second = recompute(controls, returns)

        pd.testing.assert_frame_equal(first.table, second.table)
        assert first.year_labels == second.year_labels

    def test_category_filter_reranks(self, multi_year_prices, two_assets):
        returns = compute_returns(multi_year_prices, date(2022, 3, 31), assets=two_assets)
        result = recompute(self._controls(categories=["Bonds"]), returns)

        assert set(result.table["asset_class"]) == {"Asset B"}
        assert set(result.table["rank"]) == {1}

    def test_missing_benchmark_year_is_flagged(self, multi_year_prices, two_assets):
        returns = compute_returns(multi_year_prices, date(2022, 3, 31), assets=two_assets)
        result = recompute(self._controls(mode="Relative", benchmark="Asset B"), returns)

        assert result.flagged_years == ["2021"]
        assert "2021" in result.year_labels
        assert "2021" not in set(result.table["year"])
        assert result.benchmark == "Asset B"

    def test_hidden_benchmark_still_anchors(self, multi_year_prices, two_assets):
        returns = compute_returns(multi_year_prices, date(2022, 3, 31), assets=two_assets)
        result = recompute(
            self._controls(mode="Relative", benchmark="Asset B", categories=["Equities"]),
            returns,
        )
        assert _value(result.table, "Asset A", "2020") == pytest.approx(0.20, abs=1e-9)


class TestControls:

    def test_defaults_validate(self):
        Controls(cutoff=date(2024, 6, 30)).validate()

    def test_start_after_cutoff(self):
        with pytest.raises(ValueError, match="after the YTD date"):
            Controls(start_year=2025, cutoff=date(2024, 6, 30)).validate()

    def test_unknown_benchmark_in_relative_mode(self):
        with pytest.raises(ValueError, match="benchmark"):
            Controls(cutoff=date(2024, 6, 30), mode="Relative", benchmark="Nope").validate()

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            Controls(cutoff=date(2024, 6, 30), mode="Sideways").validate()

    def test_unknown_rank_method(self):
        with pytest.raises(ValueError, match="rank method"):
            Controls(cutoff=date(2024, 6, 30), rank_method="average").validate()

    def test_benchmark_ticker_resolves_to_asset_class(self):
        controls = Controls(cutoff=date(2024, 6, 30), mode="Relative", benchmark="GLD")
        controls.validate()
        assert controls.benchmark == "Gold"
