import logging
from datetime import date

import pandas as pd
import streamlit as st

from quilt.chart import PLOTLY_CONFIG, export_excel, export_frame, export_table, quilt_figure
from quilt.history import live_fetch_start, resolve_history
from quilt.pipeline import Controls, compute_returns, recompute
from quilt.prices import PriceFetchError, download_price_data, missing_tickers
from quilt.settings import (
    COLOR_MODES,
    DEFAULT_BENCHMARK,
    DEFAULT_START_YEAR,
    EARLIEST_START_YEAR,
    HISTORY_FILE,
    MODES,
)
from quilt.tickers import ASSETS, asset_classes, by_ticker, categories, tickers

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
logger = logging.getLogger(__name__)

# -------------------------------------------------
# Page config
# -------------------------------------------------
st.set_page_config(page_title="Asset-Class Quilt", layout="wide")
st.title("🧩 Asset-Class Return Quilt")
st.markdown(
    """
Calendar-year returns for a fixed set of **asset-class proxies** (equities,
bonds, commodities, REITs, crypto and cash), ranked best to worst within each
year. Prices are adjusted closes from Yahoo Finance.
"""
)

# -------------------------------------------------
# Sidebar controls
# -------------------------------------------------
st.sidebar.header("Controls")
today = date.today()

start_year = st.sidebar.number_input(
    "First year",
    min_value=EARLIEST_START_YEAR,
    max_value=today.year,
    value=DEFAULT_START_YEAR,
    step=1,
)
cutoff = st.sidebar.date_input(
    "YTD as of",
    value=today,
    min_value=date(EARLIEST_START_YEAR, 1, 1),
    max_value=today,
)
mode = st.sidebar.radio("View", options=MODES, horizontal=True)
names = asset_classes()
benchmark = st.sidebar.selectbox(
    "Benchmark",
    options=names,
    index=names.index(DEFAULT_BENCHMARK),
    disabled=mode != "Relative",
)
selected_categories = st.sidebar.multiselect(
    "Categories",
    options=categories(),
    default=categories(),
)
color_by = st.sidebar.radio("Colour cells by", options=COLOR_MODES, horizontal=True)

controls = Controls(
    start_year=int(start_year),
    cutoff=cutoff,
    mode=mode,
    benchmark=benchmark,
    categories=selected_categories,
    color_by=color_by,
)
try:
    controls.validate()
except ValueError as e:
    st.error(str(e))
    st.stop()

if not selected_categories:
    st.warning("Select at least one category.")
    st.stop()

# -------------------------------------------------
# Data loading
# -------------------------------------------------
history, provenance = resolve_history(HISTORY_FILE)
st.info(provenance)

fetch_start = live_fetch_start(history, controls.start_year, controls.cutoff, assets=ASSETS)
with st.spinner("Downloading price data from Yahoo Finance..."):
    try:
        prices = download_price_data(tickers(), fetch_start, controls.cutoff)
    except PriceFetchError as e:
        logger.error("%s", e)
        st.error(f"Could not download prices from Yahoo Finance: {e}")
        prices = pd.DataFrame()

if not prices.empty:
    missing = missing_tickers(prices, tickers())
    if missing:
        lookup = by_ticker()
        st.warning(
            "No price data for: "
            + ", ".join(f"{lookup[t].asset_class} ({t})" for t in missing)
        )

returns = compute_returns(
    prices,
    controls.cutoff,
    history=history,
    assets=ASSETS,
    start_year=controls.start_year,
)
if returns.empty:
    st.error("No returns for this selection (check the date range or your connection).")
    st.stop()

result = recompute(controls, returns)
if result.empty:
    st.warning("Nothing to show for the selected categories.")
    st.stop()

# -------------------------------------------------
# Quilt chart
# -------------------------------------------------
if controls.relative:
    st.subheader(f"Annual returns relative to {controls.benchmark}")
else:
    st.subheader("Annual returns")

if result.flagged_years:
    st.caption(
        f"{controls.benchmark} has no return for {', '.join(result.flagged_years)}; "
        "those columns are left blank."
    )

fig = quilt_figure(
    result,
    color_by=controls.color_by,
    relative=controls.relative,
    benchmark=controls.benchmark,
)
st.plotly_chart(fig, use_container_width=True, config=PLOTLY_CONFIG)

# -------------------------------------------------
# Ranked table and exports
# -------------------------------------------------
st.subheader("Ranked returns")
table = export_frame(result)
st.dataframe(
    table.style.format({"annual_return": "{:.2%}"}),
    use_container_width=True,
    hide_index=True,
)

col_csv, col_xlsx = st.columns(2)
with col_csv:
    st.download_button(
        "Download table (CSV)",
        data=export_table(result),
        file_name="quilt_returns.csv",
        mime="text/csv",
    )
with col_xlsx:
    st.download_button(
        "Download table (Excel)",
        data=export_excel(result),
        file_name="quilt_returns.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

# -------------------------------------------------
# Explanation
# -------------------------------------------------
st.markdown("---")
st.markdown(
    f"""
### How to read the quilt
- Each **column** is a calendar year; rank 1 (top) is that year's best performer.
- **YTD** runs from the first January close to the last close on or before {controls.cutoff:%d %b %Y}.
- **Annualised** is the compound annual growth rate over the full years shown.
- In **Relative** view every return has the benchmark's return for the same year
  subtracted, so the benchmark itself sits at 0%.
- Use the camera icon on the chart to save it as a PNG.
"""
)
