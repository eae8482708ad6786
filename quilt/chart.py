"""
Quilt chart and table exports.
"""

import io

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from quilt.settings import CELL_HEIGHT, MIN_CHART_HEIGHT, RETURN_COLORSCALE
from quilt.tickers import categories

CATEGORY_COLORS = px.colors.qualitative.Set2

# Modebar camera button downloads a PNG
PLOTLY_CONFIG = {
    "displaylogo": False,
    "toImageButtonOptions": {"format": "png", "filename": "quilt_chart", "scale": 2},
}

EXPORT_COLUMNS = ["year", "rank", "asset_class", "category", "annual_return"]


def category_colors():
    """Stable colour per registry category."""
    return {
        c: CATEGORY_COLORS[i % len(CATEGORY_COLORS)]
        for i, c in enumerate(categories())
    }


def _discrete_colorscale(colors):
    # One flat band per category code
    n = len(colors)
    scale = []
    for i, color in enumerate(colors):
        scale.append([i / n, color])
        scale.append([(i + 1) / n, color])
    return scale


def quilt_grid(result):
    """Rank x year-label arrays: returns, cell text, asset class, category."""
    labels = result.year_labels
    table = result.table
    # Row position within the year, so tied (dense) ranks keep separate cells
    if table.empty:
        slots = pd.Series([], dtype=int)
    else:
        table = table.sort_values(["year", "rank"], kind="mergesort")
        slots = table.groupby("year", sort=False).cumcount()
    depth = int(slots.max()) + 1 if len(slots) else 0

    z = np.full((depth, len(labels)), np.nan)
    text = np.full((depth, len(labels)), "", dtype=object)
    asset = np.full((depth, len(labels)), "", dtype=object)
    category = np.full((depth, len(labels)), "", dtype=object)

    col = {label: j for j, label in enumerate(labels)}
    for i, row in zip(slots, table.itertuples(index=False)):
        if row.year not in col:
            continue
        j = col[row.year]
        z[i, j] = row.annual_return
        text[i, j] = row.label.replace("\n", "<br>")
        asset[i, j] = row.asset_class
        category[i, j] = row.category

    return z, text, asset, category


def quilt_figure(result, color_by="Return", relative=False, benchmark=None):
    """Heatmap with one column per year label and rows ordered by rank."""
    z, text, asset, category = quilt_grid(result)
    ranks = list(range(1, z.shape[0] + 1))
    customdata = np.dstack([asset, category, np.where(np.isnan(z), 0.0, z)])

    heatmap = dict(
        x=result.year_labels,
        y=ranks,
        text=text,
        texttemplate="%{text}",
        textfont={"size": 11},
        customdata=customdata,
        hovertemplate=(
            "<b>%{customdata[0]}</b><br>%{customdata[1]}<br>"
            "%{x} · rank %{y}<br>Return: %{customdata[2]:.2%}<extra></extra>"
        ),
        xgap=2,
        ygap=2,
    )

    if color_by == "Category":
        palette = category_colors()
        names = list(palette)
        codes = {name: i for i, name in enumerate(names)}
        cat_z = np.vectorize(lambda c: codes.get(c, np.nan), otypes=[float])(category)
        fig = go.Figure(go.Heatmap(
            z=cat_z,
            colorscale=_discrete_colorscale(list(palette.values())),
            zmin=-0.5,
            zmax=len(names) - 0.5,
            colorbar=dict(
                title=dict(text="Category"),
                tickvals=list(range(len(names))),
                ticktext=names,
            ),
            **heatmap,
        ))
    else:
        bound = (np.nanmax(np.abs(z)) if np.isfinite(z).any() else 0.0) or 1.0
        title = f"vs {benchmark}" if relative and benchmark else "Return"
        fig = go.Figure(go.Heatmap(
            z=z,
            colorscale=RETURN_COLORSCALE,
            zmid=0,
            zmin=-bound,
            zmax=bound,
            colorbar=dict(title=dict(text=title), tickformat=".0%"),
            **heatmap,
        ))

    for label in result.flagged_years:
        fig.add_annotation(
            x=label,
            y=1.0,
            yref="paper",
            yanchor="bottom",
            text="no benchmark",
            showarrow=False,
            font=dict(color="#ef4444", size=11),
        )

    fig.update_layout(
        height=max(MIN_CHART_HEIGHT, len(ranks) * CELL_HEIGHT + 120),
        margin=dict(l=40, r=20, t=40, b=40),
        plot_bgcolor="rgba(0,0,0,0)",
    )
    fig.update_xaxes(type="category", side="top", showgrid=False)
    fig.update_yaxes(autorange="reversed", title="Rank", dtick=1, showgrid=False)
    return fig


def export_frame(result):
    """Ranked rows in year-label order, best first."""
    table = result.table
    if table.empty:
        return pd.DataFrame(columns=EXPORT_COLUMNS)
    order = {label: i for i, label in enumerate(result.year_labels)}
    out = table.assign(_label=table["year"].map(order)).sort_values(["_label", "rank"])
    return out[EXPORT_COLUMNS].reset_index(drop=True)


def pivot_frame(result):
    """Asset class x year label grid of returns."""
    out = export_frame(result)
    if out.empty:
        return pd.DataFrame()
    pivot = out.pivot(index="asset_class", columns="year", values="annual_return")
    return pivot.reindex(columns=[c for c in result.year_labels if c in pivot.columns])


def export_table(result):
    return export_frame(result).to_csv(index=False).encode("utf-8")


def export_excel(result):
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as w:
        export_frame(result).to_excel(w, sheet_name="Quilt", index=False)
        pivot_frame(result).to_excel(w, sheet_name="Pivot")
    buf.seek(0)
    return buf.getvalue()
