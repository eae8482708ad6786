"""
Static registry of asset-class proxies.
One entry per asset class: display name, Yahoo Finance ticker, category.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class AssetInfo:
    asset_class: str
    ticker: str
    category: str


ASSETS = (
    AssetInfo("U.S. Large Cap", "SPY", "Equities"),
    AssetInfo("U.S. Small Cap", "IWM", "Equities"),
    AssetInfo("Nasdaq 100", "QQQ", "Equities"),
    AssetInfo("Developed ex-U.S.", "EFA", "Equities"),
    AssetInfo("Emerging Markets", "EEM", "Equities"),
    AssetInfo("U.S. Aggregate Bonds", "AGG", "Bonds"),
    AssetInfo("Long Treasuries", "TLT", "Bonds"),
    AssetInfo("High Yield", "HYG", "Bonds"),
    AssetInfo("TIPS", "TIP", "Bonds"),
    AssetInfo("Gold", "GLD", "Commodities"),
    AssetInfo("Broad Commodities", "DBC", "Commodities"),
    AssetInfo("U.S. REITs", "VNQ", "Real Estate"),
    AssetInfo("Global REITs", "REET", "Real Estate"),
    AssetInfo("Bitcoin", "BTC-USD", "Crypto"),
    AssetInfo("Ethereum", "ETH-USD", "Crypto"),
    AssetInfo("Cash", "BIL", "Cash"),
)


def tickers(assets=ASSETS):
    return [a.ticker for a in assets]


def asset_classes(assets=ASSETS):
    return [a.asset_class for a in assets]


def categories(assets=ASSETS):
    """Categories in first-seen registry order."""
    seen = []
    for a in assets:
        if a.category not in seen:
            seen.append(a.category)
    return seen


def by_ticker(assets=ASSETS):
    return {a.ticker: a for a in assets}


def by_asset_class(assets=ASSETS):
    return {a.asset_class: a for a in assets}


def lookup(name, assets=ASSETS):
    """Find an asset by display name or ticker."""
    for a in assets:
        if name in (a.asset_class, a.ticker):
            return a
    raise KeyError(f"Unknown asset class or ticker: {name}")
