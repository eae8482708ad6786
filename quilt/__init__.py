"""Asset-class quilt chart: annual returns, ranks and the heatmap behind the dashboard."""
