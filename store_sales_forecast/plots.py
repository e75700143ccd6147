"""Charts for the exploration and forecast reports.

Every function builds and returns a matplotlib ``Figure``; when ``save_path``
is given the figure is also written to disk.  Nothing here is part of the
reproducible forecasting core.
"""

import math
from pathlib import Path
from typing import Optional, Sequence, Union

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from .metrics import METRIC_NAMES

sns.set_style("whitegrid")

PathLike = Union[str, Path]


def _finish(fig: plt.Figure, save_path: Optional[PathLike]) -> plt.Figure:
    fig.tight_layout()
    if save_path is not None:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=100, bbox_inches="tight")
    return fig


def _grid(n: int, ncols: int, width: float = 12, row_height: float = 3):
    nrows = max(1, math.ceil(n / ncols))
    fig, axes = plt.subplots(nrows, ncols, figsize=(width, row_height * nrows), squeeze=False)
    flat = axes.ravel()
    # hide unused cells in the last row
    for ax in flat[n:]:
        ax.set_visible(False)
    return fig, flat


def plot_store_histograms(
    observations: pd.DataFrame,
    stores: Optional[Sequence[int]] = None,
    bins: int = 30,
    save_path: Optional[PathLike] = None,
) -> plt.Figure:
    """Histogram of daily item sales for each store, two per row."""
    if stores is None:
        stores = sorted(observations["store"].unique())
    fig, axes = _grid(len(stores), ncols=2)
    for ax, store in zip(axes, stores):
        values = observations.loc[observations["store"] == store, "sales"]
        ax.hist(values, bins=bins, color="skyblue", edgecolor="black")
        ax.set_title(f"Store {store}")
        ax.set_xlabel("Sales")
        ax.set_ylabel("Frequency")
    return _finish(fig, save_path)


def plot_item_sales(
    observations: pd.DataFrame,
    store_id: int = 1,
    items: Optional[Sequence[int]] = None,
    save_path: Optional[PathLike] = None,
) -> plt.Figure:
    """Daily sales lines for the given items of one store (first ten by default)."""
    store_rows = observations[observations["store"] == store_id]
    if items is None:
        items = sorted(store_rows["item"].unique())[:10]
    fig, axes = _grid(len(items), ncols=2)
    for ax, item in zip(axes, items):
        rows = store_rows[store_rows["item"] == item].sort_values("date")
        ax.plot(rows["date"], rows["sales"], linewidth=0.8)
        ax.set_title(f"Item {item} Sales")
        ax.set_xlabel("Date")
        ax.set_ylabel("Sales")
    fig.suptitle(f"Store {store_id}")
    return _finish(fig, save_path)


def plot_correlation_heatmap(
    corr: pd.DataFrame,
    save_path: Optional[PathLike] = None,
) -> plt.Figure:
    """Heatmap of a store-by-store correlation matrix."""
    fig, ax = plt.subplots(figsize=(8, 6.5))
    sns.heatmap(corr, cmap="RdYlGn", annot=len(corr) <= 12, fmt=".2f", ax=ax)
    ax.set_title("Correlation Heatmap")
    ax.set_xlabel("Store")
    ax.set_ylabel("Store")
    return _finish(fig, save_path)


def plot_forecast(
    history: pd.DataFrame,
    forecast: pd.DataFrame,
    start: Optional[Union[str, pd.Timestamp]] = None,
    save_path: Optional[PathLike] = None,
) -> plt.Figure:
    """Observed values against the forecast and its uncertainty band.

    Parameters
    ----------
    history : pd.DataFrame
        ``ds``/``y`` observations.
    forecast : pd.DataFrame
        ``ds``, ``yhat``, ``yhat_lower``, ``yhat_upper``.
    start : str or Timestamp, optional
        Only draw dates after this point, which keeps the last months of a
        long history readable.
    """
    if start is not None:
        start = pd.Timestamp(start)
        history = history[history["ds"] > start]
        forecast = forecast[forecast["ds"] > start]
    fig, ax = plt.subplots(figsize=(12, 5))
    ax.plot(history["ds"], history["y"], "k.", markersize=3, label="Observed")
    ax.plot(forecast["ds"], forecast["yhat"], color="#0072B2", label="Forecast")
    ax.fill_between(
        forecast["ds"], forecast["yhat_lower"], forecast["yhat_upper"],
        color="#0072B2", alpha=0.2, label="Uncertainty interval",
    )
    ax.set_xlabel("date")
    ax.set_ylabel("sales")
    ax.legend(loc="upper left")
    return _finish(fig, save_path)


def plot_components(
    model,
    forecast: pd.DataFrame,
    save_path: Optional[PathLike] = None,
) -> plt.Figure:
    """Trend and seasonal components, drawn by Prophet itself.

    ``forecast`` must be the full prediction frame, i.e. the output of
    ``ProphetForecaster.forecast(include_components=True)``.
    """
    fig = model.plot_components(forecast)
    return _finish(fig, save_path)


def plot_performance(
    performance: pd.DataFrame,
    save_path: Optional[PathLike] = None,
) -> plt.Figure:
    """One panel per error metric, plotted against horizon in days."""
    long = performance.melt(
        id_vars="horizon", value_vars=list(METRIC_NAMES), var_name="metric", value_name="value"
    )
    long["horizon_days"] = long["horizon"].dt.days
    grid = sns.relplot(
        data=long, x="horizon_days", y="value", col="metric", col_wrap=3,
        kind="line", marker="o", facet_kws={"sharey": False}, height=3, aspect=1.3,
    )
    grid.set_axis_labels("Horizon (days)", "Metric Value")
    grid.figure.suptitle("Performance Metrics over Different Horizons", y=1.02)
    return _finish(grid.figure, save_path)
