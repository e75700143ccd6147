"""Descriptive statistics for the store/item sales table."""

from typing import Dict, Union

import pandas as pd

SUMMARY_STATS = ["count", "sum", "mean", "median", "std", "min", "max"]


def dataset_overview(observations: pd.DataFrame) -> Dict[str, Union[int, str]]:
    """Number of stores, items and rows plus the covered date range."""
    return {
        "num_stores": int(observations["store"].nunique()),
        "num_items": int(observations["item"].nunique()),
        "num_rows": int(len(observations)),
        "start_date": observations["date"].min().strftime("%Y-%m-%d"),
        "end_date": observations["date"].max().strftime("%Y-%m-%d"),
    }


def items_per_store(observations: pd.DataFrame) -> pd.DataFrame:
    """Count the distinct items sold in each store."""
    return (
        observations.groupby("store")["item"]
        .nunique()
        .rename("num_items")
        .reset_index()
    )


def summary_by(observations: pd.DataFrame, key: str = "store") -> pd.DataFrame:
    """Summary statistics of ``sales`` per store or per item.

    ``std`` is the sample standard deviation (``ddof=1``).
    """
    if key not in ("store", "item"):
        raise ValueError(f"key must be 'store' or 'item', got {key!r}")
    return observations.groupby(key)["sales"].agg(SUMMARY_STATS).reset_index()


def store_sales_correlation(observations: pd.DataFrame, method: str = "spearman") -> pd.DataFrame:
    """Correlation between stores of their total daily sales.

    Sales are summed over items per date and store, pivoted to one column per
    store and correlated pairwise.
    """
    daily = observations.groupby(["date", "store"])["sales"].sum().unstack("store")
    return daily.corr(method=method)
