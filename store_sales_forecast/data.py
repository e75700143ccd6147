"""Data loading and series preparation utilities.

This module reads the store/item sales history from CSV and turns one
store/item slice of it into the ``ds``/``y`` frame the forecasting library
expects.  Keeping data handling separate from model logic makes it easy to
run the same preparation for one pair or for hundreds of them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np
import pandas as pd

from .exceptions import DuplicateTimestampError, EmptySeriesError, ParseError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("date", "store", "item", "sales")
DATE_FORMAT = "%Y-%m-%d"


def _bad_rows(mask: pd.Series, limit: int = 5) -> str:
    # +1 so the numbers match data lines below the header
    rows = (np.flatnonzero(mask.to_numpy()) + 1)[:limit]
    return ", ".join(str(r) for r in rows)


def load_data(file_path: Union[str, Path]) -> pd.DataFrame:
    """Load the sales history CSV into a pandas DataFrame.

    The file must have a header with the columns ``date``, ``store``,
    ``item`` and ``sales``.  Dates are parsed strictly as ``YYYY-MM-DD``;
    ``store`` and ``item`` must be positive integers and ``sales`` a
    finite, non-negative number.

    Parameters
    ----------
    file_path : str or Path
        Path to the CSV file.

    Returns
    -------
    pd.DataFrame
        Columns ``date`` (datetime64), ``store`` and ``item`` (int64) and
        ``sales`` (float64).

    Raises
    ------
    ParseError
        If a column is missing or any row holds a malformed value.
    """
    try:
        raw = pd.read_csv(file_path, dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise ParseError(f"{file_path}: cannot read CSV: {e}") from e
    raw.columns = [c.strip() for c in raw.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in raw.columns]
    if missing:
        raise ParseError(f"{file_path}: missing column(s) {', '.join(missing)}")

    dates = pd.to_datetime(raw["date"].str.strip(), format=DATE_FORMAT, errors="coerce")
    if dates.isna().any():
        raise ParseError(f"{file_path}: malformed date in row(s) {_bad_rows(dates.isna())}")

    out = pd.DataFrame({"date": dates})
    for column in ("store", "item"):
        values = pd.to_numeric(raw[column].str.strip(), errors="coerce")
        bad = values.isna() | (values <= 0) | (values % 1 != 0)
        if bad.any():
            raise ParseError(
                f"{file_path}: {column} must be a positive integer, see row(s) {_bad_rows(bad)}"
            )
        out[column] = values.astype("int64")

    sales = pd.to_numeric(raw["sales"].str.strip(), errors="coerce")
    bad = sales.isna() | (sales < 0) | ~np.isfinite(sales)
    if bad.any():
        raise ParseError(
            f"{file_path}: sales must be a finite, non-negative number, see row(s) {_bad_rows(bad)}"
        )
    out["sales"] = sales.astype(float)

    logger.info("Loaded %d observations from %s", len(out), file_path)
    return out


def list_store_items(observations: pd.DataFrame) -> List[Tuple[int, int]]:
    """Return the distinct (store, item) pairs, sorted by store then item."""
    pairs = (
        observations[["store", "item"]]
        .drop_duplicates()
        .sort_values(["store", "item"])
    )
    return [(int(s), int(i)) for s, i in pairs.itertuples(index=False)]


def prepare_series(observations: pd.DataFrame, store_id: int, item_id: int) -> pd.DataFrame:
    """Extract one store/item history as a ``ds``/``y`` series.

    Parameters
    ----------
    observations : pd.DataFrame
        Table returned by :func:`load_data`.
    store_id, item_id : int
        The pair to extract.  Both must match exactly.

    Returns
    -------
    pd.DataFrame
        Columns ``ds`` and ``y`` sorted ascending by ``ds`` with a fresh
        0..n-1 index.

    Raises
    ------
    EmptySeriesError
        If no rows match the pair.
    DuplicateTimestampError
        If the pair has more than one row for the same date.
    """
    mask = (observations["store"] == store_id) & (observations["item"] == item_id)
    subset = observations.loc[mask, ["date", "sales"]]
    if subset.empty:
        raise EmptySeriesError(f"No observations for store {store_id}, item {item_id}")

    series = (
        subset.rename(columns={"date": "ds", "sales": "y"})
        .sort_values("ds", kind="mergesort")
        .reset_index(drop=True)
    )
    series["ds"] = pd.to_datetime(series["ds"])
    series["y"] = series["y"].astype(float)

    dupes = series["ds"].duplicated(keep=False)
    if dupes.any():
        first = series.loc[dupes, "ds"].iloc[0].date()
        raise DuplicateTimestampError(
            f"Store {store_id}, item {item_id} has {int(dupes.sum())} rows sharing "
            f"a date (first: {first})"
        )
    return series
