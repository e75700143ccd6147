"""Rolling-origin cross-validation and per-horizon scoring.

The training cutoff starts ``initial`` after the first observation and moves
forward by ``period`` until a full ``horizon`` no longer fits before the last
observation.  At each cutoff the model is refit on the history up to and
including the cutoff and asked to predict the following ``horizon``; the
predictions are lined up with the held-out actuals.  Prophet does the refit
itself through ``prophet.diagnostics.cross_validation``, called with one
cutoff at a time so that a failing fold can be skipped on its own.
``performance_metrics`` then groups those pairs by their distance from the
cutoff and scores each group.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Union

import pandas as pd

from .config import ModelConfig
from .exceptions import ForecastError, InsufficientHistoryError, ModelFitError
from .metrics import METRIC_NAMES, compute_metrics
from .model import CV_COLUMNS, ProphetBackend, call_backend

logger = logging.getLogger(__name__)

Window = Union[int, float, str, pd.Timedelta]


def to_timedelta(value: Window, units: str = "days") -> pd.Timedelta:
    """Interpret a window given as a number of ``units``, a string or a Timedelta."""
    if isinstance(value, pd.Timedelta):
        td = value
    elif isinstance(value, str):
        td = pd.Timedelta(value)
    else:
        td = pd.Timedelta(value, unit=units)
    if td <= pd.Timedelta(0):
        raise ValueError(f"window must be positive, got {value!r}")
    return td


def generate_cutoffs(
    series: pd.DataFrame,
    initial: Window,
    period: Window,
    horizon: Window,
    units: str = "days",
) -> List[pd.Timestamp]:
    """Compute the training cutoffs, earliest first.

    Returns
    -------
    list of pd.Timestamp
        ``first + initial``, ``first + initial + period``, ... for as long as
        ``cutoff + horizon`` does not pass the last observation.  The number
        of cutoffs is ``floor((span - initial - horizon) / period) + 1``.

    Raises
    ------
    InsufficientHistoryError
        If ``initial`` is not shorter than the series span or the span
        cannot hold ``initial + horizon``.
    """
    initial_td = to_timedelta(initial, units)
    period_td = to_timedelta(period, units)
    horizon_td = to_timedelta(horizon, units)
    if series.empty:
        raise InsufficientHistoryError("cannot cross-validate an empty series")

    start = series["ds"].min()
    end = series["ds"].max()
    span = end - start
    if initial_td >= span:
        raise InsufficientHistoryError(
            f"initial window {initial_td.days} days is not shorter than the "
            f"series span of {span.days} days"
        )
    if span < initial_td + horizon_td:
        raise InsufficientHistoryError(
            f"series span of {span.days} days cannot hold the initial window "
            f"({initial_td.days} days) plus the horizon ({horizon_td.days} days)"
        )

    cutoffs = []
    cutoff = start + initial_td
    while cutoff + horizon_td <= end:
        cutoffs.append(cutoff)
        cutoff = cutoff + period_td
    return cutoffs


def _run_fold(
    series: pd.DataFrame,
    config: ModelConfig,
    cutoff: pd.Timestamp,
    horizon: pd.Timedelta,
    backend: Any,
    fitted: Any,
) -> pd.DataFrame:
    test = series[(series["ds"] > cutoff) & (series["ds"] <= cutoff + horizon)]
    if test.empty:
        raise InsufficientHistoryError(f"no observations after cutoff {cutoff.date()}")

    if fitted is not None:
        fold = call_backend("cross-validation", backend.cross_validate, fitted, cutoff, horizon)
        return fold.reset_index(drop=True)

    # backends without their own cross-validation are refit here
    train = series[series["ds"] <= cutoff]
    fold_model = call_backend("fit", backend.fit, train.reset_index(drop=True), config)
    pred = call_backend("predict", backend.predict, fold_model, test[["ds"]].reset_index(drop=True))
    fold = test[["ds", "y"]].merge(
        pred[["ds", "yhat", "yhat_lower", "yhat_upper"]], on="ds", how="left"
    )
    fold["cutoff"] = cutoff
    return fold


def cross_validate(
    series: pd.DataFrame,
    config: ModelConfig,
    initial: Window = 730,
    period: Window = 90,
    horizon: Window = 45,
    units: str = "days",
    backend: Optional[Any] = None,
    fitted: Optional[Any] = None,
) -> pd.DataFrame:
    """Back-test ``config`` on ``series`` with a forward-moving cutoff.

    When the backend has a ``cross_validate`` method (Prophet does), each
    fold is delegated to it with a single cutoff from
    :func:`generate_cutoffs`; otherwise the backend is refit on the history up
    to each cutoff and asked to predict the following horizon.  A fold that
    fails (the backend rejects the truncated history, or no actuals follow
    the cutoff) is logged and skipped; its cutoff is listed in
    ``result.attrs["failed_cutoffs"]``.

    Parameters
    ----------
    series : pd.DataFrame
        Prepared ``ds``/``y`` history.
    config : ModelConfig
        Model configuration used for every fold.
    initial, period, horizon : int, str or pd.Timedelta
        Training window, cutoff spacing and forecast length.  Plain numbers
        are read in ``units``.
    units : str, default "days"
        Unit for numeric windows.
    backend : ForecastBackend, optional
        Defaults to :class:`ProphetBackend`.
    fitted : optional
        A model the backend already fitted on ``series``.  Only used by
        backends with their own ``cross_validate``; fitted here when missing.

    Returns
    -------
    pd.DataFrame
        Columns ``ds``, ``y``, ``yhat``, ``yhat_lower``, ``yhat_upper``,
        ``cutoff``; one row per held-out observation per fold.

    Raises
    ------
    InsufficientHistoryError
        If the series is too short for a single fold.
    ModelFitError
        If every fold fails, or the full-history fit a backend's own
        cross-validation starts from fails.
    """
    if backend is None:
        backend = ProphetBackend()
    horizon_td = to_timedelta(horizon, units)
    cutoffs = generate_cutoffs(series, initial, period, horizon, units)
    logger.info(
        "Making %d forecasts with cutoffs between %s and %s",
        len(cutoffs),
        cutoffs[0].date(),
        cutoffs[-1].date(),
    )

    if hasattr(backend, "cross_validate"):
        if fitted is None:
            fitted = call_backend("fit", backend.fit, series, config)
    else:
        fitted = None

    folds = []
    failed = []
    for cutoff in cutoffs:
        try:
            folds.append(_run_fold(series, config, cutoff, horizon_td, backend, fitted))
        except ForecastError as e:
            logger.warning("Skipping fold with cutoff %s: %s", cutoff.date(), e)
            failed.append(cutoff)

    if not folds:
        raise ModelFitError(f"all {len(cutoffs)} cross-validation folds failed")

    result = pd.concat(folds, ignore_index=True)[CV_COLUMNS]
    result.attrs["failed_cutoffs"] = failed
    return result


def performance_metrics(cv_results: pd.DataFrame) -> pd.DataFrame:
    """Score cross-validation output per forecast horizon.

    Rows are grouped by ``horizon = ds - cutoff`` and each group gets MSE,
    RMSE, MAE, MAPE, MDAPE and SMAPE (see :mod:`store_sales_forecast.metrics`).

    Returns
    -------
    pd.DataFrame
        Columns ``horizon`` (Timedelta) followed by the metric names, sorted
        by increasing horizon.
    """
    if cv_results.empty:
        raise ValueError("cross-validation results are empty")
    df = cv_results.dropna(subset=["y", "yhat"]).copy()
    df["horizon"] = df["ds"] - df["cutoff"]
    rows = []
    for horizon, group in df.groupby("horizon", sort=True):
        rows.append({"horizon": horizon, **compute_metrics(group["y"], group["yhat"])})
    return pd.DataFrame(rows, columns=["horizon", *METRIC_NAMES])
