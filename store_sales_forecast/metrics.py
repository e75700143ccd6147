"""Forecast error metrics.

This module defines the error aggregates used to score forecasts: mean
absolute error (MAE), mean squared error (MSE), root mean squared error
(RMSE), mean and median absolute percentage error (MAPE, MDAPE) and
symmetric MAPE (SMAPE).  Percentage errors are returned as fractions, not
multiplied by 100, so they line up with the cross-validation report.
``compute_metrics`` aggregates them into a dictionary.
"""

from typing import Dict, Sequence, Tuple

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error

METRIC_NAMES = ("mse", "rmse", "mae", "mape", "mdape", "smape")


def _as_arrays(y_true: Sequence[float], y_pred: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if y_true.shape != y_pred.shape:
        raise ValueError(f"shape mismatch: {y_true.shape} vs {y_pred.shape}")
    return y_true, y_pred


def _absolute_percentage_errors(y_true: np.ndarray, y_pred: np.ndarray) -> np.ndarray:
    # zero actuals have no defined percentage error and are left out
    nonzero = y_true != 0
    return np.abs(y_true[nonzero] - y_pred[nonzero]) / np.abs(y_true[nonzero])


def mae(y_true: Sequence[float], y_pred: Sequence[float]) -> float:
    """Mean absolute error."""
    y_true, y_pred = _as_arrays(y_true, y_pred)
    return float(mean_absolute_error(y_true, y_pred))


def mse(y_true: Sequence[float], y_pred: Sequence[float]) -> float:
    """Mean squared error."""
    y_true, y_pred = _as_arrays(y_true, y_pred)
    return float(mean_squared_error(y_true, y_pred))


def rmse(y_true: Sequence[float], y_pred: Sequence[float]) -> float:
    """Root mean squared error."""
    return float(np.sqrt(mse(y_true, y_pred)))


def mape(y_true: Sequence[float], y_pred: Sequence[float]) -> float:
    """Mean absolute percentage error (MAPE).

    Observations whose true value is zero are excluded because their
    percentage error is undefined.  If every true value is zero the result
    is ``nan``.
    """
    y_true, y_pred = _as_arrays(y_true, y_pred)
    ape = _absolute_percentage_errors(y_true, y_pred)
    if ape.size == 0:
        return float("nan")
    return float(np.mean(ape))


def mdape(y_true: Sequence[float], y_pred: Sequence[float]) -> float:
    """Median absolute percentage error, with the same zero handling as :func:`mape`."""
    y_true, y_pred = _as_arrays(y_true, y_pred)
    ape = _absolute_percentage_errors(y_true, y_pred)
    if ape.size == 0:
        return float("nan")
    return float(np.median(ape))


def smape(y_true: Sequence[float], y_pred: Sequence[float]) -> float:
    """Symmetric mean absolute percentage error (SMAPE).

    SMAPE divides the absolute error by the mean of the absolute true and
    predicted values, so over- and under-estimation are penalised alike.
    A pair where both values are zero is a perfect forecast and contributes
    zero.  Values lie in ``[0, 2]``.
    """
    y_true, y_pred = _as_arrays(y_true, y_pred)
    denom = np.abs(y_true) + np.abs(y_pred)
    num = 2.0 * np.abs(y_pred - y_true)
    terms = np.divide(num, denom, out=np.zeros_like(num), where=denom != 0)
    return float(np.mean(terms))


def compute_metrics(y_true: Sequence[float], y_pred: Sequence[float]) -> Dict[str, float]:
    """Compute the full suite of forecast error metrics.

    Parameters
    ----------
    y_true : sequence of float
        The observed values.
    y_pred : sequence of float
        The predicted values, aligned with ``y_true``.

    Returns
    -------
    dict
        Keys ``mse``, ``rmse``, ``mae``, ``mape``, ``mdape``, ``smape``.
    """
    y_true, y_pred = _as_arrays(y_true, y_pred)
    if y_true.size == 0:
        raise ValueError("cannot score an empty set of predictions")
    return {
        "mse": mse(y_true, y_pred),
        "rmse": rmse(y_true, y_pred),
        "mae": mae(y_true, y_pred),
        "mape": mape(y_true, y_pred),
        "mdape": mdape(y_true, y_pred),
        "smape": smape(y_true, y_pred),
    }
