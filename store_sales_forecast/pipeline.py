"""End-to-end forecasting workflow for one or many store/item pairs.

``run_series`` is the whole per-series job: fit, forecast, cross-validate and
score.  It takes a prepared series and a configuration and shares nothing
with other calls, so ``run_batch`` can map it over any number of pairs with
joblib and collect the results.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

import pandas as pd
from joblib import Parallel, delayed

from .config import PipelineConfig
from .data import load_data, prepare_series
from .exceptions import ForecastError
from .model import FORECAST_COLUMNS, ProphetBackend, ProphetForecaster, quiet_prophet_logging
from .validation import performance_metrics

logger = logging.getLogger(__name__)


@dataclass
class SeriesResult:
    """Outputs of the workflow for one store/item pair.

    ``forecast`` holds the ``ds``, ``yhat``, ``yhat_lower`` and ``yhat_upper``
    columns only.  ``full_forecast`` is every column the backend returned,
    including the trend and seasonal components that ``plot_components``
    draws; it is not kept for batch results.

    ``error`` is set, and the frames are ``None``, when the pair failed.
    """

    store_id: int
    item_id: int
    forecaster: Optional[ProphetForecaster] = None
    forecast: Optional[pd.DataFrame] = None
    full_forecast: Optional[pd.DataFrame] = None
    cv_results: Optional[pd.DataFrame] = None
    performance: Optional[pd.DataFrame] = None
    error: Optional[ForecastError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_series(
    series: pd.DataFrame,
    config: PipelineConfig,
    store_id: Optional[int] = None,
    item_id: Optional[int] = None,
    backend: Optional[Any] = None,
) -> SeriesResult:
    """Fit, forecast and cross-validate one prepared series.

    Parameters
    ----------
    series : pd.DataFrame
        ``ds``/``y`` history from :func:`prepare_series`.
    config : PipelineConfig
        Model, horizon and cross-validation settings.  ``input_path`` and
        the ids are not used here.
    store_id, item_id : int, optional
        Labels for the result; default to the ids in ``config``.
    backend : ForecastBackend, optional
        Defaults to Prophet.

    Returns
    -------
    SeriesResult
        With the fitted forecaster, the forecast table (plus its full
        version with components), the raw
        cross-validation rows and the per-horizon performance table.
    """
    store_id = config.store_id if store_id is None else store_id
    item_id = config.item_id if item_id is None else item_id
    forecaster = ProphetForecaster(
        config=config.model, backend=backend if backend is not None else ProphetBackend()
    )

    forecaster.fit(series)
    full_forecast = forecaster.forecast(config.forecast_horizon, include_components=True)
    forecast = full_forecast[FORECAST_COLUMNS].copy()
    cv = config.cross_validation
    cv_results = forecaster.cross_validate(cv.initial, cv.period, cv.horizon, units=cv.units)
    performance = performance_metrics(cv_results)
    logger.info(
        "Store %s item %s: %d forecast rows, %d CV rows, mean MAE %.3f",
        store_id,
        item_id,
        len(forecast),
        len(cv_results),
        performance["mae"].mean(),
    )
    return SeriesResult(
        store_id=store_id,
        item_id=item_id,
        forecaster=forecaster,
        forecast=forecast,
        full_forecast=full_forecast,
        cv_results=cv_results,
        performance=performance,
    )


def run_pipeline(config: PipelineConfig, backend: Optional[Any] = None) -> SeriesResult:
    """Load the input file and run the workflow for ``config``'s store and item.

    Errors from loading, preparation, fitting or validation propagate.
    """
    observations = load_data(config.input_path)
    series = prepare_series(observations, config.store_id, config.item_id)
    return run_series(series, config, backend=backend)


def _run_pair(
    observations: pd.DataFrame,
    store_id: int,
    item_id: int,
    config: PipelineConfig,
    backend: Optional[Any],
) -> SeriesResult:
    # worker processes start with default log levels
    quiet_prophet_logging()
    try:
        series = prepare_series(observations, store_id, item_id)
        result = run_series(series, config, store_id, item_id, backend=backend)
    except ForecastError as e:
        logger.error("Store %s item %s failed: %s", store_id, item_id, e)
        return SeriesResult(store_id=store_id, item_id=item_id, error=e)
    # fitted Stan models are not reliably picklable across worker processes
    result.forecaster = None
    result.full_forecast = None
    return result


def run_batch(
    observations: pd.DataFrame,
    pairs: Iterable[Tuple[int, int]],
    config: PipelineConfig,
    n_jobs: int = -1,
    backend: Optional[Any] = None,
) -> List[SeriesResult]:
    """Run the workflow for many store/item pairs in parallel.

    A pair that raises a :class:`ForecastError` is returned with its
    ``error`` set; the other pairs are unaffected.

    Parameters
    ----------
    observations : pd.DataFrame
        Table returned by :func:`load_data`.
    pairs : iterable of (store, item)
        The pairs to forecast.
    config : PipelineConfig
        Shared settings; the ids in it are ignored.
    n_jobs : int, default -1
        Passed to :class:`joblib.Parallel`; -1 uses every core.

    Returns
    -------
    list of SeriesResult
        In the same order as ``pairs``.
    """
    pairs = list(pairs)
    logger.info("Forecasting %d store/item pairs with n_jobs=%s", len(pairs), n_jobs)
    results = Parallel(n_jobs=n_jobs)(
        delayed(_run_pair)(
            observations[(observations["store"] == s) & (observations["item"] == i)],
            s,
            i,
            config,
            backend,
        )
        for s, i in pairs
    )
    failed = sum(1 for r in results if not r.ok)
    if failed:
        logger.warning("%d of %d pairs failed", failed, len(results))
    return results


def stack_results(results: Iterable[SeriesResult], attribute: str) -> pd.DataFrame:
    """Concatenate one output table of many results, tagged with store and item.

    Failed results are skipped.
    """
    frames = []
    for r in results:
        frame = getattr(r, attribute)
        if frame is None:
            continue
        frame = frame.copy()
        frame.insert(0, "item", r.item_id)
        frame.insert(0, "store", r.store_id)
        frames.append(frame)
    if not frames:
        return pd.DataFrame()
    return pd.concat(frames, ignore_index=True)
