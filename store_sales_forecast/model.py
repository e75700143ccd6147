"""Forecast model adapter and forecast generation.

This module is a thin layer over Facebook's Prophet library.  Prophet does
all of the forecasting work (trend, changepoints, seasonal components,
uncertainty intervals and refitting at a cross-validation cutoff); the code
here only translates a ``ModelConfig`` into Prophet's constructor, builds the
daily future frame and keeps the fitted model together with the history it
was trained on.

The library is reached through a small ``ForecastBackend`` contract
(``fit``, ``predict`` and optionally ``cross_validate``) so that any
implementation exposing the same methods can be swapped in, for example a
naive baseline in tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, Union

import pandas as pd
from prophet import Prophet
from prophet.diagnostics import cross_validation

from .config import ModelConfig
from .exceptions import ForecastError, ModelFitError

logger = logging.getLogger(__name__)

FORECAST_COLUMNS = ["ds", "yhat", "yhat_lower", "yhat_upper"]
CV_COLUMNS = ["ds", "y", "yhat", "yhat_lower", "yhat_upper", "cutoff"]
COMPONENT_COLUMNS = ["trend", "yearly", "weekly", "daily"]
MIN_YEARLY_HISTORY_DAYS = 730


def quiet_prophet_logging(level: int = logging.WARNING) -> None:
    """Lower the log level of Prophet and its Stan backend.

    Both log one INFO line per fit, which drowns everything else when
    running a cross-validation or a batch of store/item pairs.
    """
    for name in ("cmdstanpy", "prophet"):
        logging.getLogger(name).setLevel(level)


def call_backend(action: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call a backend method, turning library exceptions into ``ModelFitError``.

    Errors that are already a ``ForecastError`` pass through unchanged.
    """
    try:
        return func(*args, **kwargs)
    except ForecastError:
        raise
    except Exception as e:
        raise ModelFitError(f"{action} failed: {e}") from e


class ForecastBackend(Protocol):
    """What the workflow needs from a forecasting library.

    ``cross_validate`` is optional: backends without it are back-tested by
    refitting ``fit``/``predict`` at every cutoff.
    """

    def fit(self, series: pd.DataFrame, config: ModelConfig) -> Any:
        ...

    def predict(self, fitted: Any, future: pd.DataFrame) -> pd.DataFrame:
        ...

    def cross_validate(self, fitted: Any, cutoff: pd.Timestamp, horizon: pd.Timedelta) -> pd.DataFrame:
        ...


class ProphetBackend:
    """``ForecastBackend`` implementation backed by Prophet."""

    @staticmethod
    def _create_model(config: ModelConfig) -> Prophet:
        """Instantiate a Prophet model from the configuration."""
        return Prophet(
            growth=config.growth,
            seasonality_mode=config.seasonality_mode,
            changepoint_prior_scale=config.changepoint_prior_scale,
            seasonality_prior_scale=config.seasonality_prior_scale,
            yearly_seasonality=config.yearly_seasonality,
            weekly_seasonality=config.weekly_seasonality,
            daily_seasonality=config.daily_seasonality,
            interval_width=config.interval_width,
        )

    def fit(self, series: pd.DataFrame, config: ModelConfig) -> Prophet:
        m = self._create_model(config)
        train = series[["ds", "y"]].copy()
        if config.growth == "logistic":
            train["cap"] = config.cap
        try:
            m.fit(train)
        except Exception as e:
            raise ModelFitError(f"Prophet failed to fit {len(series)} rows: {e}") from e
        return m

    def predict(self, fitted: Prophet, future: pd.DataFrame) -> pd.DataFrame:
        if fitted.growth == "logistic" and "cap" not in future.columns:
            # logistic growth needs the capacity on future rows as well
            future = future.copy()
            future["cap"] = fitted.history["cap"].iloc[-1]
        try:
            return fitted.predict(future)
        except Exception as e:
            raise ModelFitError(f"Prophet failed to predict {len(future)} rows: {e}") from e

    def cross_validate(self, fitted: Prophet, cutoff: pd.Timestamp, horizon: pd.Timedelta) -> pd.DataFrame:
        """One fold of Prophet's own cross-validation at ``cutoff``.

        Prophet refits a copy of ``fitted`` on the history up to ``cutoff``
        and predicts the observed days in ``(cutoff, cutoff + horizon]``.
        """
        try:
            df_cv = cross_validation(fitted, horizon=horizon, cutoffs=[cutoff], disable_tqdm=True)
        except Exception as e:
            raise ModelFitError(f"Prophet cross-validation at {cutoff.date()} failed: {e}") from e
        return df_cv[CV_COLUMNS]


def make_future_dates(series: pd.DataFrame, horizon: int = 90) -> pd.DataFrame:
    """Build the daily timestamps to predict for a series.

    The frame starts at the first historical day, so in-sample fits are
    available for component inspection, and runs ``horizon`` days past the
    last historical day without gaps.

    Parameters
    ----------
    series : pd.DataFrame
        History with a sorted ``ds`` column.
    horizon : int, default 90
        Days to extend beyond the last observation.

    Returns
    -------
    pd.DataFrame
        Single column ``ds``.
    """
    if horizon < 0:
        raise ValueError("horizon must not be negative")
    if series.empty:
        raise ValueError("cannot build future dates for an empty series")
    start = pd.Timestamp(series["ds"].iloc[0]).normalize()
    end = pd.Timestamp(series["ds"].iloc[-1]).normalize() + pd.Timedelta(days=horizon)
    return pd.DataFrame({"ds": pd.date_range(start, end, freq="D")})


@dataclass
class ProphetForecaster:
    """Fit one store/item series and generate forecasts from it.

    Parameters
    ----------
    config : ModelConfig
        Model hyper-parameters.
    backend : ForecastBackend, default ProphetBackend()
        The forecasting library adapter.
    """

    config: ModelConfig = field(default_factory=ModelConfig)
    backend: Any = field(default_factory=ProphetBackend)
    model: Any = field(default=None, init=False, repr=False)
    history: Optional[pd.DataFrame] = field(default=None, init=False, repr=False)

    def _check_fitted(self) -> None:
        if self.model is None or self.history is None:
            raise RuntimeError("Forecaster must be fitted before use")

    def fit(self, series: pd.DataFrame) -> "ProphetForecaster":
        """Fit the model on a prepared ``ds``/``y`` series.

        A warning is logged when yearly seasonality is requested with less
        than two years of history; the fit still goes ahead.

        Raises
        ------
        ModelFitError
            If the backend rejects the data or the configuration.
        """
        if series.empty:
            raise ModelFitError("cannot fit an empty series")
        span_days = (series["ds"].iloc[-1] - series["ds"].iloc[0]).days
        if self.config.yearly_seasonality and span_days < MIN_YEARLY_HISTORY_DAYS:
            logger.warning(
                "Yearly seasonality requested with only %d days of history; "
                "at least %d days are recommended",
                span_days,
                MIN_YEARLY_HISTORY_DAYS,
            )
        logger.info(
            "Fitting %s on %d rows (%s to %s)",
            type(self.backend).__name__,
            len(series),
            series["ds"].iloc[0].date(),
            series["ds"].iloc[-1].date(),
        )
        self.model = call_backend("fit", self.backend.fit, series, self.config)
        self.history = series.copy()
        return self

    def forecast(self, horizon: int = 90, include_components: bool = False) -> pd.DataFrame:
        """Predict every day from the start of history to ``horizon`` days past its end.

        Parameters
        ----------
        horizon : int, default 90
            Number of days beyond the last observation.
        include_components : bool, default False
            Keep the trend and seasonal columns the backend returns.

        Returns
        -------
        pd.DataFrame
            Columns ``ds``, ``yhat``, ``yhat_lower``, ``yhat_upper`` (plus
            components when requested), one row per day.
        """
        self._check_fitted()
        future = make_future_dates(self.history, horizon)
        fcst = call_backend("predict", self.backend.predict, self.model, future)
        fcst = fcst.sort_values("ds").reset_index(drop=True)
        if include_components:
            return fcst
        return fcst[FORECAST_COLUMNS].copy()

    def components(self, forecast: pd.DataFrame) -> pd.DataFrame:
        """Return ``ds`` with whichever trend and seasonal columns are present."""
        cols = ["ds"] + [c for c in COMPONENT_COLUMNS if c in forecast.columns]
        return forecast[cols].copy()

    def cross_validate(
        self,
        initial: Union[int, str, pd.Timedelta],
        period: Union[int, str, pd.Timedelta],
        horizon: Union[int, str, pd.Timedelta],
        units: str = "days",
    ) -> pd.DataFrame:
        """Rolling-origin evaluation of this model's configuration on its history.

        The fitted model is handed to the backend, so Prophet refits its own
        copies at each cutoff.  See :func:`store_sales_forecast.validation.cross_validate`.
        """
        from .validation import cross_validate

        self._check_fitted()
        return cross_validate(
            self.history,
            self.config,
            initial=initial,
            period=period,
            horizon=horizon,
            units=units,
            backend=self.backend,
            fitted=self.model,
        )
