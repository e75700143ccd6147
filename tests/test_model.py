import logging

import pandas as pd
import pytest

from store_sales_forecast.config import ModelConfig
from store_sales_forecast.exceptions import ModelFitError
from store_sales_forecast.metrics import compute_metrics
from store_sales_forecast.model import (
    CV_COLUMNS,
    FORECAST_COLUMNS,
    ProphetBackend,
    ProphetForecaster,
    make_future_dates,
    quiet_prophet_logging,
)
from store_sales_forecast.validation import generate_cutoffs

from conftest import MeanBackend, make_series


@pytest.fixture(autouse=True)
def _quiet():
    quiet_prophet_logging()


@pytest.mark.parametrize("days, horizon", [(1826, 90), (30, 0), (400, 1)])
def test_future_dates_length_and_spacing(days, horizon):
    s = make_series(days=days)
    future = make_future_dates(s, horizon)
    assert len(future) == days + horizon
    assert future["ds"].iloc[0] == s["ds"].iloc[0]
    assert future["ds"].iloc[-1] == s["ds"].iloc[-1] + pd.Timedelta(days=horizon)
    assert (future["ds"].diff().dropna() == pd.Timedelta(days=1)).all()


def test_future_dates_fill_history_gaps():
    s = make_series(days=100).drop(index=range(10, 20)).reset_index(drop=True)
    assert len(make_future_dates(s, 5)) == 105


def test_future_dates_rejects_negative_horizon(series):
    with pytest.raises(ValueError):
        make_future_dates(series, -1)


def test_model_config_validation():
    with pytest.raises(ValueError):
        ModelConfig(growth="exponential")
    with pytest.raises(ValueError):
        ModelConfig(seasonality_mode="both")
    with pytest.raises(ValueError):
        ModelConfig(changepoint_prior_scale=0)
    with pytest.raises(ValueError):
        ModelConfig(seasonality_prior_scale=-1)
    with pytest.raises(ValueError):
        ModelConfig(interval_width=1.0)
    with pytest.raises(ValueError):
        ModelConfig(growth="logistic")
    assert ModelConfig(growth="logistic", cap=100.0).cap == 100.0


def test_forecaster_requires_fit():
    with pytest.raises(RuntimeError):
        ProphetForecaster(backend=MeanBackend()).forecast(10)


def test_forecast_rows(series):
    fc = ProphetForecaster(backend=MeanBackend()).fit(series)
    out = fc.forecast(90)
    assert list(out.columns) == FORECAST_COLUMNS
    assert len(out) == len(series) + 90
    assert out["ds"].is_monotonic_increasing
    assert (out["ds"].diff().dropna() == pd.Timedelta(days=1)).all()


def test_in_sample_predictions_score_consistently(series):
    fc = ProphetForecaster(backend=MeanBackend()).fit(series)
    out = fc.forecast(30)
    joined = series.merge(out, on="ds")
    m = compute_metrics(joined["y"], joined["yhat"])
    assert all(v >= 0 for v in m.values())
    assert m["mae"] <= m["rmse"]


def test_short_history_warns_but_fits(caplog):
    s = make_series(days=200)
    with caplog.at_level(logging.WARNING, logger="store_sales_forecast.model"):
        ProphetForecaster(backend=MeanBackend()).fit(s)
    assert "Yearly seasonality" in caplog.text


def test_no_warning_without_yearly_seasonality(caplog):
    s = make_series(days=200)
    config = ModelConfig(yearly_seasonality=False)
    with caplog.at_level(logging.WARNING, logger="store_sales_forecast.model"):
        ProphetForecaster(config=config, backend=MeanBackend()).fit(s)
    assert "Yearly seasonality" not in caplog.text


def test_forecaster_cross_validate_uses_its_history(series):
    fc = ProphetForecaster(backend=MeanBackend()).fit(series)
    cv = fc.cross_validate(730, 90, 45)
    assert cv["cutoff"].nunique() == 12


def test_prophet_backend_wraps_fit_errors():
    one_row = make_series(days=1)
    with pytest.raises(ModelFitError):
        ProphetBackend().fit(one_row, ModelConfig())


def test_prophet_end_to_end():
    s = make_series(days=3 * 365)
    fc = ProphetForecaster().fit(s)
    full = fc.forecast(30, include_components=True)
    assert len(full) == len(s) + 30
    assert {"trend", "weekly", "yearly"} <= set(fc.components(full).columns)
    rows = full[FORECAST_COLUMNS]
    assert (rows["yhat_lower"] <= rows["yhat"]).all()
    assert (rows["yhat"] <= rows["yhat_upper"]).all()

    cv = fc.cross_validate(730, 180, 30)
    assert cv["cutoff"].drop_duplicates().tolist() == generate_cutoffs(s, 730, 180, 30)
    assert cv["yhat"].notna().all()


def test_prophet_logistic_growth():
    s = make_series(days=120)
    config = ModelConfig(growth="logistic", cap=60.0, yearly_seasonality=False)
    fc = ProphetForecaster(config=config).fit(s)
    out = fc.forecast(14)
    assert len(out) == 134
    assert out["yhat"].notna().all()


def test_prophet_backend_cross_validates_one_cutoff():
    s = make_series(days=120)
    backend = ProphetBackend()
    fitted = backend.fit(s, ModelConfig(yearly_seasonality=False))

    cutoff = s["ds"].iloc[90]
    fold = backend.cross_validate(fitted, cutoff, pd.Timedelta(days=14))
    assert list(fold.columns) == CV_COLUMNS
    assert len(fold) == 14
    assert (fold["cutoff"] == cutoff).all()

    with pytest.raises(ModelFitError, match="cross-validation"):
        backend.cross_validate(fitted, s["ds"].iloc[0], pd.Timedelta(days=14))


def test_forecaster_wraps_library_predict_errors(series):
    class Rejecting(MeanBackend):
        def predict(self, fitted, future):
            raise ValueError("future frame rejected")

    fc = ProphetForecaster(backend=Rejecting()).fit(series)
    with pytest.raises(ModelFitError, match="predict failed"):
        fc.forecast(10)
