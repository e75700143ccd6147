import pandas as pd
import pytest

from store_sales_forecast.config import CrossValidationConfig, PipelineConfig
from store_sales_forecast.data import list_store_items, prepare_series
from store_sales_forecast.exceptions import EmptySeriesError, InsufficientHistoryError, ModelFitError
from store_sales_forecast.model import FORECAST_COLUMNS
from store_sales_forecast.pipeline import run_batch, run_pipeline, run_series, stack_results

from conftest import MeanBackend


class TrendMeanBackend(MeanBackend):
    """Also returns a flat ``trend`` column, and rejects frames for large means."""

    def __init__(self, reject_above=None):
        super().__init__()
        self.reject_above = reject_above

    def predict(self, fitted, future):
        if self.reject_above is not None and fitted["mean"] > self.reject_above:
            raise ValueError("library rejected future frame")
        out = super().predict(fitted, future)
        out["trend"] = fitted["mean"]
        return out


def _config(path="unused.csv", **kwargs):
    return PipelineConfig(
        input_path=path,
        forecast_horizon=30,
        cross_validation=CrossValidationConfig(initial=200, period=60, horizon=30),
        **kwargs,
    )


def test_pipeline_config_defaults():
    config = PipelineConfig(input_path="dataset/train.csv")
    assert (config.store_id, config.item_id, config.forecast_horizon) == (1, 1, 90)
    assert config.model.growth == "linear"
    assert config.model.seasonality_mode == "additive"
    assert config.model.changepoint_prior_scale == 0.05
    assert config.model.seasonality_prior_scale == 10.0
    assert (config.model.yearly_seasonality, config.model.weekly_seasonality) == (True, True)
    assert config.model.daily_seasonality is False
    cv = config.cross_validation
    assert (cv.initial, cv.period, cv.horizon, cv.units) == (730, 90, 45, "days")


def test_pipeline_config_rejects_negative_horizon():
    with pytest.raises(ValueError):
        PipelineConfig(input_path="x.csv", forecast_horizon=-1)


def test_run_series(observations):
    series = prepare_series(observations, 1, 2)
    result = run_series(series, _config(), store_id=1, item_id=2, backend=MeanBackend())
    assert result.ok
    assert (result.store_id, result.item_id) == (1, 2)
    assert len(result.forecast) == len(series) + 30
    # span 399: floor((399 - 200 - 30) / 60) + 1
    assert result.cv_results["cutoff"].nunique() == 3
    assert result.performance["horizon"].dt.days.tolist() == list(range(1, 31))


def test_run_series_keeps_components_apart(observations):
    series = prepare_series(observations, 1, 1)
    result = run_series(series, _config(), backend=TrendMeanBackend())
    assert list(result.forecast.columns) == FORECAST_COLUMNS
    assert "trend" in result.full_forecast.columns
    assert len(result.full_forecast) == len(result.forecast)


def test_run_pipeline_reads_configured_pair(observations, write_csv):
    path = write_csv(observations)
    result = run_pipeline(_config(path, store_id=2, item_id=3), backend=MeanBackend())
    expected = observations.loc[(observations["store"] == 2) & (observations["item"] == 3), "sales"]
    assert result.forecaster.history["y"].sum() == pytest.approx(expected.sum())


def test_run_pipeline_propagates_errors(observations, write_csv):
    path = write_csv(observations)
    with pytest.raises(EmptySeriesError):
        run_pipeline(_config(path, store_id=7), backend=MeanBackend())


def test_run_batch_isolates_failures(observations):
    short = observations[~((observations["store"] == 2) & (observations["item"] == 1))]
    # pair (2, 1) with only 100 days cannot hold the 200 day training window
    short = pd.concat(
        [short, observations[(observations["store"] == 2) & (observations["item"] == 1)].head(100)],
        ignore_index=True,
    )
    pairs = list_store_items(short) + [(5, 5)]
    results = run_batch(short, pairs, _config(), n_jobs=1, backend=MeanBackend())

    assert [(r.store_id, r.item_id) for r in results] == pairs
    failed = {(r.store_id, r.item_id): r.error for r in results if not r.ok}
    assert set(failed) == {(2, 1), (5, 5)}
    assert isinstance(failed[(2, 1)], InsufficientHistoryError)
    assert isinstance(failed[(5, 5)], EmptySeriesError)
    assert all(r.forecast is not None for r in results if r.ok)


def test_run_batch_isolates_library_errors(observations):
    obs = observations.copy()
    obs.loc[(obs["store"] == 2) & (obs["item"] == 1), "sales"] += 1000
    pairs = [(1, 1), (2, 1)]
    results = run_batch(obs, pairs, _config(), n_jobs=1, backend=TrendMeanBackend(reject_above=500))

    assert [(r.store_id, r.item_id) for r in results] == pairs
    assert results[0].ok
    assert list(results[0].forecast.columns) == FORECAST_COLUMNS
    assert results[0].full_forecast is None
    assert isinstance(results[1].error, ModelFitError)
    assert "library rejected future frame" in str(results[1].error)


def test_stack_results(observations):
    pairs = [(1, 1), (2, 2)]
    results = run_batch(observations, pairs, _config(), n_jobs=1, backend=MeanBackend())
    forecasts = stack_results(results, "forecast")
    assert list(forecasts.columns[:2]) == ["store", "item"]
    assert forecasts.groupby(["store", "item"]).size().to_dict() == {(1, 1): 430, (2, 2): 430}
    assert stack_results([], "forecast").empty
