import matplotlib

matplotlib.use("Agg")

import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import pytest  # noqa: E402

from store_sales_forecast.exceptions import ModelFitError  # noqa: E402


def make_series(start="2013-01-01", days=1826, seed=0):
    """Daily sales with a mild trend plus weekly and yearly cycles."""
    rng = np.random.default_rng(seed)
    t = np.arange(days)
    y = (
        20
        + 0.01 * t
        + 5 * np.sin(2 * np.pi * t / 7)
        + 3 * np.sin(2 * np.pi * t / 365.25)
        + rng.normal(0, 1, days)
    )
    return pd.DataFrame(
        {"ds": pd.date_range(start, periods=days, freq="D"), "y": np.round(np.clip(y, 0, None))}
    )


def make_observations(stores=(1, 2), items=(1, 2, 3), days=400, start="2016-01-01"):
    frames = []
    for store in stores:
        for item in items:
            s = make_series(start=start, days=days, seed=store * 100 + item)
            frames.append(
                pd.DataFrame({"date": s["ds"], "store": store, "item": item, "sales": s["y"] + store})
            )
    return pd.concat(frames, ignore_index=True)


class MeanBackend:
    """Predicts the training mean with a fixed band; fails below ``min_rows``."""

    def __init__(self, min_rows=2):
        self.min_rows = min_rows
        self.fit_calls = 0

    def fit(self, series, config):
        self.fit_calls += 1
        if len(series) < self.min_rows:
            raise ModelFitError(f"need {self.min_rows} rows, got {len(series)}")
        return {"mean": float(series["y"].mean())}

    def predict(self, fitted, future):
        out = future[["ds"]].copy()
        out["yhat"] = fitted["mean"]
        out["yhat_lower"] = fitted["mean"] - 1.0
        out["yhat_upper"] = fitted["mean"] + 1.0
        return out


@pytest.fixture
def series():
    return make_series()


@pytest.fixture
def observations():
    return make_observations()


@pytest.fixture
def mean_backend():
    return MeanBackend()


@pytest.fixture
def write_csv(tmp_path):
    def _write(frame, name="train.csv"):
        path = tmp_path / name
        out = frame.copy()
        out["date"] = out["date"].dt.strftime("%Y-%m-%d")
        out.to_csv(path, index=False)
        return path

    return _write
