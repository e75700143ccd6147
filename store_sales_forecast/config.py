"""Configuration objects for the forecasting workflow.

All settings that used to be implicit (working directory, hard-coded model
parameters, cross-validation windows) are collected here in immutable
dataclasses.  The defaults reproduce the first store 1 / item 1
exploration: a linear, additive model with yearly and weekly seasonality,
a 90 day forecast and a 730/90/45 day rolling-origin evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

GROWTH_MODES = ("linear", "logistic")
SEASONALITY_MODES = ("additive", "multiplicative")


@dataclass(frozen=True)
class ModelConfig:
    """Hyper-parameters handed to the forecasting library.

    Parameters
    ----------
    growth : str, default "linear"
        Trend type, ``"linear"`` or ``"logistic"``.
    seasonality_mode : str, default "additive"
        ``"additive"`` or ``"multiplicative"``.
    changepoint_prior_scale : float, default 0.05
        Flexibility of the trend; larger values allow more changepoints.
    seasonality_prior_scale : float, default 10.0
        Strength of the seasonality prior.
    yearly_seasonality, weekly_seasonality, daily_seasonality : bool
        Which built-in seasonal components to fit.
    interval_width : float, default 0.80
        Width of the uncertainty interval reported as ``yhat_lower`` and
        ``yhat_upper``.
    cap : float, optional
        Carrying capacity.  Required when ``growth`` is ``"logistic"``.
    """

    growth: str = "linear"
    seasonality_mode: str = "additive"
    changepoint_prior_scale: float = 0.05
    seasonality_prior_scale: float = 10.0
    yearly_seasonality: bool = True
    weekly_seasonality: bool = True
    daily_seasonality: bool = False
    interval_width: float = 0.80
    cap: Optional[float] = None

    def __post_init__(self) -> None:
        if self.growth not in GROWTH_MODES:
            raise ValueError(f"growth must be one of {GROWTH_MODES}, got {self.growth!r}")
        if self.seasonality_mode not in SEASONALITY_MODES:
            raise ValueError(
                f"seasonality_mode must be one of {SEASONALITY_MODES}, got {self.seasonality_mode!r}"
            )
        if self.changepoint_prior_scale <= 0:
            raise ValueError("changepoint_prior_scale must be positive")
        if self.seasonality_prior_scale <= 0:
            raise ValueError("seasonality_prior_scale must be positive")
        if not 0 < self.interval_width < 1:
            raise ValueError("interval_width must lie strictly between 0 and 1")
        if self.growth == "logistic" and (self.cap is None or self.cap <= 0):
            raise ValueError("logistic growth requires a positive cap")


@dataclass(frozen=True)
class CrossValidationConfig:
    """Rolling-origin evaluation windows, expressed in ``units``."""

    initial: int = 730
    period: int = 90
    horizon: int = 45
    units: str = "days"

    def __post_init__(self) -> None:
        for name in ("initial", "period", "horizon"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")


@dataclass(frozen=True)
class PipelineConfig:
    """Everything needed to run the workflow for one store/item pair."""

    input_path: Union[str, Path]
    store_id: int = 1
    item_id: int = 1
    forecast_horizon: int = 90
    model: ModelConfig = field(default_factory=ModelConfig)
    cross_validation: CrossValidationConfig = field(default_factory=CrossValidationConfig)

    def __post_init__(self) -> None:
        if self.forecast_horizon < 0:
            raise ValueError("forecast_horizon must not be negative")
