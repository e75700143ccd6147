#!/usr/bin/env python3
"""Forecast one store/item series and evaluate it with cross-validation.

This command line script wraps the package workflow: it reads the sales
history CSV (columns ``date``, ``store``, ``item``, ``sales``), fits a
Prophet model on the requested store/item pair, forecasts the next
``--horizon`` days and runs a rolling-origin cross-validation.  Tables are
written as CSV and charts as PNG to the output directory.

Usage example::

    python scripts/forecast.py --input-csv dataset/train.csv \
        --store 1 --item 1 --horizon 90 \
        --cv-initial 730 --cv-period 90 --cv-horizon 45 \
        --output-dir forecast_output --plot-start 2017-01-01

The files ``forecast.csv``, ``cv_results.csv``, ``performance.csv`` and the
charts ``forecast.png``, ``components.png`` and ``performance.png`` will be
written to ``forecast_output``.
"""

import argparse
import logging
import sys
from pathlib import Path

# Ensure the parent directory is on sys.path so the store_sales_forecast
# package can be imported when this script is executed directly.  When the
# package is installed via pip, this is unnecessary.
sys.path.append(str(Path(__file__).resolve().parents[1]))

from store_sales_forecast.config import CrossValidationConfig, ModelConfig, PipelineConfig
from store_sales_forecast.exceptions import ForecastError
from store_sales_forecast.model import quiet_prophet_logging
from store_sales_forecast.pipeline import run_pipeline
from store_sales_forecast import plots

logger = logging.getLogger("forecast")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Forecast and cross-validate one store/item series.")
    parser.add_argument(
        "--input-csv",
        required=True,
        help="Path to the sales history CSV with date, store, item and sales columns.",
    )
    parser.add_argument("--store", type=int, default=1, help="Store id to forecast.")
    parser.add_argument("--item", type=int, default=1, help="Item id to forecast.")
    parser.add_argument(
        "--horizon",
        type=int,
        default=90,
        help="Number of days to forecast beyond the last observation.",
    )
    parser.add_argument(
        "--output-dir",
        default="forecast_output",
        help="Directory to write the forecast tables and charts.",
    )
    parser.add_argument("--growth", choices=["linear", "logistic"], default="linear")
    parser.add_argument("--cap", type=float, default=None, help="Carrying capacity for logistic growth.")
    parser.add_argument(
        "--seasonality-mode", choices=["additive", "multiplicative"], default="additive"
    )
    parser.add_argument("--changepoint-prior-scale", type=float, default=0.05)
    parser.add_argument("--seasonality-prior-scale", type=float, default=10.0)
    parser.add_argument(
        "--no-yearly", action="store_true", help="Disable yearly seasonality."
    )
    parser.add_argument(
        "--no-weekly", action="store_true", help="Disable weekly seasonality."
    )
    parser.add_argument(
        "--daily", action="store_true", help="Enable daily seasonality."
    )
    parser.add_argument("--cv-initial", type=int, default=730, help="Initial training window in days.")
    parser.add_argument("--cv-period", type=int, default=90, help="Spacing between cutoffs in days.")
    parser.add_argument("--cv-horizon", type=int, default=45, help="Forecast horizon per fold in days.")
    parser.add_argument(
        "--plot-start",
        default=None,
        help="Only plot history and forecast after this date (YYYY-MM-DD).",
    )
    parser.add_argument("--no-plots", action="store_true", help="Skip writing charts.")
    return parser.parse_args()


def build_config(args: argparse.Namespace) -> PipelineConfig:
    model = ModelConfig(
        growth=args.growth,
        seasonality_mode=args.seasonality_mode,
        changepoint_prior_scale=args.changepoint_prior_scale,
        seasonality_prior_scale=args.seasonality_prior_scale,
        yearly_seasonality=not args.no_yearly,
        weekly_seasonality=not args.no_weekly,
        daily_seasonality=args.daily,
        cap=args.cap,
    )
    return PipelineConfig(
        input_path=args.input_csv,
        store_id=args.store,
        item_id=args.item,
        forecast_horizon=args.horizon,
        model=model,
        cross_validation=CrossValidationConfig(
            initial=args.cv_initial, period=args.cv_period, horizon=args.cv_horizon
        ),
    )


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    quiet_prophet_logging()
    args = parse_args()
    try:
        config = build_config(args)
        result = run_pipeline(config)
    except (ForecastError, ValueError) as e:
        logger.error("%s", e)
        return 1

    output_path = Path(args.output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    forecast_file = output_path / "forecast.csv"
    cv_file = output_path / "cv_results.csv"
    performance_file = output_path / "performance.csv"
    result.forecast.to_csv(forecast_file, index=False)
    result.cv_results.to_csv(cv_file, index=False)
    performance = result.performance.copy()
    performance["horizon"] = performance["horizon"].dt.days
    performance.to_csv(performance_file, index=False)

    print(result.forecast.tail().to_string(index=False))
    print(performance.head().to_string(index=False))

    if not args.no_plots:
        forecaster = result.forecaster
        plots.plot_forecast(
            forecaster.history, result.forecast, start=args.plot_start,
            save_path=output_path / "forecast.png",
        )
        plots.plot_components(
            forecaster.model, result.full_forecast, save_path=output_path / "components.png"
        )
        plots.plot_performance(result.performance, save_path=output_path / "performance.png")

    print(f"Forecast written to {forecast_file}")
    print(f"Cross-validation rows written to {cv_file}")
    print(f"Performance metrics written to {performance_file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
