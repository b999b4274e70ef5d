"""
Minimal run logged through the buffered writer.

Usage:
    # Terminal 1: Start a tracking server
    mlflow server -p 5000

    # Terminal 2: Run this script
    python examples/start_run.py --uri http://localhost:5000
"""

import argparse
from dataclasses import dataclass

from mlflow_client import Mlflow


@dataclass
class HyperParams:
    param_a: float
    param_b: float


def main():
    parser = argparse.ArgumentParser(description="Log a run to an MLflow tracking server")
    parser.add_argument("--uri", default=None, help="Tracking server URI (default: MLFLOW_TRACKING_URI)")
    parser.add_argument("--experiment", default="experiment_name", help="Experiment name")
    parser.add_argument("--run", default="run_name", help="Run name")
    parser.add_argument("--epochs", type=int, default=100, help="Number of epochs")
    args = parser.parse_args()

    mlflow = Mlflow(args.uri)
    experiment = mlflow.create_experiment_if_not_exists(args.experiment)
    run = experiment.start_run(args.run)

    run.log_params("", HyperParams(param_a=1.0, param_b=2.0))

    for epoch in range(args.epochs):
        run.log_metric("loss", 0.5 / (epoch + 1), step=epoch)

    run.finish()
    print(f"Logged {args.epochs} epochs to run {run.run.id}")


if __name__ == "__main__":
    main()
