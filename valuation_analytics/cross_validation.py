"""Walk-forward backtesting of the trend model."""

import logging
import math
from typing import List, Optional, Sequence

from .base_models import (
    DataPoint,
    CrossValidationResult,
    HistoricalPrediction,
    ensure_chronological
)
from .trend import TrendAnalyzer

logger = logging.getLogger(__name__)

MIN_VALIDATION_POINTS = 4

# Size of the first training window
INITIAL_TRAINING_POINTS = 3

DEFAULT_ACCURACY = 0.5


class CrossValidator:
    """
    Expanding-window backtest: each point is predicted only from the points
    before it.
    """

    def __init__(self, analyzer: Optional[TrendAnalyzer] = None):
        self.analyzer = analyzer or TrendAnalyzer()

    def validate(self, series: Sequence[DataPoint]) -> CrossValidationResult:
        """
        Backtest the trend model over the series.

        Args:
            series: Chronologically ordered data points

        Returns:
            CrossValidationResult with accuracy, MAE, RMSE and the ledger.
            Below 4 points a neutral result (accuracy 0.5, no errors) is
            returned since there is nothing to test against.
        """
        ensure_chronological(series)

        n = len(series)
        if n < MIN_VALIDATION_POINTS:
            logger.debug(
                "Cross-validation skipped: %d points (need %d)", n, MIN_VALIDATION_POINTS
            )
            return CrossValidationResult(
                accuracy=DEFAULT_ACCURACY,
                mae=0.0,
                rmse=0.0,
                historical_predictions=[]
            )

        ledger: List[HistoricalPrediction] = []
        total_error = 0.0
        squared_errors = 0.0
        accuracies = 0.0

        for i in range(INITIAL_TRAINING_POINTS, n):
            test_point = series[i]
            trend = self.analyzer.fit(series[:i])

            predicted = trend.predict(test_point.x)
            actual = test_point.y
            error = abs(predicted - actual)
            accuracy = point_accuracy(predicted, actual)

            total_error += error
            squared_errors += error * error
            accuracies += accuracy

            ledger.append(HistoricalPrediction(
                predicted=predicted,
                actual=actual,
                date=test_point.date,
                accuracy=accuracy
            ))

        steps = len(ledger)
        result = CrossValidationResult(
            accuracy=accuracies / steps,
            mae=total_error / steps,
            rmse=math.sqrt(squared_errors / steps),
            historical_predictions=ledger
        )

        logger.debug(
            "Cross-validated %d steps: accuracy=%.3f mae=%.4g rmse=%.4g",
            steps, result.accuracy, result.mae, result.rmse
        )
        return result


def point_accuracy(predicted: float, actual: float) -> float:
    """1 minus the relative error, floored at 0. A zero actual counts as a total miss."""
    if actual == 0:
        relative_error = 1.0
    else:
        relative_error = abs(predicted - actual) / abs(actual)
    return max(0.0, 1.0 - relative_error)
