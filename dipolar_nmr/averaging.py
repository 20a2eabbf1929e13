"""
Running mean / standard deviation for per-frame trajectory samples.
"""

import math
from typing import Iterable, Tuple


class RunningStats:
    """
    Streaming accumulator for the mean and sample standard deviation.

    Only the count, the running sum and the running sum of squares are kept,
    so memory does not grow with the length of the trajectory.
    """

    def __init__(self):
        self.count = 0
        self.total = 0.0
        self.total_sq = 0.0

    def add(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.total_sq += value ** 2

    @property
    def mean(self) -> float:
        if self.count == 0:
            raise ValueError("Cannot compute statistics of an empty series.")
        return self.total / self.count

    @property
    def std(self) -> float:
        """
        Sample standard deviation from the running sums:

            sqrt((n * sum(x^2) - sum(x)^2) / (n * (n - 1)))

        Exactly 0 for a single sample.
        """
        n = self.count
        if n == 0:
            raise ValueError("Cannot compute statistics of an empty series.")
        if n < 2:
            return 0.0
        numerator = n * self.total_sq - self.total ** 2
        # Rounding can push a constant series slightly below zero
        return math.sqrt(max(numerator, 0.0) / (n * (n - 1)))

    def result(self) -> Tuple[float, float]:
        return self.mean, self.std


def stats(values: Iterable[float]) -> Tuple[float, float]:
    """
    Mean and sample standard deviation of a sequence of numbers.

    Args:
        values: At least one number.

    Returns:
        (mean, std). std is 0 for a single value.
    """
    acc = RunningStats()
    for value in values:
        acc.add(value)
    return acc.result()
