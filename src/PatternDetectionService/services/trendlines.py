"""Least-squares trend lines, fit quality and line intersections."""

from typing import Optional, Sequence

import numpy as np

from models.market_data import BarPoint, SwingKind
from models.patterns import ProjectedPoint, TrendLine
from utils.numeric import all_finite

PARALLEL_SLOPE_EPSILON = 1e-4


def _xy(points: Sequence[BarPoint]) -> tuple[np.ndarray, np.ndarray]:
    x = np.array([p.index for p in points], dtype=float)
    y = np.array([p.value for p in points], dtype=float)
    return x, y


def fit(points: Sequence[BarPoint]) -> TrendLine:
    """Ordinary least-squares line through (index, value) pairs."""
    if len(points) < 2:
        return TrendLine(slope=0.0, intercept=0.0)

    x, y = _xy(points)
    # All points on one index: no slope is defined, fall back to a flat line at the mean
    if np.ptp(x) == 0:
        return TrendLine(slope=0.0, intercept=float(np.mean(y)))

    slope, intercept = np.polyfit(x, y, 1)
    if not all_finite(slope, intercept):
        return TrendLine(slope=0.0, intercept=float(np.mean(y)))
    return TrendLine(slope=float(slope), intercept=float(intercept))


def fit_quality(points: Sequence[BarPoint], line: TrendLine) -> float:
    """R-squared of `line` against `points`. Flat input scores 0."""
    if len(points) < 2:
        return 0.0

    x, y = _xy(points)
    predicted = line.slope * x + line.intercept
    ss_tot = float(np.sum((y - y.mean()) ** 2))
    if ss_tot == 0:
        return 0.0
    ss_res = float(np.sum((y - predicted) ** 2))
    return 1 - ss_res / ss_tot


def intersect(line_a: TrendLine, line_b: TrendLine) -> Optional[ProjectedPoint]:
    """Crossing point of two lines, or None for (near) parallel lines."""
    if abs(line_a.slope - line_b.slope) < PARALLEL_SLOPE_EPSILON:
        return None

    x = (line_b.intercept - line_a.intercept) / (line_a.slope - line_b.slope)
    y = line_a.value_at(x)
    if not all_finite(x, y):
        return None
    return ProjectedPoint(index=float(x), value=float(y))


def value_at(line: TrendLine, index: float) -> float:
    return line.value_at(index)


def is_valid_trend_line(
    points: Sequence[BarPoint],
    kind: SwingKind,
    min_r2: float = 0.7,
    dead_zone: float = 0.05,
) -> bool:
    """
    Support lines (through lows) must not fall and resistance lines (through
    highs) must not rise, beyond a small dead zone, and the points must sit
    on the line with R-squared above `min_r2`.
    """
    if len(points) < 3:
        return False

    line = fit(points)
    if fit_quality(points, line) <= min_r2:
        return False
    if kind == SwingKind.LOW:
        return line.slope > -dead_zone
    return line.slope < dead_zone
