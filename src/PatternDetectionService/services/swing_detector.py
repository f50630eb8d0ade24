"""Swing point (local peak/trough) extraction."""

import logging
from typing import Optional, Sequence

import numpy as np
from scipy.signal import argrelextrema

from models.market_data import PricePoint, SwingKind, SwingPoint
from models.technicals import DetectionConfig, Timeframe

logger = logging.getLogger(__name__)


def window_for_timeframe(timeframe: Timeframe, config: Optional[DetectionConfig] = None) -> int:
    """Comparison window for a timeframe. Short timeframes use a tighter window."""
    config = config or DetectionConfig()
    if timeframe == Timeframe.SHORT:
        return config.short_swing_window
    return config.swing_window


def find_swings(series: Sequence[PricePoint], window: int = 2) -> list[SwingPoint]:
    """
    Mark index i as a swing high when its value is strictly greater than every
    value within `window` bars on both sides, and as a swing low on the
    symmetric strict-less condition. Plateaus never qualify.

    Returns swings sorted by index, or an empty list when the series is
    shorter than 2 * window + 1.
    """
    n = len(series)
    if window < 1 or n < 2 * window + 1:
        return []

    values = np.array([p.value for p in series], dtype=float)

    # argrelextrema clips at the edges; only indices with a full window count
    high_idx = argrelextrema(values, np.greater, order=window)[0]
    low_idx = argrelextrema(values, np.less, order=window)[0]

    swings: list[SwingPoint] = []
    for kind, indices in ((SwingKind.HIGH, high_idx), (SwingKind.LOW, low_idx)):
        for i in indices:
            i = int(i)
            if i < window or i >= n - window:
                continue
            swings.append(SwingPoint(index=i, date=series[i].date, value=float(values[i]), kind=kind))

    swings.sort(key=lambda s: s.index)
    logger.debug(f"Found {len(swings)} swings over {n} points (window={window})")
    return swings
