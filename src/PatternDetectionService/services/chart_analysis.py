"""
Chart context reported next to detected patterns: trend direction,
support/resistance clusters, recent trend lines and Fibonacci retracements.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from models.market_data import PricePoint, SwingKind, SwingPoint
from models.patterns import Reliability, SignalDirection
from models.technicals import (
    DetectionConfig, FibonacciLevel, FibonacciLevels, PriceLevel, SupportResistance,
    TrendAnalysis, TrendLineInfo, TrendLines,
)
from services import trendlines
from services.swing_detector import find_swings

logger = logging.getLogger(__name__)

FIBONACCI_RATIOS = (0, 0.236, 0.382, 0.5, 0.618, 0.786, 1)
MIN_LINE_POINTS = 10


def analyze_trend(swings: Sequence[SwingPoint]) -> TrendAnalysis:
    """Classify trend from the last two swing highs and the last two swing lows."""
    highs = [s for s in swings if s.kind == SwingKind.HIGH]
    lows = [s for s in swings if s.kind == SwingKind.LOW]
    if len(highs) < 2 or len(lows) < 2:
        return TrendAnalysis()

    higher_highs = highs[-1].value > highs[-2].value
    higher_lows = lows[-1].value > lows[-2].value
    lower_highs = highs[-1].value < highs[-2].value
    lower_lows = lows[-1].value < lows[-2].value

    if higher_highs and higher_lows:
        return TrendAnalysis(trend=SignalDirection.BULLISH, strength=2, description="Strong bullish trend")
    if higher_highs:
        return TrendAnalysis(trend=SignalDirection.BULLISH, strength=1, description="Moderately bullish trend")
    if lower_lows and lower_highs:
        return TrendAnalysis(trend=SignalDirection.BEARISH, strength=2, description="Strong bearish trend")
    if lower_lows:
        return TrendAnalysis(trend=SignalDirection.BEARISH, strength=1, description="Moderately bearish trend")
    return TrendAnalysis()


def find_support_resistance(
    series: Sequence[PricePoint],
    config: Optional[DetectionConfig] = None,
    window: Optional[int] = None,
) -> SupportResistance:
    """
    Cluster recent closes into narrow price bins. A bin becomes a level when it
    holds at least 3 closes, 2 of them swing pivots. Levels below the last close
    are support and levels above are resistance, nearest first. Pivots use
    `window`, or the configured swing window when omitted.
    """
    config = config or DetectionConfig()
    lookback = config.support_resistance_lookback
    if len(series) < lookback:
        return SupportResistance()

    recent = list(series[-lookback:])
    prices = np.array([p.value for p in recent], dtype=float)
    bin_size = float(prices.max()) * config.support_resistance_bin_pct
    if bin_size <= 0:
        return SupportResistance()

    bins = np.floor(prices / bin_size).astype(int)
    counts = {int(b): int(c) for b, c in zip(*np.unique(bins, return_counts=True))}

    pivot_kinds: dict[int, set] = {}
    pivot_counts: dict[int, int] = {}
    for swing in find_swings(recent, window=config.swing_window if window is None else window):
        b = int(bins[swing.index])
        pivot_counts[b] = pivot_counts.get(b, 0) + 1
        pivot_kinds.setdefault(b, set()).add(swing.kind)

    last_price = float(series[-1].value)
    support, resistance = [], []
    for b, count in counts.items():
        pivots = pivot_counts.get(b, 0)
        if count < 3 or pivots < 2:
            continue
        price = b * bin_size + bin_size / 2
        distance = abs(last_price - price)
        level = PriceLevel(
            price=price,
            strength=count,
            pivots=pivots,
            acted_as_both=len(pivot_kinds[b]) == 2,
            distance=distance,
            percent_distance=distance / last_price * 100 if last_price else 0.0,
            reliability=Reliability.HIGH if pivots >= 3 else Reliability.MEDIUM,
        )
        if price < last_price:
            support.append(level)
        elif price > last_price:
            resistance.append(level)

    support.sort(key=lambda lvl: lvl.distance)
    resistance.sort(key=lambda lvl: lvl.distance)
    logger.debug(f"Support/resistance: {len(support)} support, {len(resistance)} resistance levels")
    return SupportResistance(support=support, resistance=resistance)


def _trend_line(points: list[SwingPoint], kind: SwingKind, config: DetectionConfig) -> Optional[TrendLineInfo]:
    if not trendlines.is_valid_trend_line(points, kind, config.trendline_min_r2, config.slope_dead_zone):
        return None

    line = trendlines.fit(points)
    rising = line.slope > 0
    if (kind == SwingKind.LOW) != rising:
        return None

    return TrendLineInfo(
        line=line,
        r_squared=trendlines.fit_quality(points, line),
        touches=points,
        reliability=Reliability.HIGH if len(points) >= 3 else Reliability.MEDIUM,
    )


def find_trend_lines(
    series: Sequence[PricePoint],
    swings: Sequence[SwingPoint],
    config: Optional[DetectionConfig] = None,
) -> TrendLines:
    """Rising support through the last three swing lows, falling resistance through the last three highs."""
    config = config or DetectionConfig()
    if len(series) < MIN_LINE_POINTS:
        return TrendLines()

    lows = [s for s in swings if s.kind == SwingKind.LOW][-3:]
    highs = [s for s in swings if s.kind == SwingKind.HIGH][-3:]
    return TrendLines(
        uptrend=_trend_line(lows, SwingKind.LOW, config),
        downtrend=_trend_line(highs, SwingKind.HIGH, config),
    )


def fibonacci_levels(series: Sequence[PricePoint]) -> Optional[FibonacciLevels]:
    """Retracement levels between the series extremes, measured back from the latest extreme."""
    if len(series) < MIN_LINE_POINTS:
        return None

    prices = np.array([p.value for p in series], dtype=float)
    highest_index = int(np.argmax(prices))
    lowest_index = int(np.argmin(prices))
    highest, lowest = float(prices[highest_index]), float(prices[lowest_index])
    is_uptrend = highest_index > lowest_index
    span = highest - lowest

    levels = [
        FibonacciLevel(ratio=ratio, price=highest - span * ratio if is_uptrend else lowest + span * ratio)
        for ratio in FIBONACCI_RATIOS
    ]
    return FibonacciLevels(
        levels=levels,
        highest_price=highest,
        lowest_price=lowest,
        highest_index=highest_index,
        lowest_index=lowest_index,
        is_uptrend=is_uptrend,
    )
