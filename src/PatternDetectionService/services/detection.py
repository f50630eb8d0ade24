"""
Detection entry points.

`detect_patterns` is the single pure entry point over an in-memory series:
swings are computed once and shared by every pattern family, candidates are
ranked and capped, and nothing is cached between calls.
"""

import logging
from datetime import timedelta
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from config import get_settings
from models.market_data import PricePoint, SwingPoint
from models.technicals import (
    CLASSIC_FAMILIES, ChartAnalysis, DetectionConfig, PatternFamily, PatternReport, Timeframe,
)
from services.chart_analysis import analyze_trend, fibonacci_levels, find_support_resistance, find_trend_lines
from services.harmonic_detector import HarmonicDetector
from services.pattern_detector import PatternDetector
from services.pattern_ranker import rank_classic, rank_harmonic
from services.swing_detector import find_swings, window_for_timeframe

logger = logging.getLogger(__name__)

# Epoch timestamps above this are milliseconds
EPOCH_MS_THRESHOLD = 1e11


def _parse_dates(column: pd.Series) -> pd.Series:
    if pd.api.types.is_numeric_dtype(column):
        unit = "ms" if column.abs().max() > EPOCH_MS_THRESHOLD else "s"
        return pd.to_datetime(column, unit=unit, utc=True, errors="coerce")
    return pd.to_datetime(column, utc=True, errors="coerce", format="ISO8601")


def _optional(value) -> Optional[float]:
    if value is None or pd.isna(value) or not np.isfinite(value):
        return None
    return float(value)


def series_from_bars(bars: list[dict]) -> list[PricePoint]:
    """
    Convert bar dicts ({date, close|value, high?, low?, volume?}) into a
    chronologically ordered price series.

    Raises:
        ValueError: when the date or close column is missing
    """
    df = pd.DataFrame(bars)
    if df.empty:
        return []

    # Normalize column names
    df.columns = [str(c).lower() for c in df.columns]
    if "value" not in df.columns and "close" in df.columns:
        df["value"] = df["close"]
    missing = {"date", "value"} - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns: {missing}")

    df["date"] = _parse_dates(df["date"])
    df["value"] = pd.to_numeric(df["value"], errors="coerce")
    for col in ("high", "low", "volume"):
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")

    valid = df["date"].notna() & np.isfinite(df["value"].astype(float))
    dropped = int((~valid).sum())
    if dropped:
        logger.warning(f"Dropped {dropped} bars with unparseable dates or non-finite values")
    df = df[valid].sort_values("date", kind="stable").reset_index(drop=True)

    series = []
    for row in df.to_dict("records"):
        series.append(PricePoint(
            date=row["date"].to_pydatetime(),
            value=float(row["value"]),
            high=_optional(row.get("high")),
            low=_optional(row.get("low")),
            volume=_optional(row.get("volume")),
        ))
    return series


def trim_to_timeframe(series: Sequence[PricePoint], timeframe: Timeframe) -> list[PricePoint]:
    """Keep the points within the timeframe's lookback of the latest date."""
    if not series:
        return []
    cutoff = series[-1].date - timedelta(days=timeframe.lookback_days)
    return [p for p in series if p.date >= cutoff]


def _resolve_config(config: Optional[DetectionConfig]) -> DetectionConfig:
    return config if config is not None else get_settings().detection_config()


def _detect(
    series: Sequence[PricePoint],
    swings: Sequence[SwingPoint],
    timeframe: Timeframe,
    families: set[PatternFamily],
    config: DetectionConfig,
) -> PatternReport:
    classic_families = [f for f in CLASSIC_FAMILIES if f in families]
    classic = PatternDetector(series, swings, config).detect_patterns(classic_families)

    harmonic = []
    if PatternFamily.HARMONIC in families:
        try:
            harmonic = HarmonicDetector(swings, config).detect_patterns()
        except Exception as e:
            logger.error(f"Error detecting harmonic: {e}")

    report = PatternReport(
        timeframe=timeframe,
        classic_patterns=rank_classic(classic, config.classic_cap),
        harmonic_patterns=rank_harmonic(harmonic, config.harmonic_complete_cap, config.harmonic_partial_cap),
        swings_found=len(swings),
    )
    logger.debug(
        f"Detected {len(report.classic_patterns)} classic and {len(report.harmonic_patterns)} "
        f"harmonic patterns over {len(series)} points ({timeframe.value})"
    )
    return report


def run_detection(
    series: Sequence[PricePoint],
    timeframe: Timeframe = Timeframe.LONG,
    pattern_set: Optional[Sequence[PatternFamily]] = None,
    config: Optional[DetectionConfig] = None,
) -> PatternReport:
    """Ranked classic and harmonic candidates for a series that is already trimmed to its timeframe."""
    config = _resolve_config(config)
    families = set(PatternFamily if pattern_set is None else pattern_set)
    swings = find_swings(series, window_for_timeframe(timeframe, config))
    return _detect(series, swings, timeframe, families, config)


def detect_patterns(
    series: Sequence[PricePoint],
    timeframe: Timeframe = Timeframe.LONG,
    pattern_set: Optional[Sequence[PatternFamily]] = None,
    config: Optional[DetectionConfig] = None,
) -> list:
    """Ranked candidates: capped classic patterns followed by capped harmonic patterns."""
    return run_detection(series, timeframe, pattern_set, config).candidates()


def analyze_chart(
    series: Sequence[PricePoint],
    timeframe: Timeframe = Timeframe.LONG,
    pattern_set: Optional[Sequence[PatternFamily]] = None,
    config: Optional[DetectionConfig] = None,
) -> ChartAnalysis:
    """Pattern report plus trend, support/resistance, trend lines and Fibonacci levels."""
    config = _resolve_config(config)
    families = set(PatternFamily if pattern_set is None else pattern_set)
    window = window_for_timeframe(timeframe, config)
    swings = find_swings(series, window)
    report = _detect(series, swings, timeframe, families, config)

    return ChartAnalysis(
        **dict(report),
        trend=analyze_trend(swings),
        support_resistance=find_support_resistance(series, config, window),
        trend_lines=find_trend_lines(series, swings, config),
        fibonacci=fibonacci_levels(series),
    )
