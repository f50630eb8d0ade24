"""
Classic chart pattern detection over swing points and fitted trend lines.

Detects: Head & Shoulders (and inverse), Double Top/Bottom,
Symmetrical/Ascending/Descending Triangle, Bullish/Bearish Rectangle,
Rising/Falling Wedge, Bullish/Bearish Pennant.

Completion convention for reversal and range patterns:
    85  structurally formed, not confirmed ("Developing")
    95  defining points are the latest swings, boundary not crossed ("Awaiting ...")
    100 latest close crossed the boundary in the expected direction ("Confirmed ...")
Converging patterns (triangles, wedges, pennants) report their progress toward
the apex while developing and 100 once price breaks out. A directional triangle or
rectangle that breaks against its direction is dropped.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from models.market_data import BarPoint, PricePoint, SwingKind, SwingPoint
from models.patterns import (
    ChannelPoints, DoublePattern, DoublePoints, HeadAndShouldersPattern, HeadAndShouldersPoints,
    PatternType, PennantPattern, PennantPoints, RectanglePattern, Reliability,
    SignalDirection, TrendLine, TrianglePattern, WedgePattern,
)
from models.technicals import CLASSIC_FAMILIES, DetectionConfig, PatternFamily
from services import trendlines
from utils.numeric import all_finite, percent_difference, within_tolerance

logger = logging.getLogger(__name__)

DESCRIPTIONS = {
    PatternType.HEAD_AND_SHOULDERS: (
        "A bearish reversal pattern with three peaks where the middle peak (head) is the highest "
        "and the two surrounding peaks (shoulders) are lower and approximately at the same level."
    ),
    PatternType.INVERSE_HEAD_AND_SHOULDERS: (
        "A bullish reversal pattern with three troughs where the middle trough (head) is the lowest "
        "and the two surrounding troughs (shoulders) are higher and approximately at the same level."
    ),
    PatternType.DOUBLE_TOP: (
        "A bearish reversal pattern formed by two peaks at roughly the same level "
        "with a moderate trough between them."
    ),
    PatternType.DOUBLE_BOTTOM: (
        "A bullish reversal pattern formed by two troughs at roughly the same level "
        "with a moderate peak between them."
    ),
    PatternType.SYMMETRICAL_TRIANGLE: (
        "A bilateral pattern where price forms a triangle with converging trend lines, indicating "
        "a period of consolidation before a potential breakout in either direction."
    ),
    PatternType.ASCENDING_TRIANGLE: (
        "A bullish pattern formed by a flat upper resistance line and an upward-sloping lower "
        "support line, suggesting accumulation and a potential upside breakout."
    ),
    PatternType.DESCENDING_TRIANGLE: (
        "A bearish pattern formed by a flat lower support line and a downward-sloping upper "
        "resistance line, suggesting distribution and a potential downside breakdown."
    ),
    PatternType.BULLISH_RECTANGLE: (
        "A bullish continuation pattern where price consolidates between parallel support and "
        "resistance levels before continuing in the upward direction."
    ),
    PatternType.BEARISH_RECTANGLE: (
        "A bearish continuation pattern where price consolidates between parallel support and "
        "resistance levels before continuing in the downward direction."
    ),
    PatternType.RISING_WEDGE: (
        "A bearish pattern where price forms a wedge shape with rising and converging trend lines. "
        "Despite the upward slope, it often signals a potential bearish reversal or continuation."
    ),
    PatternType.FALLING_WEDGE: (
        "A bullish pattern where price forms a wedge shape with falling and converging trend lines. "
        "Despite the downward slope, it often signals a potential bullish reversal or continuation."
    ),
    PatternType.BULLISH_PENNANT: (
        "A bullish continuation pattern consisting of a strong directional movement (mast) "
        "followed by a small consolidation (pennant) before continuing in the same direction."
    ),
    PatternType.BEARISH_PENNANT: (
        "A bearish continuation pattern consisting of a strong directional movement (mast) "
        "followed by a small consolidation (pennant) before continuing in the same direction."
    ),
}


def display_name(pattern_type: PatternType) -> str:
    return " ".join(word.capitalize() for word in pattern_type.value.split("_"))


def _completion_state(completed: bool, crossed: bool, bullish: bool) -> tuple[int, str]:
    """Map formation state to (completion, completion_status)."""
    move = "Breakout" if bullish else "Breakdown"
    if completed and crossed:
        return 100, f"Confirmed {move}"
    if completed:
        return 95, f"Awaiting {move}"
    return 85, "Developing"


def _fit_reliability(*r_squared: float) -> Reliability:
    weakest = min(r_squared)
    if weakest >= 0.85:
        return Reliability.HIGH
    if weakest >= 0.7:
        return Reliability.MEDIUM
    return Reliability.LOW


class PatternDetector:
    """Detects classic chart patterns in a price series."""

    def __init__(
        self,
        series: Sequence[PricePoint],
        swings: Sequence[SwingPoint],
        config: Optional[DetectionConfig] = None,
    ):
        """
        Args:
            series: Chronologically ordered, finite price points
            swings: Swing points extracted from `series`
            config: Detection constants (defaults when omitted)
        """
        self.series = list(series)
        self.swings = list(swings)
        self.config = config or DetectionConfig()
        self.n = len(self.series)
        self.close = np.array([p.value for p in self.series], dtype=float)

    @property
    def latest_price(self) -> float:
        return float(self.close[-1])

    @property
    def latest_index(self) -> int:
        return self.n - 1

    def _has_enough_data(self, min_swings: int) -> bool:
        return self.n >= self.config.min_classic_points and len(self.swings) >= min_swings

    def _is_last_swing(self, swing: SwingPoint) -> bool:
        return swing.index == self.swings[-1].index

    def _bar(self, index: int) -> BarPoint:
        return BarPoint(index=index, date=self.series[index].date, value=float(self.close[index]))

    def detect_patterns(self, families: Optional[Sequence[PatternFamily]] = None) -> list:
        """Run detection for the requested classic pattern families."""
        results = []

        detector_map = {
            PatternFamily.HEAD_AND_SHOULDERS: self._detect_head_and_shoulders_family,
            PatternFamily.DOUBLE: self._detect_double_family,
            PatternFamily.TRIANGLE: self._detect_triangles,
            PatternFamily.RECTANGLE: self._detect_rectangles,
            PatternFamily.WEDGE: self._detect_wedges,
            PatternFamily.PENNANT: self._detect_pennants,
        }

        for family in CLASSIC_FAMILIES if families is None else families:
            fn = detector_map.get(family)
            if fn:
                try:
                    detected = fn()
                    logger.debug(f"{family.value}: {len(detected)} candidates")
                    results.extend(detected)
                except Exception as e:
                    logger.error(f"Error detecting {family.value}: {e}")

        return results

    # ---------- Head & Shoulders ----------
    def _detect_head_and_shoulders_family(self) -> list[HeadAndShouldersPattern]:
        return self._detect_head_and_shoulders() + self._detect_head_and_shoulders(inverse=True)

    def _extreme_between(self, start: int, end: int, kind: SwingKind) -> Optional[int]:
        """Position of the most extreme `kind` swing strictly between two swing positions."""
        between = [j for j in range(start + 1, end) if self.swings[j].kind == kind]
        if not between:
            return None
        if kind == SwingKind.LOW:
            return min(between, key=lambda j: self.swings[j].value)
        return max(between, key=lambda j: self.swings[j].value)

    def _match_shoulders(self, start: int, outer: SwingKind) -> Optional[tuple[int, int, int, int, int]]:
        """
        Starting from a left shoulder at `start`, find head and right shoulder
        among the following `outer` swings, plus the neckline swings between them.
        Returns swing positions (ls, left_neck, head, right_neck, rs).
        """
        sign = 1 if outer == SwingKind.HIGH else -1
        left = self.swings[start]
        if left.kind != outer:
            return None

        head: Optional[int] = None
        for j in range(start + 1, len(self.swings)):
            swing = self.swings[j]
            if swing.kind != outer:
                continue
            if head is None:
                if sign * (swing.value - left.value) > 0:
                    head = j
                continue

            head_value = self.swings[head].value
            if sign * (swing.value - head_value) > 0:
                # A more extreme swing after the head breaks the structure
                return None
            if sign * (head_value - swing.value) > 0 and within_tolerance(
                swing.value, left.value, self.config.shoulder_tolerance_pct
            ):
                left_neck = self._extreme_between(start, head, outer.opposite)
                right_neck = self._extreme_between(head, j, outer.opposite)
                if left_neck is None or right_neck is None:
                    return None
                return start, left_neck, head, right_neck, j

        return None

    def _detect_head_and_shoulders(self, inverse: bool = False) -> list[HeadAndShouldersPattern]:
        """Three peaks with the middle one highest (troughs, lowest, when inverse)."""
        results = []
        if not self._has_enough_data(5):
            return results

        outer = SwingKind.LOW if inverse else SwingKind.HIGH
        pattern_type = PatternType.INVERSE_HEAD_AND_SHOULDERS if inverse else PatternType.HEAD_AND_SHOULDERS

        i = 0
        while i < len(self.swings) - 4:
            match = self._match_shoulders(i, outer)
            if match is None:
                i += 1
                continue

            ls, ln, hd, rn, rs = (self.swings[k] for k in match)
            neckline = trendlines.fit([ln, rn])
            neck_mean = (ln.value + rn.value) / 2
            pattern_height = neck_mean - hd.value if inverse else hd.value - neck_mean
            neck_at_right = neckline.value_at(rs.index)
            target = neck_at_right + pattern_height if inverse else neck_at_right - pattern_height

            if pattern_height <= 0 or not all_finite(neckline.slope, neckline.intercept, target):
                logger.debug(f"Discarded {pattern_type.value} at swing {i}: degenerate neckline")
                i += 1
                continue

            neck_now = neckline.value_at(self.latest_index)
            crossed = self.latest_price > neck_now if inverse else self.latest_price < neck_now
            completion, status = _completion_state(self._is_last_swing(rs), crossed, bullish=inverse)

            shoulder_gap = abs(ls.value - rs.value)
            if shoulder_gap < 0.03 * abs(hd.value):
                reliability = Reliability.HIGH
            elif shoulder_gap < 0.05 * abs(hd.value):
                reliability = Reliability.MEDIUM
            else:
                reliability = Reliability.LOW

            results.append(HeadAndShouldersPattern(
                pattern_type=pattern_type,
                name=display_name(pattern_type),
                description=DESCRIPTIONS[pattern_type],
                points=HeadAndShouldersPoints(
                    left_shoulder=ls, head=hd, right_shoulder=rs, left_neck=ln, right_neck=rn,
                ),
                lines={"neckline": neckline},
                target=target,
                completion=completion,
                completion_status=status,
                direction=SignalDirection.BULLISH if inverse else SignalDirection.BEARISH,
                pattern_height=pattern_height,
                reliability=reliability,
            ))

            # Skip past the consumed swings
            i = match[4] + 1

        return results

    # ---------- Double Top / Bottom ----------
    def _detect_double_family(self) -> list[DoublePattern]:
        return self._detect_double(SwingKind.HIGH) + self._detect_double(SwingKind.LOW)

    def _detect_double(self, outer: SwingKind) -> list[DoublePattern]:
        """Two extremes at a similar level with an opposite swing between them."""
        results = []
        if not self._has_enough_data(3):
            return results

        top = outer == SwingKind.HIGH
        pattern_type = PatternType.DOUBLE_TOP if top else PatternType.DOUBLE_BOTTOM

        i = 0
        while i < len(self.swings) - 2:
            first, middle, second = self.swings[i:i + 3]
            if (
                first.kind != outer or middle.kind != outer.opposite or second.kind != outer
                or not within_tolerance(first.value, second.value, self.config.double_tolerance_pct)
            ):
                i += 1
                continue

            extreme_mean = (first.value + second.value) / 2
            pattern_height = extreme_mean - middle.value if top else middle.value - extreme_mean
            target = middle.value - pattern_height if top else middle.value + pattern_height
            if pattern_height <= 0 or not all_finite(target):
                i += 1
                continue

            following = self.swings[i + 3] if i + 3 < len(self.swings) else None
            follow_through = following is not None and (
                following.value < middle.value if top else following.value > middle.value
            )
            completed = self._is_last_swing(second) or follow_through
            crossed = self.latest_price < middle.value if top else self.latest_price > middle.value
            completion, status = _completion_state(completed, crossed, bullish=not top)

            symmetry = percent_difference(first.value, second.value)
            reliability = (
                Reliability.HIGH if symmetry < 1 else Reliability.MEDIUM if symmetry < 2 else Reliability.LOW
            )

            results.append(DoublePattern(
                pattern_type=pattern_type,
                name=display_name(pattern_type),
                description=DESCRIPTIONS[pattern_type],
                points=DoublePoints(first=first, middle=middle, second=second),
                lines={"neckline": TrendLine(slope=0.0, intercept=middle.value)},
                target=target,
                completion=completion,
                completion_status=status,
                direction=SignalDirection.BEARISH if top else SignalDirection.BULLISH,
                pattern_height=pattern_height,
                reliability=reliability,
            ))

            i += 3

        return results

    # ---------- Converging boundaries (triangles, wedges) ----------
    def _split(self, window: Sequence[SwingPoint]) -> tuple[list[SwingPoint], list[SwingPoint]]:
        highs = [s for s in window if s.kind == SwingKind.HIGH]
        lows = [s for s in window if s.kind == SwingKind.LOW]
        return highs, lows

    def _converging_fit(self, window: Sequence[SwingPoint]) -> Optional[dict]:
        """
        Fit resistance through the window highs and support through its lows,
        and check the lines meet ahead of the window within the apex limits.
        """
        highs, lows = self._split(window)
        if len(highs) < 2 or len(lows) < 2:
            return None

        resistance = trendlines.fit(highs)
        support = trendlines.fit(lows)
        resistance_fit = trendlines.fit_quality(highs, resistance)
        support_fit = trendlines.fit_quality(lows, support)
        if resistance_fit < self.config.triangle_min_r2 or support_fit < self.config.triangle_min_r2:
            return None

        apex = trendlines.intersect(resistance, support)
        if apex is None or apex.index > self.config.max_apex_ratio * self.n:
            return None

        start = window[0].index
        width = apex.index - start
        if width <= 0:
            return None
        progress = (self.latest_index - start) / width
        if progress < self.config.min_progress or progress > self.config.max_progress:
            return None

        widest = resistance.value_at(start) - support.value_at(start)
        if not all_finite(resistance.slope, resistance.intercept, support.slope, support.intercept, widest):
            return None

        return {
            "highs": highs,
            "lows": lows,
            "resistance": resistance,
            "support": support,
            "apex": apex,
            "progress": progress,
            "widest": widest,
            "reliability": _fit_reliability(resistance_fit, support_fit),
        }

    def _scan_windows(self, build, min_remaining: int) -> list:
        results = []
        start = 0
        size = self.config.pattern_window_swings
        while start < len(self.swings) - min_remaining:
            window = self.swings[start:start + size]
            candidate = build(window)
            if candidate is None:
                start += 1
                continue
            results.append(candidate)
            # Resume after the consumed window
            start += len(window)
        return results

    # ---------- Triangles ----------
    def _detect_triangles(self) -> list[TrianglePattern]:
        if not self._has_enough_data(5):
            return []
        return self._scan_windows(self._build_triangle, 4)

    def _classify_triangle(self, resistance: TrendLine, support: TrendLine) -> Optional[tuple[PatternType, SignalDirection]]:
        flat = self.config.flat_slope
        r, s = resistance.slope, support.slope
        if abs(r - s) < flat:
            return None
        if r < -flat and s > flat:
            return PatternType.SYMMETRICAL_TRIANGLE, SignalDirection.BILATERAL
        if r < -flat and abs(s) < flat:
            return PatternType.DESCENDING_TRIANGLE, SignalDirection.BEARISH
        if abs(r) < flat and s > flat:
            return PatternType.ASCENDING_TRIANGLE, SignalDirection.BULLISH
        return None

    def _build_triangle(self, window: Sequence[SwingPoint]) -> Optional[TrianglePattern]:
        shape = self._converging_fit(window)
        if shape is None:
            return None

        classified = self._classify_triangle(shape["resistance"], shape["support"])
        if classified is None:
            return None
        pattern_type, direction = classified

        widest = abs(shape["widest"])
        current_resistance = shape["resistance"].value_at(self.latest_index)
        current_support = shape["support"].value_at(self.latest_index)
        up_target = current_resistance + widest
        down_target = current_support - widest
        if not all_finite(up_target, down_target):
            return None

        margin = self.config.triangle_breakout_margin
        price = self.latest_price
        broke_up = price > current_resistance * (1 + margin)
        broke_down = price < current_support * (1 - margin)
        if (broke_up and direction == SignalDirection.BEARISH) or (broke_down and direction == SignalDirection.BULLISH):
            logger.debug(f"Discarded {pattern_type.value} at bar {window[0].index}: broke against its bias")
            return None

        if broke_up:
            completion, status, target = 100, "Confirmed Bullish Breakout", up_target
        elif broke_down:
            completion, status, target = 100, "Confirmed Bearish Breakdown", down_target
        else:
            completion = round(shape["progress"] * 100)
            status = "Developing"
            target = {
                SignalDirection.BULLISH: up_target, SignalDirection.BEARISH: down_target,
            }.get(direction)

        return TrianglePattern(
            pattern_type=pattern_type,
            name=display_name(pattern_type),
            description=DESCRIPTIONS[pattern_type],
            points=ChannelPoints(highs=shape["highs"], lows=shape["lows"], apex=shape["apex"]),
            lines={"resistance": shape["resistance"], "support": shape["support"]},
            target=target,
            up_target=up_target,
            down_target=down_target,
            completion=completion,
            completion_status=status,
            direction=direction,
            pattern_height=widest,
            reliability=shape["reliability"],
        )

    # ---------- Wedges ----------
    def _detect_wedges(self) -> list[WedgePattern]:
        if not self._has_enough_data(4):
            return []
        return self._scan_windows(self._build_wedge, 3)

    def _build_wedge(self, window: Sequence[SwingPoint]) -> Optional[WedgePattern]:
        highs, lows = self._split(window)
        if len(highs) < 2 or len(lows) < 2:
            return None

        # Cheap slope checks before the full fit
        high_slope = trendlines.fit(highs).slope
        low_slope = trendlines.fit(lows).slope
        rising = high_slope > 0 and low_slope > 0
        falling = high_slope < 0 and low_slope < 0
        if not (rising or falling) or abs(high_slope - low_slope) <= self.config.min_slope_divergence:
            return None

        shape = self._converging_fit(window)
        if shape is None or shape["widest"] <= 0:
            return None

        pattern_type = PatternType.RISING_WEDGE if rising else PatternType.FALLING_WEDGE
        bullish = not rising
        widest = shape["widest"]
        current_high = shape["resistance"].value_at(self.latest_index)
        current_low = shape["support"].value_at(self.latest_index)
        up_target = current_high + widest
        down_target = current_low - widest
        if not all_finite(up_target, down_target):
            return None

        margin = self.config.wedge_breakout_margin
        price = self.latest_price
        if bullish and price > current_high * (1 + margin):
            completion, status = 100, "Confirmed Bullish Breakout"
        elif not bullish and price < current_low * (1 - margin):
            completion, status = 100, "Confirmed Bearish Breakdown"
        else:
            completion, status = round(shape["progress"] * 100), "Developing"

        return WedgePattern(
            pattern_type=pattern_type,
            name=display_name(pattern_type),
            description=DESCRIPTIONS[pattern_type],
            points=ChannelPoints(highs=shape["highs"], lows=shape["lows"], apex=shape["apex"]),
            lines={"resistance": shape["resistance"], "support": shape["support"]},
            target=up_target if bullish else down_target,
            up_target=up_target,
            down_target=down_target,
            completion=completion,
            completion_status=status,
            direction=SignalDirection.BULLISH if bullish else SignalDirection.BEARISH,
            pattern_height=widest,
            reliability=shape["reliability"],
        )

    # ---------- Rectangles ----------
    def _detect_rectangles(self) -> list[RectanglePattern]:
        if not self._has_enough_data(4):
            return []
        return self._scan_windows(self._build_rectangle, 3)

    def _prior_trend(self, index: int) -> Optional[SignalDirection]:
        """Direction of the bars leading into `index`, None when there are too few."""
        prior = self.close[max(0, index - self.config.prior_trend_bars):index]
        if len(prior) < 2:
            return None
        return SignalDirection.BULLISH if prior[0] < prior[-1] else SignalDirection.BEARISH

    def _build_rectangle(self, window: Sequence[SwingPoint]) -> Optional[RectanglePattern]:
        highs, lows = self._split(window)
        if len(highs) < 2 or len(lows) < 2:
            return None

        high_values = np.array([p.value for p in highs])
        low_values = np.array([p.value for p in lows])
        avg_high = float(high_values.mean())
        avg_low = float(low_values.mean())
        if avg_high <= 0 or avg_low <= 0:
            return None

        # Flat boundaries: population coefficient of variation
        high_cv = float(high_values.std()) / avg_high
        low_cv = float(low_values.std()) / avg_low
        if high_cv > self.config.rectangle_max_cv or low_cv > self.config.rectangle_max_cv:
            return None

        height = avg_high - avg_low
        if height / avg_low < self.config.rectangle_min_height:
            return None
        if window[-1].index - window[0].index < self.config.rectangle_min_width:
            return None

        direction = self._prior_trend(window[0].index)
        if direction is None:
            return None
        bullish = direction == SignalDirection.BULLISH
        pattern_type = PatternType.BULLISH_RECTANGLE if bullish else PatternType.BEARISH_RECTANGLE

        up_target = avg_high + height
        down_target = avg_low - height
        margin = self.config.rectangle_breakout_margin
        price = self.latest_price
        broke_up = price > avg_high * (1 + margin)
        broke_down = price < avg_low * (1 - margin)
        if (broke_up and not bullish) or (broke_down and bullish):
            logger.debug(f"Discarded {pattern_type.value} at bar {window[0].index}: broke against the prior trend")
            return None

        target = None
        if broke_up:
            completion, status, target = 100, "Confirmed Breakout", up_target
        elif broke_down:
            completion, status, target = 100, "Confirmed Breakdown", down_target
        else:
            completion, status = _completion_state(self._is_last_swing(window[-1]), False, bullish)

        return RectanglePattern(
            pattern_type=pattern_type,
            name=display_name(pattern_type),
            description=DESCRIPTIONS[pattern_type],
            points=ChannelPoints(highs=highs, lows=lows),
            lines={
                "resistance": TrendLine(slope=0.0, intercept=avg_high),
                "support": TrendLine(slope=0.0, intercept=avg_low),
            },
            target=target,
            up_target=up_target,
            down_target=down_target,
            completion=completion,
            completion_status=status,
            direction=direction,
            pattern_height=height,
            reliability=Reliability.HIGH if max(high_cv, low_cv) < 0.01 else Reliability.MEDIUM,
        )

    # ---------- Pennants ----------
    def _detect_pennants(self) -> list[PennantPattern]:
        """Sharp move (mast) followed by a short converging consolidation."""
        results = []
        if not self._has_enough_data(4):
            return results

        mast_bars = self.config.pennant_mast_bars
        window = self.config.pennant_consolidation_bars

        i = mast_bars
        while i < self.n - window:
            candidate = self._build_pennant(i)
            if candidate is None:
                i += 1
                continue
            results.append(candidate)
            i += mast_bars + 1

        return results

    def _build_pennant(self, i: int) -> Optional[PennantPattern]:
        start = i - self.config.pennant_mast_bars
        base = self.close[start]
        if base == 0:
            return None
        percent_change = (self.close[i] - base) / base * 100
        if abs(percent_change) < self.config.pennant_min_move_pct:
            return None
        bullish = percent_change > 0

        consolidation = [s for s in self.swings if i <= s.index < i + self.config.pennant_consolidation_bars]
        highs, lows = self._split(consolidation)
        if len(highs) < 2 or len(lows) < 2:
            return None

        resistance = trendlines.fit(highs)
        support = trendlines.fit(lows)
        # Lines must start apart and meet after the mast
        if resistance.value_at(i) <= support.value_at(i):
            return None
        apex = trendlines.intersect(resistance, support)
        if apex is None or apex.index <= i:
            return None

        mast_height = abs(self.close[i] - base)
        target = self.close[i] + mast_height if bullish else self.close[i] - mast_height

        current_high = resistance.value_at(self.latest_index)
        current_low = support.value_at(self.latest_index)
        if not all_finite(resistance.slope, resistance.intercept, support.slope, support.intercept, target):
            return None

        margin = self.config.wedge_breakout_margin
        price = self.latest_price
        progress = (self.latest_index - i) / (apex.index - i)
        if bullish and price > current_high * (1 + margin):
            completion, status = 100, "Confirmed Bullish Breakout"
        elif not bullish and price < current_low * (1 - margin):
            completion, status = 100, "Confirmed Bearish Breakdown"
        elif progress >= 1:
            # Apex passed without a breakout
            return None
        else:
            completion, status = round(progress * 100), "Developing"

        pattern_type = PatternType.BULLISH_PENNANT if bullish else PatternType.BEARISH_PENNANT
        return PennantPattern(
            pattern_type=pattern_type,
            name=display_name(pattern_type),
            description=DESCRIPTIONS[pattern_type],
            points=PennantPoints(
                mast_start=self._bar(start), mast_end=self._bar(i), highs=highs, lows=lows, apex=apex,
            ),
            lines={"resistance": resistance, "support": support},
            target=float(target),
            completion=completion,
            completion_status=status,
            direction=SignalDirection.BULLISH if bullish else SignalDirection.BEARISH,
            pattern_height=float(mast_height),
            mast_height=float(mast_height),
            reliability=_fit_reliability(
                trendlines.fit_quality(highs, resistance), trendlines.fit_quality(lows, support),
            ),
        )
