"""Unit tests for classic chart pattern detection."""

import pytest

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import series_from_values, zigzag_values
from models.patterns import PatternType, Reliability, SignalDirection
from models.technicals import DetectionConfig, PatternFamily
from services.pattern_detector import PatternDetector
from services.swing_detector import find_swings


def _detect(series, *families):
    detector = PatternDetector(series, find_swings(series))
    return detector.detect_patterns(list(families) or None)


def _of_type(patterns, pattern_type):
    return [p for p in patterns if p.pattern_type == pattern_type]


# Near-flat highs over lows rising one point per bar
ASCENDING = [100, 120, 80, 120.02, 88, 120.04, 96, 120.06]


class TestHeadAndShoulders:
    """Test head-and-shoulders and its inverse."""

    def test_textbook_head_and_shoulders(self, head_and_shoulders_series):
        """Exactly one candidate with target = neckline at right shoulder - height."""
        found = _of_type(
            _detect(head_and_shoulders_series, PatternFamily.HEAD_AND_SHOULDERS),
            PatternType.HEAD_AND_SHOULDERS,
        )
        assert len(found) == 1
        hs = found[0]

        neck_at_right = hs.lines["neckline"].value_at(hs.points.right_shoulder.index)
        assert hs.pattern_height == pytest.approx(20.0)
        assert abs(hs.target - (neck_at_right - hs.pattern_height)) < 1e-6
        assert hs.target == pytest.approx(80.0)
        assert hs.points.head.value == 120
        assert hs.points.left_shoulder.index < hs.points.head.index < hs.points.right_shoulder.index
        assert hs.direction == SignalDirection.BEARISH

    def test_confirmed_breakdown(self, head_and_shoulders_series):
        """Latest close below the neckline with the right shoulder as last swing."""
        hs = _of_type(_detect(head_and_shoulders_series), PatternType.HEAD_AND_SHOULDERS)[0]
        assert hs.completion == 100
        assert hs.completion_status == "Confirmed Breakdown"
        assert hs.reliability == Reliability.HIGH

    def test_developing_when_more_swings_follow(self):
        """Later swings that stay above the neckline leave the pattern developing."""
        series = series_from_values(zigzag_values([100, 110, 100, 120, 100, 110, 104, 108, 103]))
        hs = _of_type(_detect(series, PatternFamily.HEAD_AND_SHOULDERS), PatternType.HEAD_AND_SHOULDERS)
        assert len(hs) == 1
        assert hs[0].completion == 85
        assert hs[0].completion_status == "Developing"

    def test_inverse_head_and_shoulders(self):
        series = series_from_values(zigzag_values([100, 90, 100, 80, 100, 90, 105]))
        found = _detect(series, PatternFamily.HEAD_AND_SHOULDERS)
        inverse = _of_type(found, PatternType.INVERSE_HEAD_AND_SHOULDERS)
        assert len(inverse) == 1
        assert not _of_type(found, PatternType.HEAD_AND_SHOULDERS)
        assert inverse[0].target == pytest.approx(120.0)
        assert inverse[0].direction == SignalDirection.BULLISH
        assert inverse[0].completion_status == "Confirmed Breakout"

    def test_uneven_shoulders_rejected(self):
        """Shoulders further apart than the tolerance do not form a pattern."""
        series = series_from_values(zigzag_values([100, 110, 100, 130, 100, 125, 95]))
        found = _detect(series, PatternFamily.HEAD_AND_SHOULDERS)
        assert not _of_type(found, PatternType.HEAD_AND_SHOULDERS)

    def test_too_few_points(self):
        """Below the minimum series length nothing is emitted."""
        series = series_from_values(zigzag_values([100, 110, 100, 120, 100, 110, 95], steps=2))
        assert len(series) < 20
        assert _detect(series) == []


class TestDoubleTopBottom:
    """Test double top and double bottom."""

    def test_double_top(self):
        series = series_from_values(zigzag_values([90, 110, 100, 110.5, 95]))
        tops = _of_type(_detect(series, PatternFamily.DOUBLE), PatternType.DOUBLE_TOP)
        assert len(tops) == 1
        top = tops[0]
        assert top.pattern_height == pytest.approx(10.25)
        assert top.target == pytest.approx(89.75)
        assert top.lines["neckline"].slope == 0.0
        assert top.lines["neckline"].intercept == 100
        assert top.completion == 100
        assert top.completion_status == "Confirmed Breakdown"
        assert top.reliability == Reliability.HIGH

    def test_double_bottom_awaiting(self):
        series = series_from_values(zigzag_values([110, 90, 100, 90.5, 98]))
        bottoms = _of_type(_detect(series, PatternFamily.DOUBLE), PatternType.DOUBLE_BOTTOM)
        assert len(bottoms) == 1
        assert bottoms[0].direction == SignalDirection.BULLISH
        assert bottoms[0].completion == 95
        assert bottoms[0].completion_status == "Awaiting Breakout"

    def test_extremes_too_far_apart(self):
        series = series_from_values(zigzag_values([90, 110, 100, 120, 95]))
        assert not _of_type(_detect(series, PatternFamily.DOUBLE), PatternType.DOUBLE_TOP)


class TestTriangles:
    """Test converging trend-line patterns."""

    def test_symmetrical_triangle(self):
        series = series_from_values(
            zigzag_values([100, 120, 80, 116, 84, 112, 88, 108, 92, 100], steps=4)
        )
        triangles = _detect(series, PatternFamily.TRIANGLE)
        assert len(triangles) == 1
        tri = triangles[0]
        assert tri.pattern_type == PatternType.SYMMETRICAL_TRIANGLE
        assert tri.direction == SignalDirection.BILATERAL
        assert tri.target is None
        assert tri.points.apex.index == pytest.approx(46.0)
        assert tri.up_target == pytest.approx(146.0)
        assert tri.down_target == pytest.approx(52.0)
        assert tri.completion == 76
        assert tri.completion_status == "Developing"

    def test_apex_beyond_limit_rejected(self):
        """Lines meeting at bar 86 of a 37-bar series exceed the 1.5x apex limit."""
        series = series_from_values(
            zigzag_values([100, 120, 80, 118, 82, 116, 84, 114, 86, 100], steps=4)
        )
        swings = find_swings(series)
        assert PatternDetector(series, swings).detect_patterns([PatternFamily.TRIANGLE]) == []

        relaxed = PatternDetector(series, swings, DetectionConfig(max_apex_ratio=1000))
        triangles = relaxed.detect_patterns([PatternFamily.TRIANGLE])
        assert len(triangles) == 1
        assert triangles[0].pattern_type == PatternType.SYMMETRICAL_TRIANGLE
        assert triangles[0].points.apex.index == pytest.approx(86.0)
        assert triangles[0].completion == 39

    def test_ascending_triangle(self):
        series = series_from_values(zigzag_values(ASCENDING + [110], steps=4))
        triangles = _detect(series, PatternFamily.TRIANGLE)
        assert len(triangles) == 1
        tri = triangles[0]
        assert tri.pattern_type == PatternType.ASCENDING_TRIANGLE
        assert tri.direction == SignalDirection.BULLISH
        assert tri.completion_status == "Developing"
        assert tri.target == pytest.approx(tri.up_target)

    def test_ascending_triangle_breaking_down_is_dropped(self):
        """A close below rising support does not confirm a bullish triangle."""
        series = series_from_values(zigzag_values(ASCENDING + [90], steps=4))
        assert _detect(series, PatternFamily.TRIANGLE) == []

    def test_flat_channel_is_not_a_triangle(self):
        series = series_from_values(zigzag_values([90, 110, 100, 110, 100, 110, 100, 105]))
        assert _detect(series, PatternFamily.TRIANGLE) == []


class TestWedges:
    """Test rising and falling wedges."""

    def test_rising_wedge(self):
        series = series_from_values(
            zigzag_values([105, 110, 100, 114, 107, 118, 114, 122, 121, 125], steps=4)
        )
        wedges = _detect(series, PatternFamily.WEDGE)
        assert len(wedges) == 1
        wedge = wedges[0]
        assert wedge.pattern_type == PatternType.RISING_WEDGE
        assert wedge.direction == SignalDirection.BEARISH
        assert wedge.points.apex.index == pytest.approx(40.0)
        assert wedge.pattern_height == pytest.approx(13.5)
        assert wedge.target == pytest.approx(111.0)
        assert wedge.completion == 89

    def test_wedge_is_not_a_triangle(self):
        series = series_from_values(
            zigzag_values([105, 110, 100, 114, 107, 118, 114, 122, 121, 125], steps=4)
        )
        assert _detect(series, PatternFamily.TRIANGLE) == []


class TestRectangles:
    """Test flat-boundary consolidation."""

    def test_bullish_rectangle(self):
        series = series_from_values(zigzag_values([90, 110, 100, 110, 100, 110, 100, 105]))
        rectangles = _detect(series, PatternFamily.RECTANGLE)
        assert len(rectangles) == 1
        rect = rectangles[0]
        assert rect.pattern_type == PatternType.BULLISH_RECTANGLE
        assert rect.pattern_height == pytest.approx(10.0)
        assert rect.up_target == pytest.approx(120.0)
        assert rect.down_target == pytest.approx(90.0)
        assert rect.target is None
        assert rect.completion == 95
        assert rect.completion_status == "Awaiting Breakout"

    def test_bearish_rectangle_breakdown(self):
        series = series_from_values(zigzag_values([120, 110, 100, 110, 100, 110, 100, 95]))
        rect = _detect(series, PatternFamily.RECTANGLE)[0]
        assert rect.pattern_type == PatternType.BEARISH_RECTANGLE
        assert rect.completion == 100
        assert rect.target == pytest.approx(90.0)

    def test_bullish_rectangle_breaking_down_is_not_confirmed(self):
        """The rising lead-in rectangle is dropped; only the later bearish window confirms."""
        series = series_from_values(zigzag_values([90, 110, 100, 110, 100, 110, 100, 95]))
        rectangles = _detect(series, PatternFamily.RECTANGLE)
        assert [r.pattern_type for r in rectangles] == [PatternType.BEARISH_RECTANGLE]
        rect = rectangles[0]
        assert rect.direction == SignalDirection.BEARISH
        assert rect.completion == 100
        assert rect.completion_status == "Confirmed Breakdown"
        assert rect.target == pytest.approx(90.0)


class TestPennants:
    """Test mast plus consolidation."""

    def test_bullish_pennant(self):
        mast = [100 + 2 * i for i in range(11)]
        consolidation = [117, 114, 116.5, 119, 117, 115, 116.5, 118, 117, 116, 117]
        series = series_from_values(mast + consolidation)
        pennants = _detect(series, PatternFamily.PENNANT)
        assert len(pennants) == 1
        pennant = pennants[0]
        assert pennant.pattern_type == PatternType.BULLISH_PENNANT
        assert pennant.mast_height == pytest.approx(20.0)
        assert pennant.target == pytest.approx(140.0)
        assert pennant.points.mast_start.index == 0
        assert pennant.points.mast_end.index == 10
        assert pennant.points.apex.index == pytest.approx(23.0)
        assert pennant.completion == 85

    def test_no_mast_no_pennant(self):
        series = series_from_values(zigzag_values([100, 101, 100, 101, 100, 101, 100]))
        assert _detect(series, PatternFamily.PENNANT) == []


class TestDetectorDispatch:
    """Test family selection."""

    def test_empty_family_list_runs_nothing(self, head_and_shoulders_series):
        detector = PatternDetector(head_and_shoulders_series, find_swings(head_and_shoulders_series))
        assert detector.detect_patterns([]) == []

    def test_family_error_is_isolated(self, head_and_shoulders_series, monkeypatch):
        """A failing family is logged and skipped."""
        detector = PatternDetector(head_and_shoulders_series, find_swings(head_and_shoulders_series))

        def boom():
            raise RuntimeError("boom")

        monkeypatch.setattr(detector, "_detect_double_family", boom)
        found = detector.detect_patterns([PatternFamily.DOUBLE, PatternFamily.HEAD_AND_SHOULDERS])
        assert _of_type(found, PatternType.HEAD_AND_SHOULDERS)
