"""Unit tests for harmonic pattern detection."""

import pytest

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import series_from_values, zigzag_values
from models.patterns import PatternType, Reliability, SignalDirection
from models.technicals import DetectionConfig
from services.harmonic_detector import HARMONIC_TEMPLATES, HarmonicDetector
from services.swing_detector import find_swings

C = 38.2 + 0.382 * 61.8
GARTLEY_D = C - 1.272 * (0.382 * 61.8)


class TestTemplates:
    """Test the template table."""

    def test_four_named_templates(self):
        assert [t.name for t in HARMONIC_TEMPLATES] == ["Gartley", "Butterfly", "Bat", "Crab"]

    def test_gartley_ratios(self):
        gartley = HARMONIC_TEMPLATES[0]
        assert (gartley.ab_xa, gartley.bc_ab, gartley.cd_bc, gartley.xd_xa) == (0.618, 0.382, 1.272, 0.786)
        assert (0.886, 1.618) in gartley.leg_pairs()


class TestCompletePatterns:
    """Test X-A-B-C-D matching."""

    def test_gartley_detected(self, gartley_series):
        """The textbook quintuple is tagged Gartley with every ratio in tolerance."""
        detector = HarmonicDetector(find_swings(gartley_series))
        complete = [p for p in detector.detect_patterns() if p.completion == 100]
        assert [p.pattern_type for p in complete] == [PatternType.GARTLEY]

        gartley = complete[0]
        ratios = gartley.ratios
        for actual, expected in (
            (ratios.ab_xa, 0.618), (ratios.bc_ab, 0.382), (ratios.cd_bc, 1.272), (ratios.xd_xa, 0.786),
        ):
            assert abs(actual - expected) <= 0.15
        assert ratios.ab_xa == pytest.approx(0.618)
        assert ratios.cd_bc == pytest.approx(1.272)
        assert gartley.completion_status == "Complete pattern"
        assert gartley.direction == SignalDirection.BEARISH
        assert gartley.points.d.value == pytest.approx(GARTLEY_D)
        assert gartley.reliability == Reliability.HIGH

    def test_tight_tolerance_rejects(self, gartley_series):
        """XD/XA sits about 0.1 from the template, outside a 0.05 tolerance."""
        detector = HarmonicDetector(find_swings(gartley_series), DetectionConfig(harmonic_tolerance=0.05))
        assert not [p for p in detector.detect_patterns() if p.completion == 100]

    def test_serialized_point_keys(self, gartley_series):
        gartley = HarmonicDetector(find_swings(gartley_series)).detect_patterns()[0]
        data = gartley.to_dict()
        assert data["type"] == "gartley"
        assert set(data["points"]) == {"X", "A", "B", "C", "D"}
        assert set(data["ratios"]) == {"AB_XA", "BC_AB", "CD_BC", "XD_XA"}
        assert data["completionStatus"] == "Complete pattern"

    def test_too_few_swings(self):
        series = series_from_values(zigzag_values([10, 0, 100, 38.2, 61.8], steps=4))
        assert HarmonicDetector(find_swings(series)).detect_patterns() == []


class TestDevelopingPatterns:
    """Test partial matches at the series tail."""

    @pytest.fixture
    def xabc_series(self):
        return series_from_values(zigzag_values([50, 60, 0, 100, 38.2, C, 50], steps=4))

    def test_partial_stages(self, xabc_series):
        found = HarmonicDetector(find_swings(xabc_series)).detect_patterns()
        assert [p.completion for p in found] == [40, 60, 80]
        assert all(p.pattern_type == PatternType.DEVELOPING_HARMONIC for p in found)
        statuses = {p.completion: p.completion_status for p in found}
        assert statuses[40] == "X-A formed (40% complete)"
        assert statuses[60] == "X-A-B formed (60% complete)"
        assert statuses[80] == "X-A-B-C formed (80% complete)"

    def test_xabc_projects_d(self, xabc_series):
        found = HarmonicDetector(find_swings(xabc_series)).detect_patterns()
        xabc = next(p for p in found if p.completion == 80)
        assert xabc.name == "Potential Gartley"
        assert xabc.matching_templates == ["Gartley", "Bat"]
        d_targets = {p.template: p.value for p in xabc.projections}
        assert all(p.leg == "D" for p in xabc.projections)
        assert d_targets["Gartley"] == pytest.approx(GARTLEY_D)
        assert xabc.target == pytest.approx(GARTLEY_D)
        assert xabc.points.d is None
        assert xabc.reliability == Reliability.MEDIUM

    def test_xa_projects_b_for_every_template(self, xabc_series):
        found = HarmonicDetector(find_swings(xabc_series)).detect_patterns()
        xa = next(p for p in found if p.completion == 40)
        assert xa.name == "Potential Harmonic"
        assert [p.template for p in xa.projections] == ["Gartley", "Butterfly", "Bat", "Crab"]
        # X = 38.2 (low), A = C (high): B retraces down from A
        gartley_b = xa.projections[0]
        assert gartley_b.value == pytest.approx(C - (C - 38.2) * 0.618)

    def test_xab_projects_c(self, xabc_series):
        found = HarmonicDetector(find_swings(xabc_series)).detect_patterns()
        xab = next(p for p in found if p.completion == 60)
        assert xab.name == "Developing Harmonic"
        assert set(xab.matching_templates) == {"Bat", "Crab"}
        assert all(p.leg == "C" for p in xab.projections)
