"""
Harmonic (X-A-B-C-D) pattern detection.

Leg ratios are compared against Fibonacci templates within an absolute
tolerance. Complete quintuples are emitted at 100% completion; the newest
swings at the series tail also produce developing candidates at 40% (X-A),
60% (X-A-B) and 80% (X-A-B-C) with projected prices for the next point.
"""

import logging
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from models.market_data import SwingKind, SwingPoint
from models.patterns import (
    HarmonicPattern, HarmonicPoints, HarmonicProjection, PatternType, RatioSet, Reliability,
    SignalDirection,
)
from models.technicals import DetectionConfig
from utils.numeric import all_finite, close_to_ratio

logger = logging.getLogger(__name__)


class HarmonicTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    pattern_type: PatternType
    name: str
    ab_xa: float
    bc_ab: float
    cd_bc: float
    xd_xa: float
    # Accepted (BC/AB, CD/BC) pairs besides the primary legs
    alternate_legs: tuple[tuple[float, float], ...] = ()
    description: str

    def leg_pairs(self) -> tuple[tuple[float, float], ...]:
        return ((self.bc_ab, self.cd_bc), *self.alternate_legs)

    def expected_ratios(self, bc_ab: Optional[float] = None, cd_bc: Optional[float] = None) -> RatioSet:
        return RatioSet(
            ab_xa=self.ab_xa,
            bc_ab=self.bc_ab if bc_ab is None else bc_ab,
            cd_bc=self.cd_bc if cd_bc is None else cd_bc,
            xd_xa=self.xd_xa,
        )


HARMONIC_TEMPLATES = (
    HarmonicTemplate(
        pattern_type=PatternType.GARTLEY,
        name="Gartley",
        ab_xa=0.618, bc_ab=0.382, cd_bc=1.272, xd_xa=0.786,
        alternate_legs=((0.886, 1.618),),
        description=(
            "The Gartley pattern, first identified by H.M. Gartley, is a harmonic reversal pattern "
            "using the Fibonacci sequence to identify potential reversal points."
        ),
    ),
    HarmonicTemplate(
        pattern_type=PatternType.BUTTERFLY,
        name="Butterfly",
        ab_xa=0.786, bc_ab=0.382, cd_bc=1.618, xd_xa=1.27,
        alternate_legs=((0.886, 2.618),),
        description=(
            "The Butterfly pattern involves a 1.27 or 1.618 extension of the XA leg, creating a larger "
            "reversal pattern than the Gartley."
        ),
    ),
    HarmonicTemplate(
        pattern_type=PatternType.BAT,
        name="Bat",
        ab_xa=0.5, bc_ab=0.382, cd_bc=1.618, xd_xa=0.886,
        alternate_legs=((0.886, 2.618),),
        description=(
            "The Bat pattern is characterized by its 0.886 XD/XA ratio, forming a moderately deep "
            "retracement pattern."
        ),
    ),
    HarmonicTemplate(
        pattern_type=PatternType.CRAB,
        name="Crab",
        ab_xa=0.382, bc_ab=0.382, cd_bc=2.24, xd_xa=1.618,
        alternate_legs=((0.886, 3.618),),
        description=(
            "The Crab pattern is known for its extreme 1.618 XD/XA retracement, often creating powerful "
            "reversal opportunities."
        ),
    ),
)


def _leg(a: SwingPoint, b: SwingPoint) -> float:
    return abs(b.value - a.value)


def _project(origin: SwingPoint, distance: float) -> float:
    """Price `distance` away from `origin`, moving against the origin's swing kind."""
    return origin.value - distance if origin.kind == SwingKind.HIGH else origin.value + distance


def _alternates(points: Sequence[SwingPoint]) -> bool:
    return all(a.kind != b.kind for a, b in zip(points, points[1:]))


def _direction(a: SwingPoint) -> SignalDirection:
    return SignalDirection.BEARISH if a.kind == SwingKind.HIGH else SignalDirection.BULLISH


class HarmonicDetector:
    """Matches swing sequences against harmonic ratio templates."""

    def __init__(
        self,
        swings: Sequence[SwingPoint],
        config: Optional[DetectionConfig] = None,
        templates: Sequence[HarmonicTemplate] = HARMONIC_TEMPLATES,
    ):
        self.swings = list(swings)
        self.config = config or DetectionConfig()
        self.templates = tuple(templates)
        self.tolerance = self.config.harmonic_tolerance

    def detect_patterns(self) -> list[HarmonicPattern]:
        """Complete matches in chronological order, then developing candidates from the tail."""
        if len(self.swings) < self.config.min_harmonic_swings:
            return []

        complete = self._scan_complete()
        developing = self._scan_developing()
        logger.debug(f"harmonic: {len(complete)} complete, {len(developing)} developing")
        return complete + developing

    def _matching_legs(self, template: HarmonicTemplate, bc_ab: float, cd_bc: float) -> Optional[tuple[float, float]]:
        for bc, cd in template.leg_pairs():
            if close_to_ratio(bc_ab, bc, self.tolerance) and close_to_ratio(cd_bc, cd, self.tolerance):
                return bc, cd
        return None

    # ---------- Complete X-A-B-C-D ----------
    def _scan_complete(self) -> list[HarmonicPattern]:
        results = []
        for i in range(len(self.swings) - 4):
            x, a, b, c, d = self.swings[i:i + 5]
            if not _alternates((x, a, b, c, d)):
                continue

            xa, ab, bc, cd = _leg(x, a), _leg(a, b), _leg(b, c), _leg(c, d)
            if 0 in (xa, ab, bc):
                continue
            # XD/XA is the retracement of XA measured from A
            ratios = RatioSet(ab_xa=ab / xa, bc_ab=bc / ab, cd_bc=cd / bc, xd_xa=_leg(a, d) / xa)
            if not all_finite(ratios.ab_xa, ratios.bc_ab, ratios.cd_bc, ratios.xd_xa):
                logger.debug(f"Discarded harmonic at swing {i}: non-finite ratios")
                continue

            for template in self.templates:
                if not (
                    close_to_ratio(ratios.ab_xa, template.ab_xa, self.tolerance)
                    and close_to_ratio(ratios.xd_xa, template.xd_xa, self.tolerance)
                ):
                    continue
                legs = self._matching_legs(template, ratios.bc_ab, ratios.cd_bc)
                if legs is None:
                    continue

                results.append(HarmonicPattern(
                    pattern_type=template.pattern_type,
                    name=template.name,
                    description=template.description,
                    direction=_direction(a),
                    completion=100,
                    completion_status="Complete pattern",
                    points=HarmonicPoints(x=x, a=a, b=b, c=c, d=d),
                    ratios=ratios,
                    expected_ratios=template.expected_ratios(*legs),
                    matching_templates=[template.name],
                    pattern_height=xa,
                    reliability=Reliability.HIGH,
                ))
        return results

    # ---------- Developing patterns at the tail ----------
    def _scan_developing(self) -> list[HarmonicPattern]:
        results = []
        last = len(self.swings) - 1

        for i in range(len(self.swings) - 2, -1, -1):
            x, a = self.swings[i], self.swings[i + 1]
            if x.kind == a.kind:
                continue
            xa = _leg(x, a)
            if xa == 0:
                continue
            direction = _direction(a)

            if i + 1 >= last:
                results.append(self._potential(x, a, xa, direction))
                continue

            b = self.swings[i + 2]
            if a.kind == b.kind:
                continue
            ab = _leg(a, b)
            if ab == 0:
                continue
            ab_xa = ab / xa
            ab_matches = [t for t in self.templates if close_to_ratio(ab_xa, t.ab_xa, self.tolerance)]

            if ab_matches and i + 2 >= last:
                results.append(self._developing(x, a, b, ab, ab_xa, ab_matches, direction))
                continue

            if i + 3 > last:
                continue
            c = self.swings[i + 3]
            if b.kind == c.kind:
                continue
            bc = _leg(b, c)
            bc_ab = bc / ab
            abc_matches = []
            for template in ab_matches:
                for bc_leg, cd_leg in template.leg_pairs():
                    if close_to_ratio(bc_ab, bc_leg, self.tolerance):
                        abc_matches.append((template, bc_leg, cd_leg))
                        break

            if abc_matches and i + 3 >= last:
                candidate = self._potential_d(x, a, b, c, bc, ab_xa, bc_ab, abc_matches, direction)
                if candidate is not None:
                    results.append(candidate)

        return results

    def _potential(self, x: SwingPoint, a: SwingPoint, xa: float, direction: SignalDirection) -> HarmonicPattern:
        projections = [
            HarmonicProjection(leg="B", template=t.name, ratio=t.ab_xa, value=_project(a, xa * t.ab_xa))
            for t in self.templates
        ]
        return HarmonicPattern(
            pattern_type=PatternType.DEVELOPING_HARMONIC,
            name="Potential Harmonic",
            description=(
                "Early stage potential harmonic pattern. X-A points established, "
                "watching for point B formation."
            ),
            direction=direction,
            completion=40,
            completion_status="X-A formed (40% complete)",
            points=HarmonicPoints(x=x, a=a),
            projections=projections,
            matching_templates=[t.name for t in self.templates],
            pattern_height=xa,
            reliability=Reliability.LOW,
        )

    def _developing(
        self,
        x: SwingPoint,
        a: SwingPoint,
        b: SwingPoint,
        ab: float,
        ab_xa: float,
        matches: list[HarmonicTemplate],
        direction: SignalDirection,
    ) -> HarmonicPattern:
        projections = [
            HarmonicProjection(leg="C", template=t.name, ratio=t.bc_ab, value=_project(b, ab * t.bc_ab))
            for t in matches
        ]
        return HarmonicPattern(
            pattern_type=PatternType.DEVELOPING_HARMONIC,
            name="Developing Harmonic",
            description=(
                "A developing harmonic pattern with proper X-A-B ratios. "
                "Requires further price action to confirm."
            ),
            direction=direction,
            completion=60,
            completion_status="X-A-B formed (60% complete)",
            points=HarmonicPoints(x=x, a=a, b=b),
            ratios=RatioSet(ab_xa=ab_xa),
            expected_ratios=RatioSet(ab_xa=matches[0].ab_xa),
            projections=projections,
            matching_templates=[t.name for t in matches],
            pattern_height=_leg(x, a),
            reliability=Reliability.LOW,
        )

    def _potential_d(
        self,
        x: SwingPoint,
        a: SwingPoint,
        b: SwingPoint,
        c: SwingPoint,
        bc: float,
        ab_xa: float,
        bc_ab: float,
        matches: list[tuple[HarmonicTemplate, float, float]],
        direction: SignalDirection,
    ) -> Optional[HarmonicPattern]:
        projections = [
            HarmonicProjection(leg="D", template=t.name, ratio=cd_leg, value=_project(c, bc * cd_leg))
            for t, _, cd_leg in matches
        ]
        if not all_finite(*(p.value for p in projections)):
            return None

        lead, bc_leg, cd_leg = matches[0]
        return HarmonicPattern(
            pattern_type=PatternType.DEVELOPING_HARMONIC,
            name=f"Potential {lead.name}",
            description=lead.description,
            direction=direction,
            completion=80,
            completion_status="X-A-B-C formed (80% complete)",
            points=HarmonicPoints(x=x, a=a, b=b, c=c),
            ratios=RatioSet(ab_xa=ab_xa, bc_ab=bc_ab),
            expected_ratios=lead.expected_ratios(bc_leg, cd_leg),
            projections=projections,
            matching_templates=[t.name for t, _, _ in matches],
            target=projections[0].value,
            pattern_height=_leg(x, a),
            reliability=Reliability.MEDIUM,
        )
