"""
Pattern candidate records.

Each pattern family has its own model carrying only the points relevant to it.
`PatternCandidate` is the discriminated union over all families, keyed by the
serialized `type` field.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from models.market_data import BarPoint, SwingPoint


class PatternType(str, Enum):
    HEAD_AND_SHOULDERS = "head_and_shoulders"
    INVERSE_HEAD_AND_SHOULDERS = "inverse_head_and_shoulders"
    DOUBLE_TOP = "double_top"
    DOUBLE_BOTTOM = "double_bottom"
    SYMMETRICAL_TRIANGLE = "symmetrical_triangle"
    ASCENDING_TRIANGLE = "ascending_triangle"
    DESCENDING_TRIANGLE = "descending_triangle"
    BULLISH_RECTANGLE = "bullish_rectangle"
    BEARISH_RECTANGLE = "bearish_rectangle"
    RISING_WEDGE = "rising_wedge"
    FALLING_WEDGE = "falling_wedge"
    BULLISH_PENNANT = "bullish_pennant"
    BEARISH_PENNANT = "bearish_pennant"
    GARTLEY = "gartley"
    BAT = "bat"
    BUTTERFLY = "butterfly"
    CRAB = "crab"
    DEVELOPING_HARMONIC = "developing_harmonic"


class SignalDirection(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    BILATERAL = "bilateral"
    NEUTRAL = "neutral"


class Reliability(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TrendLine(BaseModel):
    """Straight line over bar indices: value(i) = slope * i + intercept."""

    model_config = ConfigDict(frozen=True)

    slope: float
    intercept: float

    def value_at(self, index: float) -> float:
        return self.slope * index + self.intercept


class ProjectedPoint(BaseModel):
    """A projected location such as a triangle apex. May lie past the series end."""

    model_config = ConfigDict(frozen=True)

    index: float
    value: float


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ---------- Point sets ----------

class HeadAndShouldersPoints(_CamelModel):
    left_shoulder: SwingPoint
    head: SwingPoint
    right_shoulder: SwingPoint
    left_neck: SwingPoint
    right_neck: SwingPoint

    def indices(self) -> tuple[int, ...]:
        return (
            self.left_shoulder.index, self.left_neck.index, self.head.index,
            self.right_neck.index, self.right_shoulder.index,
        )


class DoublePoints(_CamelModel):
    first: SwingPoint
    middle: SwingPoint
    second: SwingPoint

    def indices(self) -> tuple[int, ...]:
        return (self.first.index, self.middle.index, self.second.index)


class ChannelPoints(_CamelModel):
    """Boundary touches of a triangle, wedge or rectangle."""

    highs: list[SwingPoint]
    lows: list[SwingPoint]
    apex: Optional[ProjectedPoint] = None

    def indices(self) -> tuple[int, ...]:
        return tuple(sorted(p.index for p in [*self.highs, *self.lows]))


class PennantPoints(_CamelModel):
    mast_start: BarPoint
    mast_end: BarPoint
    highs: list[SwingPoint]
    lows: list[SwingPoint]
    apex: ProjectedPoint

    def indices(self) -> tuple[int, ...]:
        swings = sorted(p.index for p in [*self.highs, *self.lows])
        return (self.mast_start.index, self.mast_end.index, *swings)


class HarmonicPoints(_CamelModel):
    x: SwingPoint = Field(alias="X")
    a: SwingPoint = Field(alias="A")
    b: Optional[SwingPoint] = Field(default=None, alias="B")
    c: Optional[SwingPoint] = Field(default=None, alias="C")
    d: Optional[SwingPoint] = Field(default=None, alias="D")

    def indices(self) -> tuple[int, ...]:
        return tuple(p.index for p in (self.x, self.a, self.b, self.c, self.d) if p is not None)


class RatioSet(_CamelModel):
    """Harmonic leg ratios. Partial patterns leave the later legs unset."""

    ab_xa: float = Field(alias="AB_XA")
    bc_ab: Optional[float] = Field(default=None, alias="BC_AB")
    cd_bc: Optional[float] = Field(default=None, alias="CD_BC")
    xd_xa: Optional[float] = Field(default=None, alias="XD_XA")


class HarmonicProjection(_CamelModel):
    """Projected price for the next harmonic point under one template."""

    leg: Literal["B", "C", "D"]
    template: str
    ratio: float
    value: float


# ---------- Candidates ----------

class PatternBase(_CamelModel):
    name: str
    description: str
    direction: SignalDirection
    completion: int = Field(ge=0, le=100)
    completion_status: str
    target: Optional[float] = None
    up_target: Optional[float] = None
    down_target: Optional[float] = None
    pattern_height: Optional[float] = None
    reliability: Reliability = Reliability.MEDIUM
    lines: dict[str, TrendLine] = {}

    def constituent_indices(self) -> tuple[int, ...]:
        return self.points.indices()

    def latest_index(self) -> int:
        return max(self.constituent_indices())

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class HeadAndShouldersPattern(PatternBase):
    pattern_type: Literal[
        PatternType.HEAD_AND_SHOULDERS, PatternType.INVERSE_HEAD_AND_SHOULDERS,
    ] = Field(alias="type")
    points: HeadAndShouldersPoints


class DoublePattern(PatternBase):
    pattern_type: Literal[PatternType.DOUBLE_TOP, PatternType.DOUBLE_BOTTOM] = Field(alias="type")
    points: DoublePoints


class TrianglePattern(PatternBase):
    pattern_type: Literal[
        PatternType.SYMMETRICAL_TRIANGLE, PatternType.ASCENDING_TRIANGLE, PatternType.DESCENDING_TRIANGLE,
    ] = Field(alias="type")
    points: ChannelPoints


class RectanglePattern(PatternBase):
    pattern_type: Literal[PatternType.BULLISH_RECTANGLE, PatternType.BEARISH_RECTANGLE] = Field(alias="type")
    points: ChannelPoints


class WedgePattern(PatternBase):
    pattern_type: Literal[PatternType.RISING_WEDGE, PatternType.FALLING_WEDGE] = Field(alias="type")
    points: ChannelPoints


class PennantPattern(PatternBase):
    pattern_type: Literal[PatternType.BULLISH_PENNANT, PatternType.BEARISH_PENNANT] = Field(alias="type")
    points: PennantPoints
    mast_height: float


class HarmonicPattern(PatternBase):
    pattern_type: Literal[
        PatternType.GARTLEY, PatternType.BAT, PatternType.BUTTERFLY, PatternType.CRAB,
        PatternType.DEVELOPING_HARMONIC,
    ] = Field(alias="type")
    points: HarmonicPoints
    ratios: Optional[RatioSet] = None
    expected_ratios: Optional[RatioSet] = None
    projections: list[HarmonicProjection] = []
    matching_templates: list[str] = []


PatternCandidate = Annotated[
    Union[
        HeadAndShouldersPattern,
        DoublePattern,
        TrianglePattern,
        RectanglePattern,
        WedgePattern,
        PennantPattern,
        HarmonicPattern,
    ],
    Field(discriminator="pattern_type"),
]

CLASSIC_PATTERN_CLASSES = (
    HeadAndShouldersPattern, DoublePattern, TrianglePattern, RectanglePattern, WedgePattern, PennantPattern,
)
