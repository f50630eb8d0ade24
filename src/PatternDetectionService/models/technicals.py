from pydantic import BaseModel, ConfigDict, Field
from enum import Enum
from typing import Optional

from models.market_data import SwingPoint
from models.patterns import PatternCandidate, Reliability, SignalDirection, TrendLine


class Timeframe(str, Enum):
    LONG = "long"
    MEDIUM = "medium"
    SHORT = "short"

    @property
    def lookback_days(self) -> int:
        return {"long": 200, "medium": 40, "short": 10}[self.value]


class PatternFamily(str, Enum):
    HEAD_AND_SHOULDERS = "head_and_shoulders"
    DOUBLE = "double"
    TRIANGLE = "triangle"
    RECTANGLE = "rectangle"
    WEDGE = "wedge"
    PENNANT = "pennant"
    HARMONIC = "harmonic"


CLASSIC_FAMILIES = (
    PatternFamily.HEAD_AND_SHOULDERS,
    PatternFamily.DOUBLE,
    PatternFamily.TRIANGLE,
    PatternFamily.RECTANGLE,
    PatternFamily.WEDGE,
    PatternFamily.PENNANT,
)


class DetectionConfig(BaseModel):
    """Tunable detection constants. Frozen so it can key a cache."""

    model_config = ConfigDict(frozen=True)

    # Swing extraction
    swing_window: int = Field(default=2, ge=1)
    short_swing_window: int = Field(default=1, ge=1)

    # Minimum input sizes
    min_classic_points: int = 20
    min_harmonic_swings: int = 5

    # Symmetry tolerances, percent difference against the pair mean
    shoulder_tolerance_pct: float = 10.0
    double_tolerance_pct: float = 3.0

    # Trend line fitting
    triangle_min_r2: float = 0.6
    trendline_min_r2: float = 0.7
    slope_dead_zone: float = 0.05
    flat_slope: float = 0.01
    min_slope_divergence: float = 0.001

    # Converging pattern gating
    pattern_window_swings: int = 10
    max_apex_ratio: float = 1.5
    min_progress: float = 0.3
    max_progress: float = 0.9
    triangle_breakout_margin: float = 0.005
    wedge_breakout_margin: float = 0.01

    # Rectangles
    rectangle_max_cv: float = 0.02
    rectangle_min_height: float = 0.02
    rectangle_min_width: int = 5
    rectangle_breakout_margin: float = 0.01
    prior_trend_bars: int = 10

    # Pennants
    pennant_mast_bars: int = 10
    pennant_min_move_pct: float = 5.0
    pennant_consolidation_bars: int = 10

    # Harmonics
    harmonic_tolerance: float = 0.15

    # Result caps
    classic_cap: int = 5
    harmonic_complete_cap: int = 2
    harmonic_partial_cap: int = 3

    # Support / resistance clustering
    support_resistance_lookback: int = 30
    support_resistance_bin_pct: float = 0.003


# ---------- Supplementary chart analysis ----------

class TrendAnalysis(BaseModel):
    trend: SignalDirection = SignalDirection.NEUTRAL
    strength: int = Field(default=0, ge=0, le=2)
    description: str = "Neutral trend"


class PriceLevel(BaseModel):
    price: float
    strength: int
    pivots: int
    acted_as_both: bool = False
    distance: float
    percent_distance: float
    reliability: Reliability


class SupportResistance(BaseModel):
    support: list[PriceLevel] = []
    resistance: list[PriceLevel] = []


class TrendLineInfo(BaseModel):
    line: TrendLine
    r_squared: float
    touches: list[SwingPoint]
    reliability: Reliability


class TrendLines(BaseModel):
    uptrend: Optional[TrendLineInfo] = None
    downtrend: Optional[TrendLineInfo] = None


class FibonacciLevel(BaseModel):
    ratio: float
    price: float


class FibonacciLevels(BaseModel):
    levels: list[FibonacciLevel]
    highest_price: float
    lowest_price: float
    highest_index: int
    lowest_index: int
    is_uptrend: bool


# ---------- Detection results ----------

class PatternReport(BaseModel):
    timeframe: Timeframe
    classic_patterns: list[PatternCandidate] = []
    harmonic_patterns: list[PatternCandidate] = []
    swings_found: int = 0

    def candidates(self) -> list:
        return [*self.classic_patterns, *self.harmonic_patterns]


class ChartAnalysis(PatternReport):
    trend: TrendAnalysis = TrendAnalysis()
    support_resistance: SupportResistance = SupportResistance()
    trend_lines: TrendLines = TrendLines()
    fibonacci: Optional[FibonacciLevels] = None


# ---------- API ----------

class PatternDetectionRequest(BaseModel):
    ticker: str
    bars: list[dict]  # {date, close|value, high?, low?, volume?}
    timeframe: Timeframe = Timeframe.LONG
    pattern_set: list[PatternFamily] = Field(default_factory=lambda: list(PatternFamily))
    harmonic_tolerance: Optional[float] = Field(default=None, gt=0, le=1)


class PatternDetectionResponse(BaseModel):
    ticker: str
    timeframe: Timeframe
    classic_patterns: list[PatternCandidate] = []
    harmonic_patterns: list[PatternCandidate] = []
    swings_found: int = 0
    error: Optional[str] = None


class ChartAnalysisResponse(BaseModel):
    ticker: str
    analysis: Optional[ChartAnalysis] = None
    error: Optional[str] = None
