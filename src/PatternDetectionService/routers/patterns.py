"""Chart pattern detection API endpoints."""

from fastapi import APIRouter, HTTPException
import logging

from config import get_settings
from models.technicals import (
    ChartAnalysisResponse, DetectionConfig,
    PatternDetectionRequest, PatternDetectionResponse,
)
from services.detection import analyze_chart, run_detection, series_from_bars, trim_to_timeframe

router = APIRouter()
logger = logging.getLogger(__name__)


def _request_config(request: PatternDetectionRequest) -> DetectionConfig:
    settings = get_settings()
    if request.harmonic_tolerance is None:
        return settings.detection_config()
    return settings.detection_config(harmonic_tolerance=request.harmonic_tolerance)


@router.post("/detect", response_model=PatternDetectionResponse)
async def detect_patterns(request: PatternDetectionRequest):
    """Detect classic and harmonic chart patterns in price bars."""
    try:
        series = trim_to_timeframe(series_from_bars(request.bars), request.timeframe)
        report = run_detection(series, request.timeframe, request.pattern_set, _request_config(request))
        return PatternDetectionResponse(
            ticker=request.ticker,
            timeframe=report.timeframe,
            classic_patterns=report.classic_patterns,
            harmonic_patterns=report.harmonic_patterns,
            swings_found=report.swings_found,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Pattern detection error for {request.ticker}: {e}")
        return PatternDetectionResponse(ticker=request.ticker, timeframe=request.timeframe, error=str(e))


@router.post("/analyze", response_model=ChartAnalysisResponse)
async def analyze(request: PatternDetectionRequest):
    """Run pattern detection together with trend, level and Fibonacci analysis."""
    try:
        series = trim_to_timeframe(series_from_bars(request.bars), request.timeframe)
        analysis = analyze_chart(series, request.timeframe, request.pattern_set, _request_config(request))
        return ChartAnalysisResponse(ticker=request.ticker, analysis=analysis)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Chart analysis error for {request.ticker}: {e}")
        return ChartAnalysisResponse(ticker=request.ticker, error=str(e))
