"""Pydantic schemas for stock research endpoints."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


ANALYSIS_KIND = "quote_heuristic"
ANALYSIS_VERSION = 1


# ============================================================================
# Enums
# ============================================================================


class Decision(str, Enum):
    """Recommendation decision."""

    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"


class Trend(str, Enum):
    """Direction of the last session's price move."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    SIDEWAYS = "sideways"


class Sentiment(str, Enum):
    """Sentiment derived from price action."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


# ============================================================================
# Analysis document
# ============================================================================


class CompanyOverview(BaseModel):
    name: str
    description: str
    sector: str = "N/A"
    industry: str = "N/A"
    market_cap: str = "N/A"


class MarketStatus(BaseModel):
    current_price: Decimal
    change: Decimal
    change_percent: Decimal
    trend: Trend
    volume: int | None = None
    last_updated: str


class Recommendation(BaseModel):
    decision: Decision
    confidence: str
    score: int
    reasons: list[str] = Field(default_factory=list)


class YearPerformance(BaseModel):
    percent_change: float
    year_ago_price: float
    current_price: float
    high: float
    low: float
    volatility_note: str


class GrowthForecast(BaseModel):
    short_term: str
    long_term: str
    confidence: str


class RiskScore(BaseModel):
    score: int = Field(..., ge=1, le=10)
    level: str
    factors: list[str] = Field(default_factory=list)


class InvestorFit(BaseModel):
    investor_type: str
    suitability: str
    reason: str


class NewsSentiment(BaseModel):
    sentiment: Sentiment
    summary: str
    note: str


class StockAnalysis(BaseModel):
    """Heuristic analysis of one quote.

    Tagged with ``kind`` and ``version`` so stored snapshots (watchlist
    entries, cache) can be validated and migrated when the shape changes.
    """

    kind: Literal["quote_heuristic"] = ANALYSIS_KIND
    version: Literal[1] = ANALYSIS_VERSION
    symbol: str
    company_overview: CompanyOverview
    market_status: MarketStatus
    recommendation: Recommendation
    year_performance: YearPerformance
    growth_forecast: GrowthForecast
    risk: RiskScore
    investor_fit: list[InvestorFit]
    news_sentiment: NewsSentiment
    generated_at: datetime


# ============================================================================
# Request / response schemas
# ============================================================================


class AnalyzeRequest(BaseModel):
    """Request schema for analyzing a stock."""

    symbol: str = Field(..., min_length=1, max_length=20, description="Stock symbol")


class CompareRequest(BaseModel):
    """Request schema for comparing two stocks."""

    symbol1: str = Field(..., min_length=1, max_length=20)
    symbol2: str = Field(..., min_length=1, max_length=20)


class PerformanceComparison(BaseModel):
    winner: str
    difference: float


class RiskComparison(BaseModel):
    lower_risk: str
    score_difference: int


class RecommendationComparison(BaseModel):
    stronger: str


class Comparison(BaseModel):
    performance: PerformanceComparison
    risk: RiskComparison
    recommendation: RecommendationComparison


class CompareResponse(BaseModel):
    """Two analyses side by side."""

    stock1: StockAnalysis
    stock2: StockAnalysis
    comparison: Comparison


class TrendingItem(BaseModel):
    """Quick signal for a popular symbol."""

    symbol: str
    name: str
    price: Decimal
    change_percent: Decimal
    trend: Trend
    recommendation: Decision
    risk_score: int


class ScreenerItem(BaseModel):
    """One row of the stock screener."""

    symbol: str
    name: str
    price: Decimal
    change: Decimal
    change_percent: Decimal
    volume: int | None = None
    market_cap: Decimal | None = None
    technical_rating: str
