"""Analysis service - heuristic stock "analysis" from a single quote.

Everything here is a deterministic lookup on the session's percent change.
There is no model and no signal beyond the quote; the strings are
presentation only.
"""

from datetime import datetime
from decimal import Decimal

from stockfolio.database import utcnow
from stockfolio.schemas.stock import (
    CompanyOverview,
    Comparison,
    Decision,
    GrowthForecast,
    InvestorFit,
    MarketStatus,
    NewsSentiment,
    PerformanceComparison,
    Recommendation,
    RecommendationComparison,
    RiskComparison,
    RiskScore,
    Sentiment,
    StockAnalysis,
    Trend,
    YearPerformance,
)
from stockfolio.services.quotes import Quote


def generate_recommendation(change_percent: float) -> Recommendation:
    """Map percent change to a BUY/HOLD/SELL decision.

    > 5%: BUY/High, > 2%: BUY/Moderate, < -5%: SELL/High,
    < -2%: SELL/Moderate, otherwise HOLD/Moderate.
    """
    if change_percent > 5:
        return Recommendation(
            decision=Decision.BUY,
            confidence="High",
            score=3,
            reasons=["Strong positive momentum", "Price trending upward"],
        )
    if change_percent > 2:
        return Recommendation(
            decision=Decision.BUY,
            confidence="Moderate",
            score=2,
            reasons=["Positive price movement"],
        )
    if change_percent < -5:
        return Recommendation(
            decision=Decision.SELL,
            confidence="High",
            score=-3,
            reasons=["Significant price decline", "Negative momentum"],
        )
    if change_percent < -2:
        return Recommendation(
            decision=Decision.SELL,
            confidence="Moderate",
            score=-2,
            reasons=["Downward price trend"],
        )
    return Recommendation(
        decision=Decision.HOLD,
        confidence="Moderate",
        score=0,
        reasons=["Stable price action", "Wait for clearer signals"],
    )


def calculate_risk_score(change_percent: float) -> RiskScore:
    """Band |percent change| into a risk score of 3, 5, 6 or 8."""
    volatility = abs(change_percent)
    if volatility > 10:
        score = 8
    elif volatility > 5:
        score = 6
    elif volatility > 2:
        score = 5
    else:
        score = 3

    if score <= 3:
        level = "Low Risk"
    elif score <= 6:
        level = "Moderate Risk"
    else:
        level = "High Risk"

    return RiskScore(
        score=score,
        level=level,
        factors=[
            f"Daily volatility: {volatility:.2f}%",
            f"Price momentum: {'Positive' if change_percent > 0 else 'Negative'}",
            "Market conditions: Normal",
        ],
    )


def determine_trend(change_percent: float) -> Trend:
    if change_percent > 0:
        return Trend.BULLISH
    if change_percent < 0:
        return Trend.BEARISH
    return Trend.SIDEWAYS


def technical_rating(change_percent: float) -> str:
    """Screener rating."""
    if change_percent > 3:
        return "Strong Buy"
    if change_percent > 1:
        return "Buy"
    if change_percent < -3:
        return "Sell"
    return "Neutral"


def estimate_year_performance(current_price: float, change_percent: float) -> YearPerformance:
    # Rough extrapolation of one session to a year
    year_change = change_percent * 50
    return YearPerformance(
        percent_change=round(year_change, 2),
        year_ago_price=round(current_price / (1 + year_change / 100), 2)
        if year_change != -100
        else 0.0,
        current_price=round(current_price, 2),
        high=round(current_price * 1.15, 2),
        low=round(current_price * 0.85, 2),
        volatility_note="High volatility" if abs(year_change) > 30 else "Moderate volatility",
    )


def forecast_growth(change_percent: float) -> GrowthForecast:
    if change_percent > 0:
        short_term = "Positive momentum expected to continue in 1-3 months"
    else:
        short_term = "Cautious outlook for the near term"
    if abs(change_percent) < 5:
        long_term = "Stable long-term outlook with moderate growth potential"
    else:
        long_term = "Volatile conditions suggest uncertain long-term prospects"
    return GrowthForecast(
        short_term=short_term,
        long_term=long_term,
        confidence="Moderate" if abs(change_percent) < 3 else "Low",
    )


def assess_investor_fit(change_percent: float) -> list[InvestorFit]:
    volatility = abs(change_percent)
    return [
        InvestorFit(
            investor_type="Short-term Traders",
            suitability="High" if volatility > 3 else "Low",
            reason="Volatility creates trading opportunities"
            if volatility > 3
            else "Low volatility limits short-term gains",
        ),
        InvestorFit(
            investor_type="Long-term Investors",
            suitability="High" if volatility < 5 else "Moderate",
            reason="Stable enough for long-term holding"
            if volatility < 5
            else "Swings require careful monitoring",
        ),
        InvestorFit(
            investor_type="High-risk Takers",
            suitability="High" if volatility > 5 else "Low",
            reason="Extreme volatility suits aggressive strategies"
            if volatility > 5
            else "Not enough movement for aggressive strategies",
        ),
    ]


def analyze_sentiment(change_percent: float) -> NewsSentiment:
    if change_percent > 3:
        sentiment = Sentiment.POSITIVE
        summary = "Strong positive momentum suggests bullish sentiment"
    elif change_percent < -3:
        sentiment = Sentiment.NEGATIVE
        summary = "Negative price action indicates bearish sentiment"
    else:
        sentiment = Sentiment.NEUTRAL
        summary = "Balanced sentiment with no strong directional bias"
    return NewsSentiment(
        sentiment=sentiment,
        summary=summary,
        note="Sentiment based on price action only",
    )


def format_market_cap(market_cap: Decimal | None) -> str:
    if not market_cap:
        return "N/A"
    return f"${market_cap / Decimal(10**9):.2f}B"


def generate_analysis(quote: Quote, now: datetime | None = None) -> StockAnalysis:
    """Build the full analysis document for a quote."""
    change_percent = float(quote.percent_change)
    current_price = quote.close

    return StockAnalysis(
        symbol=quote.symbol.upper(),
        company_overview=CompanyOverview(
            name=quote.name,
            description=f"Stock analysis for {quote.name}",
            market_cap=format_market_cap(quote.market_cap),
        ),
        market_status=MarketStatus(
            current_price=current_price,
            change=quote.change,
            change_percent=quote.percent_change,
            trend=determine_trend(change_percent),
            volume=quote.volume,
            last_updated=quote.datetime or (now or utcnow()).date().isoformat(),
        ),
        recommendation=generate_recommendation(change_percent),
        year_performance=estimate_year_performance(float(current_price), change_percent),
        growth_forecast=forecast_growth(change_percent),
        risk=calculate_risk_score(change_percent),
        investor_fit=assess_investor_fit(change_percent),
        news_sentiment=analyze_sentiment(change_percent),
        generated_at=now or utcnow(),
    )


def compare_analyses(first: StockAnalysis, second: StockAnalysis) -> Comparison:
    """Side-by-side verdicts for two analyses."""
    first_change = first.year_performance.percent_change
    second_change = second.year_performance.percent_change

    first_decision = first.recommendation.decision
    second_decision = second.recommendation.decision
    if first_decision == Decision.BUY and second_decision != Decision.BUY:
        stronger = first.symbol
    elif second_decision == Decision.BUY and first_decision != Decision.BUY:
        stronger = second.symbol
    else:
        stronger = "Equal"

    return Comparison(
        performance=PerformanceComparison(
            winner=first.symbol if first_change > second_change else second.symbol,
            difference=round(abs(first_change - second_change), 2),
        ),
        risk=RiskComparison(
            lower_risk=first.symbol if first.risk.score < second.risk.score else second.symbol,
            score_difference=abs(first.risk.score - second.risk.score),
        ),
        recommendation=RecommendationComparison(stronger=stronger),
    )
