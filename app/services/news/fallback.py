"""Built-in news feed used when the news provider is unavailable."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Optional

from app.schemas.news import NewsItem

# (headline, summary, source, relevant stocks, category, is_recent)
_FALLBACK_ARTICLES: tuple[tuple[str, str, str, tuple[str, ...], str, bool], ...] = (
    (
        "Indian Markets Hold Steady Despite Global Jitters",
        "Nifty 50 and Sensex trade in a narrow range as investors weigh domestic "
        "fundamentals against overseas cues ahead of the earnings season.",
        "Market News", ("NIFTY50",), "market", True,
    ),
    (
        "Street Awaits RBI Monetary Policy Decision",
        "Analysts are watching for any change to the repo rate and policy stance at "
        "the upcoming RBI meeting. Banking stocks trade mixed.",
        "Economic News", ("HDFCBANK", "ICICIBANK"), "policy", True,
    ),
    (
        "IT Majors Lead Broad Rally",
        "Software exporters gain on steady digital transformation demand and a "
        "favourable currency, with several reporting strong quarterly numbers.",
        "Tech News", ("TCS", "INFY", "WIPRO"), "company", True,
    ),
    (
        "Reliance Industries Posts Strong Quarterly Earnings",
        "The conglomerate beat analyst estimates as retail and telecom segments "
        "continued to grow alongside its core refining business.",
        "Business News", ("RELIANCE",), "company", True,
    ),
    (
        "HDFC Bank Expands Digital Offerings",
        "The private lender adds new fintech partnerships and retail banking "
        "features as it widens its digital footprint.",
        "Banking News", ("HDFCBANK",), "company", True,
    ),
    (
        "Foreign Investor Flows Turn Positive After Volatile Weeks",
        "FIIs recorded net inflows this week, pointing to renewed confidence in "
        "domestic growth prospects.",
        "Investment News", ("NIFTY50",), "market", True,
    ),
    (
        "Adani Group Shares Rebound on Infrastructure Plans",
        "Group companies draw investor interest after announcing large projects in "
        "renewable energy and logistics.",
        "Infrastructure News", ("ADANIGREEN",), "company", True,
    ),
    (
        "Government Unveils New Manufacturing Incentives",
        "Fresh measures target domestic production of electronics, textiles and "
        "automobiles.",
        "Policy News", ("MARUTI", "MAHINDRA"), "policy", True,
    ),
    (
        "Pharma Exporters Gain on Overseas Orders",
        "Drug makers report higher export demand for generics and active "
        "pharmaceutical ingredients.",
        "Pharma News", ("SUNPHARMA", "DRREDDY"), "company", True,
    ),
    (
        "Steel Demand Outlook Stays Upbeat",
        "Infrastructure spending and construction activity keep steel consumption "
        "rising; producers outline capacity additions.",
        "Steel News", ("TATASTEEL", "JSWSTEEL"), "company", True,
    ),
    (
        "Vehicle Sales Point to Auto Recovery",
        "Monthly data shows improving demand across passenger and commercial "
        "vehicle segments.",
        "Auto News", ("MARUTI", "TATAMOTORS"), "company", True,
    ),
    (
        "Clean Energy Investment Hits Record",
        "India draws record funding into renewables as it speeds up progress toward "
        "its clean energy targets.",
        "Energy News", ("ADANIGREEN", "TATAPOWER"), "economy", True,
    ),
    (
        "UPI Volumes Set Fresh Highs",
        "Digital payment adoption keeps accelerating in both urban and rural "
        "markets.",
        "Fintech News", ("PAYTM", "HDFCBANK"), "company", True,
    ),
    (
        "Startups Continue to Attract Venture Capital",
        "Indian startups raise significant funding, with new unicorns emerging "
        "across several sectors.",
        "Startup News", ("NYKAA", "ZOMATO"), "company", False,
    ),
    (
        "Normal Monsoon Forecast Lifts Rural Outlook",
        "A forecast of normal rainfall raises hopes for farm output and a recovery "
        "in rural demand.",
        "Agriculture News", ("ITC", "UBL"), "economy", False,
    ),
)

FALLBACK_SPACING = timedelta(minutes=30)


def get_fallback_news(now: Optional[datetime] = None) -> list[NewsItem]:
    """Fifteen canned articles, newest first, spaced 30 minutes apart."""
    now = now or datetime.now(UTC)
    return [
        NewsItem(
            id=f"fallback-{index}",
            headline=headline,
            summary=summary,
            source=source,
            timestamp=now - FALLBACK_SPACING * index,
            url="#",
            relevant_stocks=list(stocks),
            category=category,
            is_recent=is_recent,
        )
        for index, (headline, summary, source, stocks, category, is_recent) in enumerate(
            _FALLBACK_ARTICLES, start=1
        )
    ]
