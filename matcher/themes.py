from typing import List, NamedTuple, Tuple

from models import Trend


class ThemeCluster(NamedTuple):
    name: str
    keywords: Tuple[str, ...]
    phrase: str


# Plain substring membership on lower-cased text, so "ai" also matches inside "said".
THEME_CLUSTERS: Tuple[ThemeCluster, ...] = (
    ThemeCluster(
        "technology",
        ("ai", "artificial intelligence", "chatgpt", "machine learning"),
        "artificial intelligence, AI technology, automation, tech innovation, digital transformation",
    ),
    ThemeCluster(
        "taxation",
        ("budget", "tax", "income tax", "fiscal"),
        "taxation, financial planning, income tax, savings, money management, personal finance",
    ),
    ThemeCluster(
        "employment",
        ("job", "layoff", "career", "employment"),
        "careers, employment, job market, professional growth, work opportunities",
    ),
    ThemeCluster(
        "markets",
        ("stock", "market", "investment", "trading"),
        "investing, stock market, wealth building, financial markets, trading",
    ),
    ThemeCluster(
        "real_estate",
        ("real estate", "property", "housing", "home"),
        "real estate, property investment, housing market, home ownership",
    ),
)


def matched_themes(trend: Trend, clusters: Tuple[ThemeCluster, ...] = THEME_CLUSTERS) -> List[ThemeCluster]:
    combined = f"{trend.title} {trend.summary}".lower()
    return [c for c in clusters if any(k in combined for k in c.keywords)]


def enrich_query(trend: Trend, clusters: Tuple[ThemeCluster, ...] = THEME_CLUSTERS) -> str:
    """The trend summary, widened with the vocabulary of every matching theme cluster."""
    themes = matched_themes(trend, clusters)
    if not themes:
        return trend.summary
    return f"{trend.summary}. Related themes: {', '.join(c.phrase for c in themes)}"
