"""
News search tools used to ground market insights with citable sources.
"""

from duckduckgo_search import DDGS
from typing import Dict, List, Sequence
import logging

logger = logging.getLogger(__name__)


def search_news(query: str, max_results: int = 5) -> List[Dict[str, str]]:
    """
    Search for recent news using DuckDuckGo.

    Args:
        query: Search query (e.g., "BTC crypto news", "SM Investments stock")
        max_results: Maximum number of news results to return

    Returns:
        List of dicts with 'title', 'url', 'source' and 'date'
    """
    logger.info(f"Searching news for query: {query}")
    results = DDGS().news(query, max_results=max_results) or []

    return [
        {
            'title': result.get('title', 'Source'),
            'url': result.get('url', '#'),
            'source': result.get('source', 'Unknown'),
            'date': result.get('date', 'Recent'),
        }
        for result in results
    ]


def search_portfolio_news(symbols: Sequence[str], max_results_per_symbol: int = 2) -> List[Dict[str, str]]:
    """
    Gather headlines for each symbol, skipping symbols whose search fails.

    Args:
        symbols: Symbols to search for
        max_results_per_symbol: Results requested per symbol

    Returns:
        Combined list of news dicts, de-duplicated by URL
    """
    seen = set()
    combined: List[Dict[str, str]] = []

    for symbol in symbols:
        try:
            items = search_news(f"{symbol} market news", max_results=max_results_per_symbol)
        except Exception as e:
            logger.warning(f"News search failed for {symbol}: {e}")
            continue

        for item in items:
            if item['url'] in seen:
                continue
            seen.add(item['url'])
            combined.append(item)

    return combined
