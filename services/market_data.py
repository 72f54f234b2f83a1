"""
Market data service backed by a text-generation model.
Fetches current prices as lenient JSON and a narrative market insight with
news citations. Every failure degrades to an empty price map or a neutral
insight; nothing is raised to the caller.
Uses tenacity to retry transient transport errors.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import openai
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from config import get_settings
from llm_engine import create_llm_from_settings
from prompts import render_prompt
from services.common import classify_sentiment, extract_json_object, normalize_symbol, to_price
from tools import search_portfolio_news

logger = logging.getLogger(__name__)


TRANSIENT_LLM_ERRORS = (openai.APIConnectionError, openai.RateLimitError)

INSIGHT_TITLE = "Portfolio Intelligence"
ERROR_INSIGHT_TITLE = "Market Insight Error"


@dataclass
class InsightSource:
    """A cited news source."""
    title: str
    uri: str


@dataclass
class MarketInsight:
    """Narrative market commentary with coarse sentiment."""
    title: str
    content: str
    sentiment: str  # "positive", "negative", "neutral"
    sources: List[InsightSource] = field(default_factory=list)

    @classmethod
    def placeholder(cls) -> "MarketInsight":
        return cls(title=INSIGHT_TITLE, content="Add assets to get insights.", sentiment="neutral")

    @classmethod
    def failed(cls) -> "MarketInsight":
        return cls(title=ERROR_INSIGHT_TITLE, content="Failed to fetch real-time market data.", sentiment="neutral")


def _unique_symbols(symbols: Sequence[str]) -> List[str]:
    seen = []
    for symbol in symbols:
        normalized = normalize_symbol(symbol)
        if normalized and normalized not in seen:
            seen.append(normalized)
    return seen


class MarketDataService:
    """
    Service for fetching prices and insights from the LLM.
    The LLM client is created lazily from settings unless one is injected.
    """

    def __init__(
        self,
        llm_client=None,
        news_search: Optional[Callable[[Sequence[str], int], List[Dict[str, str]]]] = None
    ):
        self._llm_client = llm_client
        self._news_search = news_search or search_portfolio_news

    def _get_llm(self):
        if self._llm_client is None:
            self._llm_client = create_llm_from_settings()
        return self._llm_client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(TRANSIENT_LLM_ERRORS),
        reraise=True
    )
    def _ask(self, prompt: str, system_message: Optional[str] = None) -> str:
        """Send one prompt to the model with retry on transient errors."""
        return self._get_llm().invoke(prompt, system_message=system_message)

    def get_asset_prices(self, symbols: Sequence[str], base_currency: Optional[str] = None) -> Dict[str, float]:
        """
        Fetch current prices for a set of symbols.

        Args:
            symbols: Symbols to price
            base_currency: Currency for the returned prices (default: settings.base_currency)

        Returns:
            Mapping symbol -> price; empty on any failure
        """
        symbols = _unique_symbols(symbols)
        if not symbols:
            return {}

        base_currency = base_currency or get_settings().base_currency

        try:
            prompt = render_prompt(
                "price_request.txt",
                symbols=", ".join(symbols),
                base_currency=base_currency
            )
            text = (self._ask(prompt) or "").strip()

            data = extract_json_object(text)
            if data is None:
                logger.warning(f"No price JSON found in model response: {text[:200]}")
                return {}

            prices: Dict[str, float] = {}
            for symbol, raw in data.items():
                price = to_price(raw)
                if price is None:
                    logger.debug(f"Dropping non-numeric price for {symbol}: {raw!r}")
                    continue
                prices[normalize_symbol(symbol)] = price

            logger.info(f"Fetched {len(prices)} prices in {base_currency}")
            return prices

        except Exception as e:
            logger.error(f"Price fetch error: {e}")
            return {}

    def _gather_sources(self, symbols: Sequence[str]) -> List[Dict[str, str]]:
        settings = get_settings()
        try:
            return self._news_search(symbols, settings.news_results_per_symbol) or []
        except Exception as e:
            logger.warning(f"News search failed: {e}")
            return []

    def get_market_insights(self, symbols: Sequence[str], base_currency: Optional[str] = None) -> MarketInsight:
        """
        Fetch a brief market summary with sentiment and cited sources.

        Args:
            symbols: Symbols to cover
            base_currency: Portfolio base currency (default: settings.base_currency)

        Returns:
            MarketInsight; a placeholder when there are no symbols, a neutral
            error insight on failure
        """
        symbols = _unique_symbols(symbols)
        if not symbols:
            return MarketInsight.placeholder()

        settings = get_settings()
        base_currency = base_currency or settings.base_currency

        news = self._gather_sources(symbols)
        if news:
            headlines = "\n".join(
                f"- {item.get('title', 'Source')} ({item.get('source', 'Unknown')}, {item.get('date', 'Recent')})"
                for item in news
            )
        else:
            headlines = "No recent headlines found."

        try:
            prompt = render_prompt(
                "insight_request.txt",
                symbols=", ".join(symbols),
                base_currency=base_currency,
                headlines=headlines
            )
            text = self._ask(prompt) or "No insights available."
        except Exception as e:
            logger.error(f"Insight fetch error: {e}")
            return MarketInsight.failed()

        sources = [
            InsightSource(title=item.get('title') or "Source", uri=item.get('url') or "#")
            for item in news[:settings.max_insight_sources]
        ]

        return MarketInsight(
            title=INSIGHT_TITLE,
            content=text,
            sentiment=classify_sentiment(text),
            sources=sources
        )

    def refresh(self, symbols: Sequence[str], base_currency: Optional[str] = None) -> Tuple[Dict[str, float], MarketInsight]:
        """Fetch prices, then the insight, for the same symbols."""
        prices = self.get_asset_prices(symbols, base_currency)
        insight = self.get_market_insights(symbols, base_currency)
        return prices, insight
