# src/btcperf/adapters/providers/coingecko.py
"""
CoinGecko API Provider for BTC Prices

This module implements the CoinGecko client for the two endpoints the engine
uses: ``/simple/price`` (current price in several currencies at once) and
``/coins/{id}/history`` (price on a given day). Caching and throttling live in
the application layer; this client only talks HTTP and reports failures.

Files that USE this module:
- btcperf.app (wires CoinGeckoProvider into the pipeline)
- tests.test_providers (unit tests)

Files that this module USES:
- btcperf.adapters.providers.base (PriceProvider interface)
- btcperf.config (settings for API configuration)
- btcperf.shared.parsing (format_api_date)
"""
import logging
from datetime import date
from typing import Any, Dict, Iterable, Optional

import requests

from btcperf.adapters.providers.base import PriceProvider
from btcperf.config import settings
from btcperf.domain.errors import UpstreamError
from btcperf.shared.parsing import format_api_date

log = logging.getLogger(__name__)


class CoinGeckoProvider(PriceProvider):
    """Thin HTTP client for the public CoinGecko API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        coin_id: Optional[str] = None,
        currencies: Optional[Iterable[str]] = None,
        timeout: Optional[int] = None,
        session: Optional[Any] = None,
    ):
        """
        Initialize CoinGecko API provider.

        Args:
            base_url: Optional custom API root (defaults to settings.coingecko_base_url)
            coin_id: CoinGecko coin id (defaults to "bitcoin")
            currencies: Currencies requested from the current-price endpoint
            timeout: Optional HTTP timeout in seconds (defaults to settings.http_timeout_seconds)
            session: Optional object with a requests-compatible ``get``; defaults to the requests module
        """
        self.base_url = (base_url or settings.coingecko_base_url).rstrip("/")
        self.coin_id = coin_id or settings.coingecko_coin_id
        self.currencies = [c.lower() for c in (currencies or settings.CURRENCIES)]
        if not self.currencies:
            raise ValueError("At least one currency is required for current prices")
        self.timeout = timeout or settings.http_timeout_seconds
        self._http = session or requests

    @property
    def current_price_url(self) -> str:
        return (
            f"{self.base_url}/simple/price?ids={self.coin_id}"
            f"&vs_currencies={','.join(self.currencies)}"
        )

    def history_url(self, day: date) -> str:
        return f"{self.base_url}/coins/{self.coin_id}/history?date={format_api_date(day)}"

    def _get_json(self, url: str, what: str) -> Any:
        """
        GET ``url`` and decode JSON, translating every failure into UpstreamError.

        Raises:
            UpstreamError: On timeout, transport error, non-2xx status or invalid JSON
        """
        try:
            resp = self._http.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout:
            log.warning("CoinGecko %s timeout after %d seconds", what, self.timeout)
            raise UpstreamError(f"CoinGecko {what} timeout after {self.timeout}s")
        except requests.exceptions.RequestException as e:
            log.warning("CoinGecko %s request failed (network error): %s", what, e)
            raise UpstreamError(f"CoinGecko {what} network error: {e}") from e

        status = getattr(resp, "status_code", 200)
        if status == 429:
            log.warning("CoinGecko rate limited (429) for %s", what)
            raise UpstreamError(f"CoinGecko {what}: HTTP 429 Too Many Requests", status_code=429)
        if status >= 400:
            log.error("CoinGecko %s HTTP error %d", what, status)
            raise UpstreamError(f"CoinGecko {what} request failed: HTTP {status}", status_code=status)

        try:
            return resp.json()
        except ValueError as e:
            log.error("CoinGecko %s returned invalid JSON: %s", what, e)
            raise UpstreamError(f"CoinGecko {what} returned invalid JSON: {e}", status_code=status)

    def fetch_current_prices(self) -> Dict[str, float]:
        """
        Get current BTC prices for all configured currencies in one call.

        Returns:
            Dict mapping lower-case currency code to price

        Raises:
            UpstreamError: If the request fails or the payload is malformed
        """
        data = self._get_json(self.current_price_url, "current prices")
        # Expect: {"bitcoin": {"eur": 90000, "usd": 97000, ...}}
        try:
            node = data[self.coin_id]
            prices = {str(k).lower(): float(v) for k, v in node.items()}
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            log.error("CoinGecko unexpected current price schema: %s", data)
            raise UpstreamError(f"CoinGecko current price schema error: {e}") from e
        if not prices:
            raise UpstreamError("CoinGecko returned no current prices")
        log.info("CoinGecko current prices: %s", prices)
        return prices

    def fetch_historical_price(self, day: date, currency: str) -> float:
        """
        Get the BTC price in ``currency`` on ``day``.

        Returns:
            Price as float

        Raises:
            UpstreamError: If the request fails or the currency is missing from the payload
        """
        currency = (currency or "").lower()
        data = self._get_json(self.history_url(day), f"historical price {day} {currency}")
        # Expect: {"market_data": {"current_price": {"eur": 60000, ...}}}
        try:
            price = float(data["market_data"]["current_price"][currency])
        except (KeyError, TypeError, ValueError) as e:
            log.error("CoinGecko history payload has no %s price for %s", currency, day)
            raise UpstreamError(f"CoinGecko has no {currency} price for {day}") from e
        log.info("CoinGecko historical price: %s %s = %s", day, currency, price)
        return price
