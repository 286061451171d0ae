"""
Price Cache Tests - Current-price TTL and Permanent Historical Entries
"""
from datetime import date

from btcperf.application.price_cache import PriceCache


class TestCurrentPrices:
    def test_valid_immediately_then_expires(self, clock):
        cache = PriceCache(current_ttl=15 * 60, clock=clock)
        cache.set_current({"eur": 90000.0, "usd": 97000.0})

        assert cache.is_current_valid()
        assert cache.get_current() == {"eur": 90000.0, "usd": 97000.0}

        clock.advance(15 * 60 - 1)
        assert cache.is_current_valid()

        clock.advance(1)
        assert not cache.is_current_valid()
        assert cache.get_current() is None

    def test_empty_cache_is_miss(self, clock):
        cache = PriceCache(current_ttl=60, clock=clock)
        assert not cache.is_current_valid()
        assert cache.get_current() is None

    def test_set_current_overwrites_without_merge(self, clock):
        cache = PriceCache(current_ttl=60, clock=clock)
        cache.set_current({"eur": 1.0, "usd": 2.0})
        cache.set_current({"CHF": 3.0})
        assert cache.get_current() == {"chf": 3.0}

    def test_returned_prices_are_a_copy(self, clock):
        cache = PriceCache(current_ttl=60, clock=clock)
        cache.set_current({"eur": 1.0})
        cache.get_current()["eur"] = 999.0
        assert cache.get_current() == {"eur": 1.0}


class TestHistoricalPrices:
    def test_never_expires(self, clock):
        cache = PriceCache(current_ttl=60, clock=clock)
        cache.set_historical(date(2024, 11, 24), "EUR", 60000.0)

        clock.advance(10 * 365 * 24 * 3600)

        assert cache.get_historical(date(2024, 11, 24), "EUR") == 60000.0

    def test_currency_key_is_case_insensitive(self, clock):
        cache = PriceCache(clock=clock)
        cache.set_historical(date(2024, 11, 24), "EUR", 60000.0)
        assert cache.get_historical(date(2024, 11, 24), "eur") == 60000.0
        assert cache.has_historical(date(2024, 11, 24), "Eur")

    def test_miss_for_other_date_or_currency(self, clock):
        cache = PriceCache(clock=clock)
        cache.set_historical(date(2024, 11, 24), "eur", 60000.0)
        assert cache.get_historical(date(2024, 11, 25), "eur") is None
        assert cache.get_historical(date(2024, 11, 24), "usd") is None

    def test_rewrite_with_same_value_is_idempotent(self, clock):
        cache = PriceCache(clock=clock)
        cache.set_historical(date(2024, 1, 1), "usd", 42000.0)
        cache.set_historical(date(2024, 1, 1), "usd", 42000.0)
        assert cache.stats()["historical_entries"] == 1


class TestDiagnostics:
    def test_stats_and_clear(self, clock):
        cache = PriceCache(current_ttl=900, clock=clock)
        cache.set_current({"eur": 1.0})
        cache.set_historical(date(2024, 1, 1), "eur", 2.0)
        clock.advance(100)

        stats = cache.stats()
        assert stats["current_valid"] is True
        assert stats["current_age_seconds"] == 100
        assert stats["current_expires_in_seconds"] == 800
        assert stats["historical_entries"] == 1

        cache.clear()
        assert cache.get_current() is None
        assert cache.stats()["historical_entries"] == 0
