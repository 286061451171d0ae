"""
Command Line Tests - One Processing Pass from a JSON File
"""
import json
from unittest.mock import patch

import pytest  # Testing framework for writing and running tests

from btcperf.adapters.providers.base import PriceProvider
from btcperf.app import main, parse_args


class StaticProvider(PriceProvider):
    def fetch_current_prices(self):
        return {"eur": 90000.0, "usd": 97000.0}

    def fetch_historical_price(self, day, currency):
        return 60000.0


@pytest.fixture
def positions_file(tmp_path):
    path = tmp_path / "positions.json"
    path.write_text(
        json.dumps(
            [
                {"id": "loan-1", "amount": "EUR 10,000", "interest_rate": "12.5%",
                 "provision_date": "24 Nov 2024", "collateral": "0.25 BTC", "status": "ACTIVE"},
                {"id": "loan-2", "amount": "EUR 5,000", "interest_rate": "9%",
                 "provision_date": "1 Dec 2024", "collateral": "0.1 BTC", "status": "PENDING"},
            ]
        ),
        encoding="utf-8",
    )
    return path


class TestParseArgs:
    def test_defaults(self):
        args = parse_args(["positions.json"])
        assert args.positions == "positions.json"
        assert args.wait is None
        assert args.log_level is None


class TestMain:
    @patch("btcperf.app.setup_logging")
    @patch("btcperf.app.CoinGeckoProvider", StaticProvider)
    def test_successful_pass(self, mock_logging, positions_file, capsys):
        code = main([str(positions_file), "--wait", "0"])

        out = capsys.readouterr().out
        assert code == 0
        assert '"analyzed_count": 1' in out
        assert '"total_positions": 1' in out
        assert '"loan-1"' in out
        assert '"loan-2"' not in out

    @patch("btcperf.app.setup_logging")
    @patch("btcperf.app.CoinGeckoProvider", StaticProvider)
    def test_missing_file(self, mock_logging, tmp_path):
        assert main([str(tmp_path / "missing.json")]) == 2
