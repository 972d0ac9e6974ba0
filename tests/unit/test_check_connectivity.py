"""
Unit tests for the connectivity check script.

Configuration and market construction are patched; the script's exit
codes are asserted for each outcome.
"""

import importlib.util
import os

import pytest

from market_adapter.config import ConfigurationError, KrakenConfig
from market_adapter.exchange.kraken_client import KrakenClient
from market_adapter.exchange.kraken_market import KrakenMarket

from conftest import TEST_API_KEY, TEST_API_SECRET, RecordingTransport


SCRIPT_PATH = os.path.join(
    os.path.dirname(__file__), "..", "..", "scripts", "check_connectivity.py"
)


@pytest.fixture
def script():
    spec = importlib.util.spec_from_file_location("check_connectivity", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def use_config(monkeypatch, script, config: KrakenConfig) -> None:
    monkeypatch.setattr(script.KrakenConfig, "from_environment", classmethod(lambda cls: config))


class TestExitCodes:

    def test_malformed_secret_is_handled(self, monkeypatch, script) -> None:
        use_config(monkeypatch, script, KrakenConfig(api_key="key", api_secret="not base64!!"))

        assert script.main() == 2

    def test_invalid_configuration(self, monkeypatch, script) -> None:
        def invalid(cls):
            raise ConfigurationError("timeout must be positive")

        monkeypatch.setattr(script.KrakenConfig, "from_environment", classmethod(invalid))

        assert script.main() == 2

    def test_public_only_success(self, monkeypatch, script, capsys) -> None:
        transport = RecordingTransport().queue(result={"unixtime": 1700000000})
        use_config(monkeypatch, script, KrakenConfig())
        monkeypatch.setattr(
            script.KrakenMarket, "from_config",
            classmethod(lambda cls, config: KrakenMarket(KrakenClient(transport=transport))),
        )

        assert script.main() == 0
        assert "Server time: 2023-11-14" in capsys.readouterr().out
        assert transport.closed

    def test_balances_printed_with_credentials(self, monkeypatch, script, capsys) -> None:
        transport = RecordingTransport()
        transport.queue(result={"unixtime": 1700000000})
        transport.queue(result={"XXBT": "0.25", "ZUSD": "0"})
        transport.queue(result={"XXBT": {"altname": "XBT"}, "ZUSD": {"altname": "USD"}})
        config = KrakenConfig(api_key=TEST_API_KEY, api_secret=TEST_API_SECRET)
        use_config(monkeypatch, script, config)
        monkeypatch.setattr(
            script.KrakenMarket, "from_config",
            classmethod(lambda cls, cfg: KrakenMarket(
                KrakenClient(TEST_API_KEY, TEST_API_SECRET, transport=transport)
            )),
        )

        assert script.main() == 0
        out = capsys.readouterr().out
        assert "BTC: 0.25" in out
        assert "USD:" not in out

    def test_exchange_failure(self, monkeypatch, script) -> None:
        transport = RecordingTransport().queue(status=503, content=b"")
        use_config(monkeypatch, script, KrakenConfig())
        monkeypatch.setattr(
            script.KrakenMarket, "from_config",
            classmethod(lambda cls, config: KrakenMarket(KrakenClient(transport=transport))),
        )

        assert script.main() == 1
        assert transport.closed
