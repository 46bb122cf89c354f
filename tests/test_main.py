import logging

import pytest

from solana_pool_tracker import __main__ as cli
from solana_pool_tracker.auto_config.environment import Config
from solana_pool_tracker.auto_config.logging_config import set_log_level
from solana_pool_tracker.pools.liquidity import LiquiditySnapshot
from solana_pool_tracker.pools.pool_keys import derive_pool_identity
from solana_pool_tracker.utils.console_output import ConsoleOutput

from conftest import SOL_MINT, USDC_MINT


@pytest.fixture
def no_logging_setup(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: tmp_path / "run.log")
    monkeypatch.setattr(cli, "set_log_level", lambda level: None)
    monkeypatch.setenv("SOLANA_RPC_URL", "http://localhost:8899")


class TestMain:

    def test_history_without_dates_exits_nonzero(self, no_logging_setup):
        assert cli.main(["--history", "--start", "2024-01-01"]) == 1

    def test_history_with_invalid_dates_exits_nonzero(self, no_logging_setup):
        assert cli.main(["--history", "--start", "yesterday", "--end", "today"]) == 1

    def test_logging_is_configured_before_config_is_read(self, no_logging_setup, monkeypatch):
        calls = []

        def config_factory():
            calls.append("config")
            return Config()

        monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: calls.append("setup_logging"))
        monkeypatch.setattr(cli, "Config", config_factory)
        monkeypatch.setattr(cli, "set_log_level", lambda level: calls.append(("set_log_level", level)))
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        assert cli.main(["--history", "--start", "yesterday", "--end", "today"]) == 1
        assert calls == ["setup_logging", "config", ("set_log_level", logging.DEBUG)]

    def test_no_mode_prints_help(self, capsys):
        assert cli.main([]) == 0
        assert "--history" in capsys.readouterr().out

    def test_parser_aliases(self):
        args = cli.build_parser().parse_args(["--history", "-s", "2024-01-01", "-e", "2024-01-02"])
        assert (args.history, args.start, args.end) == (True, "2024-01-01", "2024-01-02")


class TestConsoleOutput:

    def test_liquidity_table(self):
        identity = derive_pool_identity(SOL_MINT, USDC_MINT)
        table = ConsoleOutput().liquidity_table(identity, LiquiditySnapshot(5000, 7000, 3000, 1))
        assert table.row_count == 4
        assert list(table.columns[1].cells)[:3] == ["5000", "7000", "3000"]

    def test_pool_detected_table(self):
        table = ConsoleOutput().pool_detected_table("sig1", (SOL_MINT, USDC_MINT))
        cells = list(table.columns[1].cells)
        assert cells[1:3] == [SOL_MINT, USDC_MINT]
        assert cells[3] == "https://solscan.io/tx/sig1"


class TestSetLogLevel:

    def test_applies_level_to_every_handler(self):
        target = logging.getLogger("solana_pool_tracker.tests.levels")
        handlers = [logging.NullHandler(), logging.NullHandler()]
        for handler in handlers:
            target.addHandler(handler)
        try:
            set_log_level(logging.WARNING, logger=target)
            assert [handler.level for handler in handlers] == [logging.WARNING, logging.WARNING]
        finally:
            for handler in handlers:
                target.removeHandler(handler)
