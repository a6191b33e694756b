"""Unit tests for the command-line entry point."""

import pytest

from pricefeed.main import parse_config

ENV_VARS = [
    "NETWORK", "PAIR", "PRIMARY_SOURCE", "PRIMARY_ADDRESS", "SECONDARY_SOURCE",
    "SECONDARY_ADDRESS", "SECONDARY_URL", "POLL_PERIOD", "PRIMARY_TIMEOUT",
    "SECONDARY_FROZEN_TIMEOUT", "SECONDARY_BROKEN_TIMEOUT",
    "MAX_DEVIATION_PERCENT", "MAX_DIFFERENCE_PERCENT", "FETCH_TIMEOUT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestParseConfig:
    """Test CLI parsing and validation."""

    def test_defaults(self) -> None:
        """Reference thresholds apply when nothing is set."""
        config, verbose = parse_config([])
        assert config.network == "localnet"
        assert config.pair == "eth/usd"
        assert config.primary_source == "chainlink"
        assert config.secondary_source == "band"
        assert config.poll_period == 60
        assert config.primary_timeout == 14400
        assert config.secondary_frozen_timeout == 14400
        assert config.secondary_broken_timeout == 28800
        assert config.max_deviation_percent == 50.0
        assert config.max_difference_percent == 5.0
        assert not verbose

    def test_flags(self) -> None:
        """CLI flags populate the config."""
        config, verbose = parse_config([
            "--pair", "btc/usd",
            "--secondary", "band-rest",
            "--primary-address", "0xF4030086522a5bEEa4988F8cA5B36dbC97BeE88c",
            "--poll-period", "15",
            "--max-difference", "2.5",
            "-v",
        ])
        assert config.pair == "btc/usd"
        assert config.secondary_source == "band-rest"
        assert config.primary_address == "0xF4030086522a5bEEa4988F8cA5B36dbC97BeE88c"
        assert config.poll_period == 15
        assert config.max_difference_percent == 2.5
        assert verbose

    def test_env_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment variables provide defaults."""
        monkeypatch.setenv("PAIR", "btc/usd")
        monkeypatch.setenv("PRIMARY_TIMEOUT", "3600")
        config, _ = parse_config([])
        assert config.pair == "btc/usd"
        assert config.primary_timeout == 3600

    def test_cli_overrides_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """CLI args take precedence over env vars."""
        monkeypatch.setenv("POLL_PERIOD", "30")
        config, _ = parse_config(["--poll-period", "5"])
        assert config.poll_period == 5

    @pytest.mark.parametrize(
        "argv",
        [
            ["--poll-period", "0"],
            ["--primary-timeout", "0"],
            ["--secondary-frozen-timeout", "100", "--secondary-broken-timeout", "50"],
            ["--max-deviation", "0"],
            ["--primary", "pyth"],
            ["--secondary", "chainlink"],
        ],
    )
    def test_invalid_arguments(self, argv: list[str]) -> None:
        """Invalid combinations exit with a usage error."""
        with pytest.raises(SystemExit):
            parse_config(argv)
