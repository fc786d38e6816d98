import sys

import pytest
from loguru import logger

from b2s_analytics.main import build_parser, main


@pytest.fixture(autouse=True)
def _restore_loguru():
    yield
    # main() reconfigures the global loguru sinks
    logger.remove()
    logger.add(sys.stderr)


def test_parser_defaults():
    args = build_parser().parse_args(["--contract-address", "0xabc"])
    assert args.contract_address == "0xabc"
    assert args.refresh_interval == 30000
    assert args.theme == "dark"
    assert args.show_dashboard is True
    assert args.once is False


def test_parser_flags():
    args = build_parser().parse_args(
        ["--contract-address", "0xabc", "--live", "--no-dashboard", "--theme", "light", "--refresh-interval", "5000"]
    )
    assert args.use_mock is False
    assert args.show_dashboard is False
    assert args.theme == "light"
    assert args.refresh_interval == 5000


def test_invalid_configuration_exits_with_error(capsys):
    assert main(["--contract-address", "0xabc", "--refresh-interval", "0"]) == 2
    assert "Invalid configuration" in capsys.readouterr().out


def test_once_prints_dashboard_with_static_metrics(capsys):
    assert main(["--contract-address", "0xabc", "--mock", "--once"]) == 0
    out = capsys.readouterr().out
    assert "15.2M" in out
    assert "Total Staked" in out
