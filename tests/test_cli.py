import pytest
from unittest.mock import AsyncMock, MagicMock

import cli
from payeasy.core.contracts.models import FeeQuote


def test_parse_contract_args():
    assert cli.parse_contract_args(["1000", "true", "[1, 2]", "GACC1", "listing_42"]) == [
        1000,
        True,
        [1, 2],
        "GACC1",
        "listing_42",
    ]


def test_status_parser_flags():
    args = cli.build_parser().parse_args(["status", "rec_1", "--wait", "--timeout", "30"])

    assert args.command == "status"
    assert args.history_id == "rec_1"
    assert args.wait is True
    assert args.timeout == 30.0


def test_log_format_flag():
    parser = cli.build_parser()

    assert parser.parse_args(["--log-format", "json", "status", "rec_1"]).log_format == "json"
    assert parser.parse_args(["status", "rec_1"]).log_format is None
    with pytest.raises(SystemExit):
        parser.parse_args(["--log-format", "xml", "status", "rec_1"])


@pytest.mark.asyncio
async def test_cli_quote_prints_breakdown(monkeypatch, capsys):
    orchestrator = MagicMock()
    orchestrator.quote = AsyncMock(
        return_value=FeeQuote(base_fee=100, resource_fee=1000, buffer=0, total_fee=1100, network="testnet")
    )
    monkeypatch.setattr(cli, "get_contract_orchestrator", lambda: orchestrator)

    await cli.cli_quote("GACC1", "CCON1", "deposit", ["1000"], "testnet")

    request = orchestrator.quote.await_args.args[0]
    assert request.args == (1000,)
    assert '"totalFee": 1100' in capsys.readouterr().out
