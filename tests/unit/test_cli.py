"""Tests for the command-line interface."""

import json

import pytest
import structlog

from hotel_identity.cli.resolve_cli import ResolveCLI, create_parser, main


@pytest.fixture(autouse=True)
def reset_logging():
    # main() binds structlog to the captured stderr of the running test
    yield
    structlog.reset_defaults()


class TestParser:
    def test_resolve_arguments(self):
        args = create_parser().parse_args([
            "resolve", "Hotel Nia", "Menlo Park", "--state", "CA",
            "--platform", "google", "--platform", "booking", "--persist",
        ])

        assert args.command == "resolve"
        assert args.platform == ["google", "booking"]
        assert args.persist is True
        assert args.property_id is None

    def test_unknown_platform_rejected(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["resolve", "Hotel Nia", "Menlo Park", "--platform", "kayak"])


class TestMain:
    @pytest.mark.asyncio
    async def test_analyze_prints_verdict(self, capsys):
        code = await main(["analyze", "Andaz West Hollywood", "Marriott West Hollywood"])

        output = json.loads(capsys.readouterr().out)
        assert code == 0
        assert output["is_match"] is False
        assert output["search_brand"] == "andaz"
        assert output["candidate_brand"] == "marriott"

    @pytest.mark.asyncio
    async def test_queries_prints_variants(self, capsys):
        code = await main(["queries", "The Westin Sacramento", "Sacramento", "--state", "CA"])

        output = json.loads(capsys.readouterr().out)
        assert code == 0
        assert output[0] == "westin sacramento hotel Sacramento CA"
        assert len(output) == 3


class TestResolveCLI:
    def test_static_helpers(self):
        assert ResolveCLI.analyze("The Westin Sacramento", "Westin Sacramento Riverfront")["is_match"]
        assert ResolveCLI.queries("hotel nia", "Menlo Park", None) == ["hotel nia Menlo Park"]
