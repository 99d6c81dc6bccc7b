"""Tests for the command line entry point."""

from decimal import Decimal

import pytest
from dependency_injector import providers

from byabroad.config import Config
from byabroad.core.container import Container
from byabroad.errors import NetworkUnavailable
from byabroad.main import build_parser, format_calculations, format_products, run


@pytest.fixture
def container(fake_fetcher):
    container = Container()
    container.app_config.override(providers.Object(Config()))
    container.fetcher.override(providers.Object(fake_fetcher))
    yield container
    container.reset_override()


class TestParser:
    def test_compare_arguments(self):
        args = build_parser().parse_args(
            ["compare", "--price", "19.99", "--currency", "EUR", "--category", "Books", "--weight", "0.5"]
        )

        assert args.command == "compare"
        assert args.price == Decimal("19.99")
        assert args.weight == Decimal("0.5")
        assert args.category == "Books"

    def test_price_must_be_a_number(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["compare", "--price", "cheap"])

    @pytest.mark.parametrize("weight", ["0", "-5", "heavy"])
    def test_weight_must_be_positive(self, weight):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["url", "https://www.zara.com/x.html", "--weight", weight])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestFormatting:
    def test_empty_results(self):
        assert format_calculations([]) == "No forwarder could produce a quote."
        assert format_products([]) == "No products found."

    def test_products(self, sample_products):
        text = format_products([sample_products["cheap_book"]])
        assert "Paperback novel | 10.00 USD" in text


class TestRun:
    @pytest.mark.asyncio
    async def test_compare_prints_ranking_and_tips(self, container, fake_fetcher, capsys):
        args = build_parser().parse_args(
            ["compare", "--price", "999", "--category", "Electronics", "--weight", "1", "--local-price", "6000"]
        )

        assert await run(args, container) == 0

        out = capsys.readouterr().out
        assert out.startswith("1. UShops:")
        assert "Potential savings" in out
        assert "Tips:" in out
        fake_fetcher.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rate_failure_is_reported(self, container, fake_fetcher, capsys):
        fake_fetcher.fetch.side_effect = NetworkUnavailable("offline")
        args = build_parser().parse_args(["compare", "--price", "20", "--currency", "EUR"])

        assert await run(args, container) == 1
        assert "No forwarder could produce a quote." in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_invalid_url_asks_for_manual_entry(self, container, capsys):
        args = build_parser().parse_args(["url", "ftp://example.com/item"])

        assert await run(args, container) == 1
        assert "Enter the product details manually" in capsys.readouterr().out
