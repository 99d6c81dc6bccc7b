"""Command line entry point.

Runs the landed-cost engine from the shell:

    byabroad compare --price 999 --currency USD --category Electronics
    byabroad url https://www.zara.com/us/en/some-jacket-p123.html
    byabroad search "sony headphones"

Configures logging and wires the engine through the DI container.
"""

import argparse
import asyncio
import logging
import sys
from decimal import Decimal, InvalidOperation

from .config import HttpConfig
from .core.container import Container
from .errors import ByAbroadError
from .models import CostCalculation, Product, ProductCategory
from .services.shipping import validate_weight

logger = logging.getLogger(__name__)


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from e


def _weight(value: str) -> Decimal:
    try:
        return validate_weight(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="byabroad", description="Landed cost calculator for imports")
    subparsers = parser.add_subparsers(dest="command", required=True)

    compare = subparsers.add_parser("compare", help="Compare forwarders for a manually entered product")
    compare.add_argument("--name", default="Manual product")
    compare.add_argument("--url", default="")
    compare.add_argument("--price", type=_decimal, required=True)
    compare.add_argument("--currency", default="USD")
    compare.add_argument(
        "--category",
        default=ProductCategory.OTHER.value,
        choices=[c.value for c in ProductCategory],
    )
    compare.add_argument("--weight", type=_weight, default=None, help="Weight in kg")
    compare.add_argument("--origin-tax", type=_decimal, default=None)
    compare.add_argument("--local-price", type=_decimal, default=None, help="Local price to compare against")

    url = subparsers.add_parser("url", help="Extract a product from its URL and compare forwarders")
    url.add_argument("url")
    url.add_argument("--weight", type=_weight, default=None)

    search = subparsers.add_parser("search", help="Search products")
    search.add_argument("query")
    search.add_argument("--engine", default=None)

    return parser


def format_calculations(calculations: list[CostCalculation], local_price: Decimal | None = None) -> str:
    """Render ranked calculations as plain text."""
    if not calculations:
        return "No forwarder could produce a quote."

    lines = []
    for rank, calc in enumerate(calculations, start=1):
        lines.append(
            f"{rank}. {calc.provider_name}: {calc.total_cost:.2f} {calc.destination_currency} "
            f"({calc.total_cost_reference:.2f} {calc.reference_currency})"
        )
        for label, amount, currency in calc.breakdown():
            lines.append(f"     {label:<24} {amount:>12.2f} {currency}")
        if local_price is not None:
            savings = calc.potential_savings(local_price)
            lines.append(f"     {'Potential savings':<24} {savings:>12.2f} {calc.destination_currency}")
    return "\n".join(lines)


def format_products(products: list[Product]) -> str:
    if not products:
        return "No products found."
    return "\n".join(
        f"- {p.name} | {p.price:.2f} {p.currency} | {p.store_name} | {p.category.value}\n  {p.product_url}"
        for p in products
    )


async def run(args: argparse.Namespace, container: Container) -> int:
    """Execute one command; returns the process exit code."""
    fetcher = container.fetcher()
    try:
        if args.command == "compare":
            engine = container.comparison_engine()
            calculations = await engine.compare_manual_entry(
                name=args.name,
                url=args.url,
                price=args.price,
                currency=args.currency,
                weight=args.weight,
                category=ProductCategory(args.category),
                origin_tax=args.origin_tax,
            )
            print(format_calculations(calculations, args.local_price))
            if calculations:
                calculator = container.landed_cost_calculator()
                tips = calculator.savings_tips(calculations[0], container.forwarder_registry().list_active())
                print("\nTips:\n" + "\n".join(f"- {tip}" for tip in tips))
            return 0 if calculations else 1

        if args.command == "url":
            result = await container.extraction_pipeline().parse_url(args.url)
            if result.product is None:
                reason = result.error.description if result.error else result.status.value
                print(f"{result.store_name}: {reason}. Enter the product details manually.")
                return 1
            product = result.product
            print(f"{product.name} - {product.price} {product.currency} ({product.store_name})")
            calculations = await container.comparison_engine().compare_all(product, weight_override=args.weight)
            print(format_calculations(calculations))
            return 0 if calculations else 1

        if args.command == "search":
            products = await container.search_service().search(args.query, args.engine)
            print(format_products(products))
            return 0
    except (ByAbroadError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        await fetcher.close()

    return 2


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, configure logging, and run the command."""
    logging.basicConfig(
        format="%(asctime)s - %(levelname)s - %(message)s",
        level=getattr(logging, HttpConfig().log_level.upper(), logging.INFO),
    )
    args = build_parser().parse_args(argv)
    container = Container()
    return asyncio.run(run(args, container))


if __name__ == "__main__":
    sys.exit(main())
