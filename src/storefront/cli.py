"""Command-line interface for storefront."""

import argparse
import json
import logging
import sys
from pathlib import Path

from . import __version__
from .errors import StorefrontError, ValidationError
from .models import SHIPPING_METHODS, CartLine
from .pricing import calculate_totals, subtotal_of
from .service import Storefront
from .settings import DEFAULT_ADMIN_TOKEN, Settings
from .utils import format_quote

log = logging.getLogger("storefront.cli")


def _load_cart(path: str) -> list[CartLine]:
    """Read a cart file: a JSON list of items, or an object with an "items" list."""
    try:
        with open(Path(path), "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ValidationError(f"Cannot read cart file {path}: {e.strerror}")
    except json.JSONDecodeError as e:
        raise ValidationError(f"Cart file {path} is not valid JSON: {e.msg}")

    items = data.get("items", []) if isinstance(data, dict) else data
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        raise ValidationError("Cart file must contain a list of items")
    return [CartLine.from_dict(i) for i in items]


def cmd_quote(args: argparse.Namespace) -> int:
    """Price a cart file against the default catalog and settings."""
    try:
        if args.points < 0:
            raise ValidationError("--points must not be negative")
        store = Storefront.create_default(Settings.from_env())
        lines = _load_cart(args.cart)
        items = store.settlement.price_lines(lines)
        quote = calculate_totals(
            subtotal_of(items),
            args.method,
            store.config_store.snapshot(),
            points_to_redeem=args.points,
            available_points=args.balance,
        )

        if args.json:
            print(json.dumps(quote.to_dict(), indent=2))
        else:
            for item in items:
                print(f"  {item.quantity} x {item.name} @ ${item.price}")
            print()
            print(format_quote(quote))
        return 0

    except StorefrontError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Show the default storefront settings."""
    config = Storefront.create_default().config_store.snapshot()
    if args.json:
        print(json.dumps(config.to_dict(), indent=2))
        return 0

    shipping = config.shipping
    loyalty = config.loyalty
    print(f"Store: {config.store_name}")
    print(f"Free shipping from: ${shipping.free_shipping_threshold}")
    print(f"Flat delivery rate: ${shipping.flat_rate}")
    print(f"Tax rate: {shipping.tax_rate}%")
    print(f"Pickup: {shipping.pickup_location or '-'}")
    print(f"Pay on arrival: {'yes' if shipping.allow_pay_on_arrival else 'no'}")
    if loyalty.enabled:
        print(
            f"Loyalty: {loyalty.points_per_dollar} pts per $1 spent, "
            f"{loyalty.points_to_dollar_rate} pts per $1 discount"
        )
    else:
        print("Loyalty: disabled")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    import uvicorn

    settings = Settings.from_env()
    level = (args.log_level or settings.log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if settings.admin_token == DEFAULT_ADMIN_TOKEN:
        log.warning(
            "STOREFRONT_ADMIN_TOKEN is not set; operator endpoints accept the default token"
        )

    print("Starting storefront API server...")
    print(f"API docs: http://{args.host}:{args.port}/docs")
    print()

    # When reload is enabled, uvicorn requires the app as an import string
    app_target = "storefront.api:app" if args.reload else None
    if app_target is None:
        from .api import app
        app_target = app

    uvicorn.run(
        app_target,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=level.lower(),
    )
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="storefront",
        description="Storefront checkout, orders and loyalty points",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # quote
    quote_parser = subparsers.add_parser("quote", help="Price a cart file")
    quote_parser.add_argument("cart", help="Path to cart JSON file")
    quote_parser.add_argument(
        "--method", "-m", choices=SHIPPING_METHODS, default="delivery",
        help="Shipping method (default: delivery)",
    )
    quote_parser.add_argument(
        "--points", type=int, default=0, help="Points to redeem (default: 0)"
    )
    quote_parser.add_argument(
        "--balance", type=int, default=None,
        help="Customer's points balance (omit to price as a guest)",
    )
    quote_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # config
    config_parser = subparsers.add_parser("config", help="Show default storefront settings")
    config_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", "-p", type=int, default=8000, help="Port to bind to (default: 8000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )
    serve_parser.add_argument(
        "--log-level", help="Logging level (default: STOREFRONT_LOG_LEVEL or INFO)"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "quote": cmd_quote,
        "config": cmd_config,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
