"""Command-line interface for shopfast."""

import argparse
import json
import sys

from . import __version__
from .accounts import AccountStore
from .catalog import CatalogStore
from .config import Settings
from .models import money
from .seed import seed_products, seed_users


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    try:
        import uvicorn

        settings = Settings.from_env()

        print("Starting ShopFast API server...")
        print(f"Environment: {settings.environment}")
        print(f"API docs: http://{args.host}:{args.port}/docs")
        print()

        # When reload is enabled, uvicorn requires the app as an import string
        app_target = "shopfast.api:app" if args.reload else None
        if app_target is None:
            from .api import app
            app_target = app

        uvicorn.run(
            app_target,
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level=settings.log_level.lower(),
        )
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_products(args: argparse.Namespace) -> int:
    """List the seed catalog."""
    catalog = CatalogStore(seed_products())
    products = catalog.by_category(args.category) if args.category else catalog.get_all()

    if args.json:
        print(json.dumps([p.to_dict() for p in products], indent=2))
        return 0

    if not products:
        print("No products found.")
        return 0

    print(f"{len(products)} product(s):")
    for p in products:
        print(f"  [{p.id:>2}] {p.name:<24} {p.category:<11} {money(p.price):>10.2f}  stock={p.stock}")
    return 0


def cmd_users(args: argparse.Namespace) -> int:
    """List the seed accounts."""
    users = AccountStore(seed_users()).list()

    if args.json:
        print(json.dumps([u.to_dict() for u in users], indent=2, ensure_ascii=False))
        return 0

    print(f"{len(users)} user(s):")
    for u in users:
        print(f"  [{u.id}] {u.name} <{u.email}> age {u.age}")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="shopfast",
        description="Demo e-commerce REST API over in-memory data",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", "-p", type=int, default=3000, help="Port to bind to (default: 3000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    # products
    products_parser = subparsers.add_parser("products", help="List the seed catalog")
    products_parser.add_argument("--category", "-c", help="Only this category")
    products_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # users
    users_parser = subparsers.add_parser("users", help="List the seed accounts")
    users_parser.add_argument("--json", action="store_true", help="Output as JSON")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "serve": cmd_serve,
        "products": cmd_products,
        "users": cmd_users,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
