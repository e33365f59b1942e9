#!/usr/bin/env python3
"""
Command-line interface for the storefront builder.

Usage:
    uv run python cli.py [command] [options]

Commands:
    stores      List stores
    products    Show a store's product list (search, filter, sort)
    storefront  Show a public storefront page
    test        Run the test suite
    serve       Start the API server

Examples:
    uv run python cli.py stores
    uv run python cli.py products store-001 --visibility visible --sort price
    uv run python cli.py storefront mode-abidjan --product prod-001
    uv run python cli.py serve --reload
"""

import argparse
import logging
import subprocess
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from shop.catalog import CatalogQuery, ProductCatalogView, SortDirection, VisibilityFilter
from shop.config import LOG_DATE_FORMAT, LOG_FORMAT, get_settings
from shop.data_store import DataStore
from shop.storefront import StorefrontPage, excerpt, storefront_path


def _data_store(data_dir: Optional[str]) -> DataStore:
    return DataStore(data_dir=Path(data_dir) if data_dir else get_settings().data_dir)


def run_stores(data_dir: Optional[str]) -> None:
    """List every store."""
    for store in _data_store(data_dir).list_stores():
        print(f"{store.id:<12} {store.slug:<20} {store.type:<9} {len(store.products):>3} products  {store.name}")


def run_products(
    data_dir: Optional[str],
    store_id: str,
    search: str,
    visibility: str,
    sort: str,
    direction: str,
) -> None:
    """Print the dashboard product list of a store."""
    try:
        query = CatalogQuery(
            search_term=search,
            visibility=VisibilityFilter(visibility),
            sort_field=sort,
            sort_direction=SortDirection(direction),
        )
    except ValidationError:
        print(f"Unknown sort field: {sort}")
        sys.exit(1)
    view = ProductCatalogView.for_store(_data_store(data_dir), store_id, query=query)
    if view is None:
        print(f"Unknown store: {store_id}")
        sys.exit(1)

    print(f"Products ({view.count})")
    print("-" * 70)
    for product in view.products:
        status = "published" if product.is_visible else "hidden"
        stock = "digital" if product.is_digital else f"stock {product.in_stock}"
        print(f"{product.id:<10} {product.name:<30} {product.price:>10,.0f}  {status:<9} {stock}")
    if not view.products:
        if view.is_filtered:
            print("No product matches these filters.")
        else:
            print("No products yet.")


def run_storefront(data_dir: Optional[str], store_ref: str, product_id: Optional[str]) -> None:
    """Print a storefront page, optionally with a product detail open."""
    data_store = _data_store(data_dir)
    store = data_store.resolve_store(store_ref)
    if store is None:
        print(f"Store not found: {store_ref}")
        sys.exit(1)

    page = StorefrontPage(store, url=storefront_path(store, product_id))
    print(f"{store.name} - \"{store.slogan}\"")
    print(f"{len(store.products)} products, {store.visit_count} visits")
    print("=" * 70)
    for product in page.products:
        flag = "  (out of stock)" if product.is_out_of_stock else ""
        print(f"{product.name:<30} {product.price:>10,.0f}{flag}")
        print(f"    {excerpt(product.description)}")

    if page.is_detail_open:
        selected = page.selected_product
        print("-" * 70)
        print(f"{selected.name}: {selected.price:,.0f}")
        print(selected.description)
        print(f"Images: {len(page.images)}  Tags: {', '.join(selected.tags) or '-'}")


def run_tests(args: list[str]) -> None:
    """Run the test suite."""
    cmd = ["uv", "run", "pytest"] + args
    subprocess.run(cmd)


def run_server(host: str, port: int, reload: bool) -> None:
    """Start the API server."""
    cmd = ["uv", "run", "uvicorn", "api.main:app", f"--host={host}", f"--port={port}"]
    if reload:
        cmd.append("--reload")

    print(f"Starting server at http://{host}:{port}")
    print(f"API docs available at http://{host}:{port}/docs")
    subprocess.run(cmd)


def main() -> None:
    """Main CLI entry point."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    parser = argparse.ArgumentParser(
        description="Storefront Builder CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s stores
  %(prog)s products store-001 --search wax
  %(prog)s products store-001 --visibility hidden --sort name --direction asc
  %(prog)s storefront mode-abidjan --product prod-001
  %(prog)s test -v
  %(prog)s serve --reload
        """,
    )
    parser.add_argument("--data-dir", default=None, help="Directory containing stores.json")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("stores", help="List stores")

    products_parser = subparsers.add_parser("products", help="Show a store's product list")
    products_parser.add_argument("store_id", help="Store ID")
    products_parser.add_argument("--search", default="", help="Search name, description and tags")
    products_parser.add_argument(
        "--visibility",
        choices=[v.value for v in VisibilityFilter],
        default=VisibilityFilter.ANY.value,
    )
    products_parser.add_argument("--sort", default="created_at", help="Product field to sort by")
    products_parser.add_argument(
        "--direction",
        choices=[d.value for d in SortDirection],
        default=SortDirection.DESC.value,
    )

    storefront_parser = subparsers.add_parser("storefront", help="Show a public storefront")
    storefront_parser.add_argument("store_ref", help="Store ID or slug")
    storefront_parser.add_argument("--product", default=None, help="Product to open")

    # Test command
    test_parser = subparsers.add_parser("test", help="Run the test suite")
    test_parser.add_argument(
        "pytest_args",
        nargs="*",
        default=[],
        help="Arguments to pass to pytest",
    )

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default=settings.host, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=settings.port, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args()

    if args.command == "stores":
        run_stores(args.data_dir)
    elif args.command == "products":
        run_products(args.data_dir, args.store_id, args.search, args.visibility, args.sort, args.direction)
    elif args.command == "storefront":
        run_storefront(args.data_dir, args.store_ref, args.product)
    elif args.command == "test":
        run_tests(args.pytest_args)
    elif args.command == "serve":
        run_server(args.host, args.port, args.reload)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
