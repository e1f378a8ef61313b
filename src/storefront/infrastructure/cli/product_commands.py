"""CLI commands for the Product aggregate."""

from __future__ import annotations

import click

from storefront.application.add_product import AddProductHandler
from storefront.domain.exceptions import DomainException, StoreError
from storefront.infrastructure.bootstrap import product_repository
from storefront.infrastructure.config import get_settings


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 499.00).")
@click.option("--stock", default=0, type=int, show_default=True, help="Opening stock.")
@click.option("--category", default=None, help="Category.")
@click.option("--sku", default=None, help="Stock keeping unit.")
def product_add(
    name: str,
    price: str,
    stock: int,
    category: str | None,
    sku: str | None,
) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(
        product_repo=product_repository(),
        currency=get_settings().currency,
    )

    try:
        product = handler.handle(
            name=name, price=price, stock=stock, category=category, sku=sku
        )
    except (DomainException, StoreError) as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Product {product.id} '{product.name}' added at {product.price} "
        f"with {product.stock} in stock"
    )


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    try:
        products = product_repository().list_all()
    except StoreError as exc:
        raise click.ClickException(str(exc))

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<22} {'Name':<24} {'Category':<16} {'Price':>14} {'Stock':>7}")
    click.echo("-" * 87)
    for p in products:
        click.echo(
            f"{p.id:<22} {p.name:<24} {p.category:<16} {str(p.price):>14} {p.stock:>7}"
        )
