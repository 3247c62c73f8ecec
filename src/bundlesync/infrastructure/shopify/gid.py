"""Shopify global ID helpers."""

from __future__ import annotations


def to_gid(resource: str, identifier: str | int) -> str:
    """Return ``gid://shopify/<resource>/<id>``; GIDs pass through unchanged."""
    value = str(identifier)
    if value.startswith("gid://"):
        return value
    return f"gid://shopify/{resource}/{value}"


def product_gid(identifier: str | int) -> str:
    return to_gid("Product", identifier)


def location_gid(identifier: str | int) -> str:
    return to_gid("Location", identifier)
