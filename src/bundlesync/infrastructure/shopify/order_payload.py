"""Translate an ``orders/create`` webhook body into a SaleEvent.

Transport concerns (HMAC verification, HTTP framing) belong to whatever
receives the webhook; this module only maps the JSON body.
"""

from __future__ import annotations

from typing import Any

import structlog

from bundlesync.domain.exceptions import ValidationError
from bundlesync.domain.model.sale import LineItem, SaleEvent
from bundlesync.infrastructure.shopify.gid import product_gid

logger = structlog.get_logger(__name__)


def parse_order_webhook(
    payload: dict[str, Any],
    shop: str,
    event_id: str | None = None,
) -> SaleEvent:
    """Build a SaleEvent from an order payload.

    ``event_id`` defaults to the order ID, which is stable across
    redeliveries of the same order.  Line items without a product
    (custom items, deleted products) are skipped, as are line items that
    cannot be read; the rest of the order still goes through.

    Raises ValidationError when the order itself is unusable, or when
    its ``shop_domain`` names a different shop than ``shop``.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Order payload must be a JSON object")
    if "id" not in payload:
        raise ValidationError("Order payload has no 'id'")

    declared_shop = payload.get("shop_domain")
    if shop and declared_shop and declared_shop != shop:
        raise ValidationError(f"Order belongs to shop {declared_shop!r}, not {shop!r}")

    raw_items = payload.get("line_items") or []
    if not isinstance(raw_items, list):
        raise ValidationError("Order 'line_items' must be a list")

    order_id = str(payload["id"])
    line_items: list[LineItem] = []
    for raw in raw_items:
        line = _parse_line_item(order_id, raw)
        if line is not None:
            line_items.append(line)

    return SaleEvent(
        event_id=event_id or order_id,
        shop=shop or declared_shop or "",
        line_items=tuple(line_items),
    )


def _parse_line_item(order_id: str, raw: Any) -> LineItem | None:
    if not isinstance(raw, dict):
        logger.warning("Skipping malformed line item", order_id=order_id, line_item=raw)
        return None

    if raw.get("product_id") is None:
        logger.info(
            "Skipping line item without a product",
            order_id=order_id,
            line_item_id=raw.get("id"),
            title=raw.get("title"),
        )
        return None

    try:
        return LineItem(
            line_item_id=str(raw["id"]) if raw.get("id") is not None else "",
            product_id=product_gid(raw["product_id"]),
            quantity_sold=int(raw.get("quantity", 0)),
            title=raw.get("title"),
        )
    except (KeyError, TypeError, ValueError, ValidationError) as exc:
        logger.warning(
            "Skipping unreadable line item",
            order_id=order_id,
            line_item_id=raw.get("id"),
            product_id=raw.get("product_id"),
            quantity=raw.get("quantity"),
            error=str(exc),
        )
        return None
