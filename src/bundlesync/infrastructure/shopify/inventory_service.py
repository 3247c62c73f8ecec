"""Shopify-backed implementation of InventoryService.

Single-location: every key resolves against the configured location.
"""

from __future__ import annotations

from bundlesync.domain.exceptions import AmbiguousResponseError, InventoryKeyNotFound
from bundlesync.domain.model.inventory import InventoryKey, InventoryLevel
from bundlesync.domain.repository.inventory_service import InventoryService
from bundlesync.infrastructure.shopify.gid import location_gid, product_gid
from bundlesync.infrastructure.shopify.graphql_client import (
    ShopifyGraphQLClient,
    raise_for_user_errors,
)

GET_INVENTORY_ITEM = """
  query GetInventoryItem($productId: ID!) {
    product(id: $productId) {
      id
      title
      variants(first: 1) {
        edges {
          node {
            id
            inventoryItem {
              id
            }
          }
        }
      }
    }
  }
"""

GET_INVENTORY_LEVEL = """
  query GetInventoryLevel($inventoryItemId: ID!, $locationId: ID!) {
    inventoryItem(id: $inventoryItemId) {
      id
      tracked
      inventoryLevel(locationId: $locationId) {
        quantities(names: ["available"]) {
          name
          quantity
        }
      }
    }
  }
"""

ADJUST_INVENTORY = """
  mutation AdjustInventory($inventoryItemId: ID!, $locationId: ID!, $delta: Int!) {
    inventoryAdjustQuantities(
      input: {
        reason: "correction"
        name: "available"
        changes: [
          {
            inventoryItemId: $inventoryItemId
            locationId: $locationId
            delta: $delta
          }
        ]
      }
    ) {
      inventoryAdjustmentGroup {
        reason
        changes {
          name
          delta
          quantityAfterChange
        }
      }
      userErrors {
        field
        message
      }
    }
  }
"""

SET_INVENTORY = """
  mutation SetInventory($inventoryItemId: ID!, $locationId: ID!, $quantity: Int!) {
    inventorySetQuantities(
      input: {
        reason: "correction"
        name: "available"
        ignoreCompareQuantity: true
        quantities: [
          {
            inventoryItemId: $inventoryItemId
            locationId: $locationId
            quantity: $quantity
          }
        ]
      }
    ) {
      inventoryAdjustmentGroup {
        reason
      }
      userErrors {
        field
        message
      }
    }
  }
"""


class ShopifyInventoryService(InventoryService):

    def __init__(self, client: ShopifyGraphQLClient, location_id: str) -> None:
        self._client = client
        self._location_id = location_gid(location_id)

    # --- InventoryService interface -------------------------------------------

    def resolve_inventory_key(self, product_id: str) -> InventoryKey:
        data = self._client.execute(GET_INVENTORY_ITEM, {"productId": product_gid(product_id)})
        product = data.get("product")
        if product is None:
            raise InventoryKeyNotFound(f"Product {product_id} not found")

        edges = (product.get("variants") or {}).get("edges") or []
        node = edges[0].get("node") if edges else None
        item = (node or {}).get("inventoryItem")
        if not item or not item.get("id"):
            raise InventoryKeyNotFound(
                f"No inventory item for {product.get('title') or product_id}"
            )
        return InventoryKey(inventory_item_id=item["id"], location_id=self._location_id)

    def get_level(self, key: InventoryKey) -> InventoryLevel:
        data = self._client.execute(
            GET_INVENTORY_LEVEL,
            {"inventoryItemId": key.inventory_item_id, "locationId": key.location_id},
        )
        item = data.get("inventoryItem")
        if item is None:
            raise InventoryKeyNotFound(f"Inventory item {key.inventory_item_id} not found")
        if not item.get("tracked", True):
            return InventoryLevel(quantity=0, tracked=False)

        level = item.get("inventoryLevel")
        if level is None:
            raise InventoryKeyNotFound(f"Inventory item {key} is not stocked at the location")
        for quantity in level.get("quantities") or []:
            if quantity.get("name") == "available":
                return InventoryLevel(quantity=int(quantity["quantity"]))
        raise InventoryKeyNotFound(f"No available quantity reported for {key}")

    def apply_delta(self, key: InventoryKey, delta: int) -> int | None:
        data = self._client.execute(
            ADJUST_INVENTORY,
            {
                "inventoryItemId": key.inventory_item_id,
                "locationId": key.location_id,
                "delta": delta,
            },
        )
        result = data.get("inventoryAdjustQuantities")
        if result is None:
            raise AmbiguousResponseError(f"Empty adjustment response for {key}")
        raise_for_user_errors(result.get("userErrors"), "Inventory adjustment")

        group = result.get("inventoryAdjustmentGroup") or {}
        for change in group.get("changes") or []:
            if change.get("name") == "available" and change.get("quantityAfterChange") is not None:
                return int(change["quantityAfterChange"])
        return None

    def set_level(self, key: InventoryKey, quantity: int) -> None:
        data = self._client.execute(
            SET_INVENTORY,
            {
                "inventoryItemId": key.inventory_item_id,
                "locationId": key.location_id,
                "quantity": quantity,
            },
        )
        result = data.get("inventorySetQuantities")
        if result is None:
            raise AmbiguousResponseError(f"Empty set response for {key}")
        raise_for_user_errors(result.get("userErrors"), "Inventory set")
