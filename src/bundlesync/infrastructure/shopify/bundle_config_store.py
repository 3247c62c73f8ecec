"""Metafield-backed implementation of BundleConfigStore.

Bundle configs live on the bundle product as a JSON metafield
``custom.bundle_config``, written by the authoring extension.
"""

from __future__ import annotations

from bundlesync.domain.exceptions import ConfigFetchError, InventoryServiceError
from bundlesync.domain.model.bundle import BundleConfig
from bundlesync.domain.repository.bundle_config_store import BundleConfigStore
from bundlesync.infrastructure.shopify.gid import product_gid
from bundlesync.infrastructure.shopify.graphql_client import (
    ShopifyGraphQLClient,
    raise_for_user_errors,
)

METAFIELD_NAMESPACE = "custom"
METAFIELD_KEY = "bundle_config"

GET_BUNDLE_CONFIG = """
  query GetBundleConfig($productId: ID!) {
    product(id: $productId) {
      id
      title
      metafield(namespace: "custom", key: "bundle_config") {
        id
        namespace
        key
        value
        type
      }
    }
  }
"""

SAVE_BUNDLE_CONFIG = """
  mutation SaveBundleConfig($metafields: [MetafieldsSetInput!]!) {
    metafieldsSet(metafields: $metafields) {
      metafields {
        id
        namespace
        key
        value
        type
      }
      userErrors {
        field
        message
      }
    }
  }
"""

DELETE_BUNDLE_CONFIG = """
  mutation DeleteBundleConfig($metafields: [MetafieldIdentifierInput!]!) {
    metafieldsDelete(metafields: $metafields) {
      deletedMetafields {
        ownerId
        namespace
        key
      }
      userErrors {
        field
        message
      }
    }
  }
"""


class MetafieldBundleConfigStore(BundleConfigStore):

    def __init__(self, client: ShopifyGraphQLClient) -> None:
        self._client = client

    # --- BundleConfigStore interface ------------------------------------------

    def get(self, product_id: str) -> BundleConfig | None:
        try:
            data = self._client.execute(GET_BUNDLE_CONFIG, {"productId": product_gid(product_id)})
        except InventoryServiceError as exc:
            raise ConfigFetchError(
                f"Could not fetch bundle config for {product_id}: {exc}"
            ) from exc

        product = data.get("product")
        if product is None or product.get("metafield") is None:
            return None
        return BundleConfig.from_json(product["metafield"]["value"])

    def put(self, product_id: str, config: BundleConfig) -> None:
        data = self._client.execute(
            SAVE_BUNDLE_CONFIG,
            {
                "metafields": [
                    {
                        "ownerId": product_gid(product_id),
                        "namespace": METAFIELD_NAMESPACE,
                        "key": METAFIELD_KEY,
                        "type": "json",
                        "value": config.to_json(),
                    }
                ]
            },
        )
        result = data.get("metafieldsSet") or {}
        raise_for_user_errors(result.get("userErrors"), "Saving bundle config")

    def delete(self, product_id: str) -> None:
        data = self._client.execute(
            DELETE_BUNDLE_CONFIG,
            {
                "metafields": [
                    {
                        "ownerId": product_gid(product_id),
                        "namespace": METAFIELD_NAMESPACE,
                        "key": METAFIELD_KEY,
                    }
                ]
            },
        )
        result = data.get("metafieldsDelete") or {}
        raise_for_user_errors(result.get("userErrors"), "Deleting bundle config")
