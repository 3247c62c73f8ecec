"""BundleConfig value object — which components a bundle is made of.

The config is normally stored as a JSON product metafield written by the
authoring extension.  It is read as a whole and replaced as a whole; the
core never edits it in place.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from bundlesync.domain.exceptions import ConfigInvalid, ValidationError


@dataclass(frozen=True)
class ComponentRef:
    """One product a bundle requires, and how many units per bundle."""

    product_id: str
    quantity: int
    display_title: str | None = None
    # As last recorded by the authoring extension; the live level decides
    tracks_inventory: bool | None = None

    def __post_init__(self) -> None:
        if not self.product_id:
            raise ValidationError("Component product ID is required")
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool):
            raise ValidationError(
                f"Component quantity must be an integer, got {type(self.quantity).__name__}"
            )
        if self.quantity < 1:
            raise ValidationError(
                f"Component quantity must be at least 1, got {self.quantity}"
            )

    @property
    def label(self) -> str:
        return self.display_title or self.product_id


@dataclass(frozen=True)
class BundleConfig:
    """Aggregate of component requirements for one bundle product.

    Invariants:
    - every component quantity is >= 1
    - no product appears twice in ``components``

    A config marked ``is_bundle`` with no components is valid but not
    actionable.
    """

    is_bundle: bool
    components: tuple[ComponentRef, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for component in self.components:
            if component.product_id in seen:
                raise ValidationError(
                    f"Component '{component.label}' is listed more than once"
                )
            seen.add(component.product_id)

    @property
    def is_actionable(self) -> bool:
        return self.is_bundle and len(self.components) > 0

    # --- Wire format ----------------------------------------------------------

    @classmethod
    def from_json(cls, raw: str) -> BundleConfig:
        """Parse the metafield JSON value.

        Raises ConfigInvalid for anything that is not a well-formed config.
        """
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigInvalid(f"Bundle config is not valid JSON: {exc}") from exc
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: object) -> BundleConfig:
        if not isinstance(data, dict):
            raise ConfigInvalid("Bundle config must be a JSON object")

        products = data.get("products") or []
        if not isinstance(products, list):
            raise ConfigInvalid("Bundle config 'products' must be a list")

        try:
            components = tuple(
                ComponentRef(
                    product_id=str(item["productId"]),
                    quantity=item["quantity"],
                    display_title=item.get("title"),
                    tracks_inventory=_optional_bool(item.get("tracksInventory")),
                )
                for item in products
            )
            return cls(is_bundle=bool(data.get("isBundle")), components=components)
        except (KeyError, TypeError, AttributeError) as exc:
            raise ConfigInvalid(f"Malformed bundle component: {exc!r}") from exc
        except ValidationError as exc:
            raise ConfigInvalid(str(exc)) from exc

    def to_dict(self) -> dict:
        products = []
        for component in self.components:
            item: dict = {
                "productId": component.product_id,
                "quantity": component.quantity,
            }
            if component.display_title:
                item["title"] = component.display_title
            if component.tracks_inventory is not None:
                item["tracksInventory"] = component.tracks_inventory
            products.append(item)
        return {"isBundle": self.is_bundle, "products": products}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def _optional_bool(value: object) -> bool | None:
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ConfigInvalid(f"'tracksInventory' must be a boolean, got {value!r}")
    return value
