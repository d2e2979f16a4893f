"""Cart lines and the per-vendor partition of a cart.

A CartLine is the price snapshot taken when the product was added to the
cart; later catalogue price changes never touch it. Partitioning groups the
lines by vendor, keeping vendors in the order they first appear in the cart.
"""

from dataclasses import dataclass, field

from protean.exceptions import ValidationError

from marketplace.errors import EmptyCartError


@dataclass(frozen=True)
class CartLine:
    product_id: str
    vendor_id: str
    vendor_name: str
    product_name: str
    unit_price: int  # minor units
    quantity: int

    def __post_init__(self):
        if self.quantity < 1:
            raise ValidationError({"quantity": [f"Quantity must be at least 1, got {self.quantity}"]})
        if self.unit_price < 0:
            raise ValidationError({"unit_price": [f"Unit price cannot be negative, got {self.unit_price}"]})

    @property
    def line_subtotal(self) -> int:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor_name,
            "product_name": self.product_name,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        return cls(
            product_id=str(data["product_id"]),
            vendor_id=str(data["vendor_id"]),
            vendor_name=data["vendor_name"],
            product_name=data["product_name"],
            unit_price=int(data["unit_price"]),
            quantity=int(data["quantity"]),
        )


@dataclass(frozen=True)
class VendorGroup:
    """The subset of one cart belonging to a single vendor."""

    vendor_id: str
    vendor_name: str
    lines: tuple[CartLine, ...] = field(default_factory=tuple)

    @property
    def vendor_subtotal(self) -> int:
        return sum(line.line_subtotal for line in self.lines)


def partition_cart(lines) -> list[VendorGroup]:
    """Group cart lines by vendor in first-appearance order.

    Raises:
        EmptyCartError: if the cart has no lines.
    """
    lines = list(lines)
    if not lines:
        raise EmptyCartError()

    grouped: dict[str, list[CartLine]] = {}
    names: dict[str, str] = {}
    for line in lines:
        if line.vendor_id not in grouped:
            grouped[line.vendor_id] = []
            names[line.vendor_id] = line.vendor_name
        grouped[line.vendor_id].append(line)

    return [
        VendorGroup(vendor_id=vendor_id, vendor_name=names[vendor_id], lines=tuple(vendor_lines))
        for vendor_id, vendor_lines in grouped.items()
    ]
