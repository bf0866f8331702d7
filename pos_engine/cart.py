"""
cart.py — Cart Store

In-memory, ordered collection of cart lines owned by a single terminal session.
Lines are keyed by (product id, sale unit) and keep insertion order.

Every mutation either succeeds completely or raises a TransactionError and
leaves the cart exactly as it was. Stock checks here are advisory: the POS API
performs the authoritative check-and-decrement when the sale is committed.
"""

import logging
import math
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import (
    CheckoutInProgress,
    IncompatibleUnit,
    InsufficientStock,
    InvalidQuantity,
    LineNotFound,
    errmsg,
)
from .models import CartLine, Product
from .units import allows_fractional, convert, format_quantity

log = logging.getLogger(__name__)

# Smallest quantity a decrement may reach for fractional units
MIN_FRACTIONAL_QUANTITY = 0.01
MIN_WHOLE_QUANTITY = 1

# Relative slack for float sums such as 0.1 + 0.2 against a stock of 0.3
STOCK_TOLERANCE = 1e-9

LineKey = Tuple[int, str]


def _require_quantity(value) -> float:
    try:
        quantity = float(value)
    except (TypeError, ValueError):
        raise InvalidQuantity()
    if not math.isfinite(quantity) or quantity <= 0:
        raise InvalidQuantity()
    return quantity


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class CartStore:
    """
    Cart state machine with two states, empty and non-empty.

    Operations:
        add_or_merge_line(product, sale_unit, sale_quantity)
        update_quantity(product_id, sale_unit, delta)
        remove_line(product_id, sale_unit)
        clear()

    The store keeps the product snapshot each line was priced from, so later
    quantity updates can be stock-checked without another catalog read.

    While ``locked`` (a commit of these lines is pending) every mutation raises
    CheckoutInProgress.
    """

    def __init__(self):
        self._lines: Dict[LineKey, CartLine] = {}
        self._products: Dict[int, Product] = {}
        self.revision = 0
        self.locked = False

    # ----- reads -----
    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def get_line(self, product_id: int, sale_unit: str) -> Optional[CartLine]:
        return self._lines.get((product_id, sale_unit))

    def product_snapshot(self, product_id: int) -> Optional[Product]:
        return self._products.get(product_id)

    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self.lines)

    # ----- helpers -----
    def _require_unlocked(self) -> None:
        if self.locked:
            log.warning("[Cart] Change rejected: a checkout of this cart is pending.")
            raise CheckoutInProgress()

    @staticmethod
    def _to_base_quantity(product: Product, sale_unit: str, sale_quantity: float) -> float:
        if sale_unit == product.unit:
            return sale_quantity
        base_quantity = convert(sale_quantity, sale_unit, product.unit)
        if base_quantity is None:
            raise IncompatibleUnit(
                errmsg.INCOMPATIBLE_UNIT.format(name=product.name, sale_unit=sale_unit, unit=product.unit)
            )
        return base_quantity

    @staticmethod
    def _check_stock(product: Product, base_quantity: float) -> None:
        if base_quantity > product.stockQuantity * (1 + STOCK_TOLERANCE):
            log.warning(
                f"[Cart] Insufficient stock for product {product.productId}: "
                f"{base_quantity} > {product.stockQuantity} {product.unit}"
            )
            raise InsufficientStock(errmsg.INSUFFICIENT_STOCK.format(
                name=product.name,
                requested=format_quantity(base_quantity),
                available=format_quantity(product.stockQuantity),
                unit=product.unit,
            ))

    @staticmethod
    def _build_line(product: Product, sale_unit: str, sale_quantity: float, base_quantity: float) -> CartLine:
        return CartLine(
            product_id=product.productId,
            product_name=product.name,
            sku=product.sku,
            sale_unit=sale_unit,
            sale_quantity=sale_quantity,
            base_quantity=base_quantity,
            unit_price=product.sellingPrice,
            subtotal=base_quantity * product.sellingPrice,
        )

    def _store(self, product: Product, line: CartLine) -> None:
        # Reassigning an existing key keeps its position
        self._lines[line.key] = line
        self._products[product.productId] = product
        self.revision += 1

    # ----- mutations -----
    def add_or_merge_line(self, product: Product, sale_unit: Optional[str], sale_quantity) -> CartLine:
        """
        Adds ``sale_quantity`` of ``product`` sold in ``sale_unit``.

        An existing line for the same (product, sale unit) is merged by summing
        sale quantities; the combined amount is stock-checked before anything
        changes.

        Args:
            product (Product): Catalog snapshot to price and stock-check against.
            sale_unit (str | None): Unit the customer buys in. Defaults to the product's unit.
            sale_quantity (float): Quantity in ``sale_unit``. Must be positive.

        Returns:
            CartLine: The new or merged line.

        Raises:
            InvalidQuantity: Non-positive, non-numeric, or fractional quantity in a whole-number unit.
            IncompatibleUnit: ``sale_unit`` cannot be converted to the product's unit.
            InsufficientStock: The resulting base quantity exceeds stock.
            CheckoutInProgress: The cart is locked by a pending commit.
        """
        self._require_unlocked()
        sale_unit = sale_unit or product.unit
        quantity = _require_quantity(sale_quantity)
        if not allows_fractional(sale_unit) and not quantity.is_integer():
            raise InvalidQuantity(errmsg.QUANTITY_WHOLE.format(unit=sale_unit))

        existing = self.get_line(product.productId, sale_unit)
        new_sale_quantity = existing.sale_quantity + quantity if existing else quantity
        base_quantity = self._to_base_quantity(product, sale_unit, new_sale_quantity)
        self._check_stock(product, base_quantity)

        line = self._build_line(product, sale_unit, new_sale_quantity, base_quantity)
        self._store(product, line)
        log.info(
            f"[Cart] {'Merged' if existing else 'Added'} {format_quantity(quantity)} {sale_unit} "
            f"of product {product.productId} (line: {format_quantity(new_sale_quantity)} {sale_unit})"
        )
        return line

    def update_quantity(self, product_id: int, sale_unit: str, delta, product: Optional[Product] = None) -> CartLine:
        """
        Changes a line's sale quantity by ``delta``.

        Whole-number units are rounded to the nearest integer and never drop
        below 1; fractional units never drop below 0.01. Removal is only done
        through ``remove_line``. A result above stock is rejected and the line
        keeps its previous quantity.

        Args:
            product (Product | None): Fresher snapshot to check against. Defaults
                to the snapshot the line was last priced from.

        Raises:
            LineNotFound: No line for (product_id, sale_unit).
            InvalidQuantity: ``delta`` is not a finite number.
            InsufficientStock: The new base quantity exceeds stock.
            CheckoutInProgress: The cart is locked by a pending commit.
        """
        self._require_unlocked()
        line = self.get_line(product_id, sale_unit)
        if line is None:
            raise LineNotFound(errmsg.LINE_NOT_FOUND.format(product_id=product_id, sale_unit=sale_unit))
        try:
            change = float(delta)
        except (TypeError, ValueError):
            raise InvalidQuantity()
        if not math.isfinite(change):
            raise InvalidQuantity()

        product = product or self._products[product_id]
        new_sale_quantity = line.sale_quantity + change
        if allows_fractional(sale_unit):
            new_sale_quantity = max(MIN_FRACTIONAL_QUANTITY, new_sale_quantity)
        else:
            new_sale_quantity = max(MIN_WHOLE_QUANTITY, _round_half_up(new_sale_quantity))

        base_quantity = self._to_base_quantity(product, sale_unit, new_sale_quantity)
        self._check_stock(product, base_quantity)

        updated = self._build_line(product, sale_unit, float(new_sale_quantity), base_quantity)
        self._store(product, updated)
        return updated

    def remove_line(self, product_id: int, sale_unit: str) -> None:
        self._require_unlocked()
        removed = self._lines.pop((product_id, sale_unit), None)
        if removed is None:
            return
        if not any(key[0] == product_id for key in self._lines):
            self._products.pop(product_id, None)
        self.revision += 1
        log.info(f"[Cart] Removed product {product_id} ({sale_unit})")

    def clear(self) -> None:
        self._require_unlocked()
        if self._lines:
            self.revision += 1
        self._lines.clear()
        self._products.clear()

    def refresh_product(self, product: Product) -> None:
        """
        Replaces the stored snapshot for a product and reprices its lines.

        Stock is not re-validated here; the next mutation or the commit will do it.
        """
        self._require_unlocked()
        if product.productId not in self._products:
            return
        repriced = {
            key: self._build_line(
                product,
                line.sale_unit,
                line.sale_quantity,
                self._to_base_quantity(product, line.sale_unit, line.sale_quantity),
            )
            for key, line in self._lines.items()
            if key[0] == product.productId
        }
        self._lines.update(repriced)
        self._products[product.productId] = product
        self.revision += 1
        if product.isLowStock:
            log.info(f"[Cart] Product {product.productId} is low on stock ({product.stockQuantity} {product.unit})")
