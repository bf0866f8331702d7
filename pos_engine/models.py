"""
models.py — Data Models for the POS Transaction Engine

This module defines the data structures that flow through the engine.
It uses Pydantic models to ensure type safety and automatic validation.

Wire models mirror the remote POS API schema and keep its camelCase field names:
    - Product: Catalog snapshot read from the POS API.
    - SaleItem / FinalizedSale: Payload handed to the sale-creation endpoint.
    - SaleConfirmation: The created sale returned by the POS API.

Engine models:
    - CartLine: A single line of the in-memory cart.
    - CheckoutParameters: Cashier input for pricing and checkout.
    - PricingSummary: Output of the pricing calculator.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .config import MONEY_DECIMALS


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"
    SPECIAL_OFFER = "SPECIAL_OFFER"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    MOBILE_BANKING = "MOBILE_BANKING"
    BANK_TRANSFER = "BANK_TRANSFER"
    DIGITAL_WALLET = "DIGITAL_WALLET"


class PaymentStatus(str, Enum):
    COMPLETED = "COMPLETED"
    PARTIAL = "PARTIAL"


def round_money(amount: float) -> float:
    """Rounds a monetary amount for display. Never feed the result back into validation."""
    return round(amount, MONEY_DECIMALS)


class Product(BaseModel):
    """
    Point-in-time product snapshot supplied by the catalog.

    Attributes:
        productId (int): Catalog identity.
        name (str): Product name.
        sku (str): Stock keeping unit.
        unit (str): Short name of the unit stock is tracked in.
        sellingPrice (float): Price per one ``unit``. Must be greater than zero.
        stockQuantity (float): Stock on hand, expressed in ``unit``.
        lowStockThreshold (float): Level at or below which stock counts as low.
    """
    model_config = ConfigDict(extra="ignore")

    productId: int
    name: str
    sku: str = ""
    unit: str
    sellingPrice: float = Field(..., gt=0)
    stockQuantity: float = Field(..., ge=0)
    lowStockThreshold: float = Field(0, ge=0)

    @property
    def isLowStock(self) -> bool:
        return self.stockQuantity <= self.lowStockThreshold


class CartLine(BaseModel):
    """
    One cart line per (product_id, sale_unit).

    ``sale_quantity`` is what the customer asked for in ``sale_unit``;
    ``base_quantity`` is the same amount in the product's stock unit and is
    what gets priced, stock-checked and persisted.
    """
    model_config = ConfigDict(frozen=True)

    product_id: int
    product_name: str
    sku: str
    sale_unit: str
    sale_quantity: float = Field(..., gt=0)
    base_quantity: float = Field(..., gt=0)
    unit_price: float
    subtotal: float

    @property
    def key(self):
        return (self.product_id, self.sale_unit)


class CheckoutParameters(BaseModel):
    """
    Cashier input for the pricing calculator and the checkout validator.
    Not persisted by the engine.
    """
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    discount_value: float = 0.0
    discount_type: DiscountType = DiscountType.PERCENTAGE
    tax_rate_percent: float = 0.0
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_status: PaymentStatus = PaymentStatus.COMPLETED
    received_amount: float = 0.0
    notes: Optional[str] = None


class PricingSummary(BaseModel):
    """Result of the pricing calculator. Values are unrounded."""
    model_config = ConfigDict(frozen=True)

    subtotal: float
    discount_amount: float
    tax_amount: float
    total: float
    change_amount: float
    due_amount: float

    def rounded(self) -> "PricingSummary":
        """Copy with every amount rounded for display."""
        return PricingSummary(**{name: round_money(value) for name, value in self.model_dump().items()})


class SaleItem(BaseModel):
    productId: int
    quantity: float = Field(..., gt=0)  # in the product's stock unit
    unitPrice: float


class FinalizedSale(BaseModel):
    """
    Payload for the sale-creation endpoint of the POS API.

    The engine never assigns an identity or invoice number; both come back in
    the SaleConfirmation.
    """
    items: List[SaleItem]
    subtotal: float
    discount: float
    discountType: DiscountType
    tax: float
    taxRate: float
    total: float
    paymentMethod: PaymentMethod
    paymentStatus: PaymentStatus
    receivedAmount: float
    customerName: str
    customerPhone: str = ""
    notes: str = ""


class SaleConfirmation(BaseModel):
    """
    The created sale as returned by the POS API, used for receipt generation.
    """
    model_config = ConfigDict(extra="ignore")

    invoiceNumber: str
    createdAt: str
    sellId: Optional[int] = None
    subtotal: float
    discount: float = 0.0
    tax: float = 0.0
    total: float
    paymentMethod: PaymentMethod
    paymentStatus: PaymentStatus
    receivedAmount: float
    changeAmount: float = 0.0
    paidAmount: float = 0.0
    dueAmount: float = 0.0
    isCreditSale: bool = False
    customerName: Optional[str] = None
    customerPhone: Optional[str] = None
    notes: Optional[str] = None
    items: List[SaleItem] = []


class AddLineRequest(BaseModel):
    """
    Terminal API request to add a product to the cart.

    Attributes:
        productId (int): Catalog identity of the product.
        saleUnit (str | None): Unit the customer buys in; defaults to the product's unit.
        saleQuantity (float): Quantity in ``saleUnit``. Must be greater than zero.
    """
    productId: int
    saleUnit: Optional[str] = None
    saleQuantity: float = Field(..., gt=0)


class UpdateQuantityRequest(BaseModel):
    productId: int
    saleUnit: str
    delta: float
