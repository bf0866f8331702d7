"""
checkout.py — Checkout Validation and Commit Workflow

This module contains the checkout logic of a terminal session.
It validates the cart and the cashier input, builds the finalized sale and hands it
to the POS API.

Workflow Overview:
1. Price the cart with the current checkout parameters
2. Validate preconditions (fail fast, first failure wins)
3. Dispatch the finalized sale to the POS API (the only asynchronous step)
4. On success: clear the cart, reset the parameters, render the receipt
   On failure: leave cart and parameters untouched so the cashier can retry
"""

import logging
import uuid
from typing import Callable, List, Optional, Sequence

import httpx
from pydantic import BaseModel, ValidationError

from .cart import CartStore
from .clients import PosApiClient
from .config import WALK_IN_CUSTOMER
from .errors import (
    CheckoutInProgress,
    CommitFailed,
    CustomerInfoRequired,
    EmptyCart,
    InsufficientPayment,
    InsufficientStock,
    InvalidReceivedAmount,
    OverpaymentOnPartial,
)
from .models import (
    CartLine,
    CheckoutParameters,
    FinalizedSale,
    PaymentStatus,
    PricingSummary,
    SaleConfirmation,
    SaleItem,
)
from .pricing import price_checkout
from .receipt import render_receipt

log = logging.getLogger(__name__)

ReceiptRenderer = Callable[[SaleConfirmation, Sequence[CartLine]], str]


def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def validate_checkout(lines: Sequence[CartLine], params: CheckoutParameters, pricing: PricingSummary) -> None:
    """
    Checks checkout preconditions in order; the first failure is raised.

    Comparisons use the unrounded total.

    Raises:
        EmptyCart: No lines.
        CustomerInfoRequired: PARTIAL without customer name and phone.
        InvalidReceivedAmount: PARTIAL with nothing received.
        OverpaymentOnPartial: PARTIAL receiving more than the total.
        InsufficientPayment: COMPLETED receiving less than the total.
    """
    if not lines:
        raise EmptyCart()

    if params.payment_status == PaymentStatus.PARTIAL:
        if _blank(params.customer_name) or _blank(params.customer_phone):
            raise CustomerInfoRequired()
        if params.received_amount <= 0:
            raise InvalidReceivedAmount()
        if params.received_amount > pricing.total:
            raise OverpaymentOnPartial()
    elif params.payment_status == PaymentStatus.COMPLETED:
        if params.received_amount < pricing.total:
            raise InsufficientPayment()
    else:
        raise ValueError(f"Unknown payment status: {params.payment_status!r}")


def build_finalized_sale(lines: Sequence[CartLine], params: CheckoutParameters, pricing: PricingSummary) -> FinalizedSale:
    """
    Maps a validated cart to the sale-creation payload.

    Quantities are sent in the product's stock unit. A blank customer name
    becomes the walk-in customer; a completed payment never reports less
    received than the total.
    """
    received = params.received_amount
    if params.payment_status == PaymentStatus.COMPLETED:
        received = max(received, pricing.total)

    return FinalizedSale(
        items=[
            SaleItem(productId=line.product_id, quantity=line.base_quantity, unitPrice=line.unit_price)
            for line in lines
        ],
        subtotal=pricing.subtotal,
        discount=pricing.discount_amount,
        discountType=params.discount_type,
        tax=pricing.tax_amount,
        taxRate=params.tax_rate_percent,
        total=pricing.total,
        paymentMethod=params.payment_method,
        paymentStatus=params.payment_status,
        receivedAmount=received,
        customerName=WALK_IN_CUSTOMER if _blank(params.customer_name) else params.customer_name.strip(),
        customerPhone=(params.customer_phone or "").strip(),
        notes=params.notes or "",
    )


class CheckoutResult(BaseModel):
    """Outcome of a successful commit, handed to the receipt printer."""
    sale: SaleConfirmation
    lines: List[CartLine]
    receipt: Optional[str] = None


class CheckoutSession:
    """
    Engine state of one terminal: a cart, the checkout parameters and the POS API client.

    Cart mutations and pricing are synchronous. ``commit`` is the only
    coroutine and at most one commit may be in flight per session.
    """

    def __init__(
            self,
            client: PosApiClient,
            cart: Optional[CartStore] = None,
            renderer: Optional[ReceiptRenderer] = render_receipt,
            session_id: Optional[str] = None,
    ):
        self.client = client
        self.cart = cart if cart is not None else CartStore()
        self.renderer = renderer
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self.params = CheckoutParameters()
        self._committing = False
        self._idempotency = None  # (fingerprint, key)

    @property
    def log_prefix(self) -> str:
        return f"[Checkout: {self.session_id}]"

    @property
    def is_committing(self) -> bool:
        return self._committing

    # ----- parameters -----
    def update_parameters(self, **changes) -> CheckoutParameters:
        """Replaces individual checkout parameters; values are validated by the model."""
        return self.set_parameters(CheckoutParameters(**{**self.params.model_dump(), **changes}))

    def set_parameters(self, params: CheckoutParameters) -> CheckoutParameters:
        self._require_idle()
        self.params = params
        return self.params

    def reset_parameters(self) -> None:
        self.set_parameters(CheckoutParameters())

    def _require_idle(self) -> None:
        if self._committing:
            log.warning(f"{self.log_prefix} Change rejected: a commit is pending.")
            raise CheckoutInProgress()

    # ----- pricing / validation -----
    def pricing(self) -> PricingSummary:
        return price_checkout(self.cart.lines, self.params)

    def validate(self) -> PricingSummary:
        pricing = self.pricing()
        validate_checkout(self.cart.lines, self.params, pricing)
        return pricing

    def _idempotency_key(self) -> str:
        # Same cart revision and parameters -> same key
        fingerprint = (self.cart.revision, self.params.model_dump_json())
        if self._idempotency is None or self._idempotency[0] != fingerprint:
            self._idempotency = (fingerprint, str(uuid.uuid4()))
        return self._idempotency[1]

    # ----- commit -----
    async def commit(self) -> CheckoutResult:
        """
        Validates the checkout and creates the sale through the POS API.

        Returns:
            CheckoutResult: Confirmation with invoice number, the committed lines
            and the rendered receipt.

        Raises:
            CheckoutInProgress: Another commit of this session is pending.
            TransactionError subclasses from ``validate_checkout``: nothing was sent.
            InsufficientStock: The POS API rejected the sale on stock. Retryable.
            CommitFailed: Network or server error, or an unreadable confirmation.
                Cart and parameters are preserved.

        While the request is pending, cart and parameter changes raise
        CheckoutInProgress; the cleared cart and the receipt are exactly the
        lines that were sent.
        """
        if self._committing:
            log.warning(f"{self.log_prefix} Commit rejected: another commit is pending.")
            raise CheckoutInProgress()

        pricing = self.validate()
        committed_lines = self.cart.lines
        sale = build_finalized_sale(committed_lines, self.params, pricing)
        key = self._idempotency_key()

        log.info(f"{self.log_prefix} Sending sale ({len(sale.items)} items, total {sale.total:.2f})...")
        # Cart and parameters stay frozen until the POS API has answered
        self._committing = True
        self.cart.locked = True
        try:
            confirmation = await self.client.create_sale(sale, key)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 409:
                log.warning(f"{self.log_prefix} Sale rejected on stock. Cart kept for correction.")
                raise InsufficientStock(_error_message(e.response)) from e
            log.error(f"{self.log_prefix} Sale failed (HTTP {e.response.status_code}). Cart kept for retry.")
            raise CommitFailed(_error_message(e.response)) from e
        except httpx.HTTPError as e:
            log.error(f"{self.log_prefix} Sale service not reachable ({e}). Cart kept for retry.")
            raise CommitFailed() from e
        except (ValueError, ValidationError) as e:
            # Status unknown; a retry replays the same idempotency key
            log.error(f"{self.log_prefix} Unreadable sale confirmation ({e}). Cart kept for retry.")
            raise CommitFailed() from e
        finally:
            self._committing = False
            self.cart.locked = False

        self.cart.clear()
        self.reset_parameters()
        self._idempotency = None
        log.info(f"{self.log_prefix} Sale completed. (Invoice: {confirmation.invoiceNumber})")

        receipt = None
        if self.renderer is not None:
            try:
                receipt = self.renderer(confirmation, committed_lines)
            except Exception as e:
                # Sale is already committed at this point
                log.error(f"{self.log_prefix} Receipt rendering failed for {confirmation.invoiceNumber}: {e}", exc_info=True)

        return CheckoutResult(sale=confirmation, lines=committed_lines, receipt=receipt)


def _error_message(response: httpx.Response) -> Optional[str]:
    """Extracts ``message`` from an error body shaped like ``{"detail": {"errorCode", "message"}}``."""
    try:
        body = response.json()
    except ValueError:
        return None
    detail = body.get("detail", body) if isinstance(body, dict) else None
    if isinstance(detail, dict):
        return detail.get("message")
    if isinstance(detail, str):
        return detail
    return None
