"""Engine errors and error message constants."""


class errmsg:
    """Error message constants for the transaction engine."""

    QUANTITY_POSITIVE = "Quantity must be a positive number"
    QUANTITY_WHOLE = "Unit '{unit}' only accepts whole quantities"
    INSUFFICIENT_STOCK = "Insufficient stock for {name}: requested {requested} {unit}, available {available} {unit}"
    INSUFFICIENT_STOCK_REMOTE = "Insufficient stock reported by the sale service"
    INCOMPATIBLE_UNIT = "Cannot sell {name} in '{sale_unit}' (stock unit '{unit}')"
    LINE_NOT_FOUND = "No cart line for product {product_id} in '{sale_unit}'"
    CART_EMPTY = "Cart is empty"
    CUSTOMER_INFO_REQUIRED = "Customer name and phone are required for partial payments"
    RECEIVED_POSITIVE = "Received amount must be greater than zero for partial payments"
    OVERPAYMENT_ON_PARTIAL = "Received amount exceeds the total; use a completed payment instead"
    INSUFFICIENT_PAYMENT = "Received amount is less than the total amount"
    CHECKOUT_IN_PROGRESS = "A checkout is already in progress for this cart"
    COMMIT_FAILED = "Failed to complete sale"


class TransactionError(Exception):
    """
    Base class for all user-facing engine errors.

    Every subclass carries a stable ``code`` the UI or API layer can switch on
    to render a specific message. None of these are fatal to the process.
    """

    code = "transaction_error"
    default_message = "Transaction error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidQuantity(TransactionError):
    code = "invalid_quantity"
    default_message = errmsg.QUANTITY_POSITIVE


class InsufficientStock(TransactionError):
    """Requested quantity exceeds known stock. Retryable after correcting the cart."""

    code = "insufficient_stock"
    default_message = errmsg.INSUFFICIENT_STOCK_REMOTE


class IncompatibleUnit(TransactionError):
    code = "incompatible_unit"
    default_message = "Incompatible unit"


class LineNotFound(TransactionError):
    code = "line_not_found"
    default_message = "Cart line not found"


class EmptyCart(TransactionError):
    code = "empty_cart"
    default_message = errmsg.CART_EMPTY


class CustomerInfoRequired(TransactionError):
    code = "customer_info_required"
    default_message = errmsg.CUSTOMER_INFO_REQUIRED


class InvalidReceivedAmount(TransactionError):
    code = "invalid_received_amount"
    default_message = errmsg.RECEIVED_POSITIVE


class OverpaymentOnPartial(TransactionError):
    code = "overpayment_on_partial"
    default_message = errmsg.OVERPAYMENT_ON_PARTIAL


class InsufficientPayment(TransactionError):
    code = "insufficient_payment"
    default_message = errmsg.INSUFFICIENT_PAYMENT


class CheckoutInProgress(TransactionError):
    code = "checkout_in_progress"
    default_message = errmsg.CHECKOUT_IN_PROGRESS


class CommitFailed(TransactionError):
    """The sale service call failed (network or server error). The cart is preserved."""

    code = "commit_failed"
    default_message = errmsg.COMMIT_FAILED
