"""
main.py — FastAPI Entry Point for the POS Terminal API

This module exposes the transaction engine to a terminal front end over HTTP.
Each terminal owns exactly one CheckoutSession (cart + checkout parameters); nothing
is shared between terminals.

Responsibilities:
    • Open and close terminal sessions
    • Cart operations (add/merge, quantity change, remove, clear)
    • Live pricing of the cart
    • Checkout commit against the POS API and receipt text
    • Provide system health information
"""

import uuid
from typing import Dict

import httpx
from fastapi import Depends, FastAPI, HTTPException

from .checkout import CheckoutSession
from .clients import PosApiClient
from .errors import (
    CheckoutInProgress,
    CommitFailed,
    InsufficientStock,
    LineNotFound,
    TransactionError,
)
from .logging_config import get_logger, setup_logging
from .models import AddLineRequest, CheckoutParameters, UpdateQuantityRequest

log = get_logger(__name__)
app = FastAPI(title="POS Terminal API")

# terminalId -> session
terminals: Dict[str, CheckoutSession] = {}

_ERROR_STATUS = {
    InsufficientStock: 409,
    CheckoutInProgress: 409,
    LineNotFound: 404,
    CommitFailed: 502,
}


@app.on_event("startup")
def on_startup():
    """
    FastAPI startup event handler.

    Configures logging and creates the shared HTTP client for the POS API.
    """
    setup_logging()
    app.state.api_client = PosApiClient()
    log.info("POS terminal API starting...")


@app.on_event("shutdown")
async def on_shutdown():
    client = getattr(app.state, "api_client", None)
    if client is not None:
        await client.aclose()


def get_api_client() -> PosApiClient:
    client = getattr(app.state, "api_client", None)
    if client is None:
        client = app.state.api_client = PosApiClient()
    return client


def get_terminal(terminal_id: str) -> CheckoutSession:
    session = terminals.get(terminal_id)
    if session is None:
        raise HTTPException(status_code=404, detail={"errorCode": "terminal_not_found", "message": "Unknown terminal."})
    return session


def _http_error(error: TransactionError) -> HTTPException:
    status_code = _ERROR_STATUS.get(type(error), 422)
    return HTTPException(status_code=status_code, detail={"errorCode": error.code, "message": error.message})


def _cart_view(session: CheckoutSession) -> dict:
    return {
        "terminalId": session.session_id,
        "lines": [line.model_dump() for line in session.cart.lines],
        "parameters": session.params.model_dump(mode="json"),
        "pricing": session.pricing().rounded().model_dump(),
        "isCommitting": session.is_committing,
    }


@app.post("/v1/terminals", status_code=201)
def open_terminal(client: PosApiClient = Depends(get_api_client)):
    terminal_id = uuid.uuid4().hex[:8]
    terminals[terminal_id] = CheckoutSession(client=client, session_id=terminal_id)
    log.info(f"[Terminal: {terminal_id}] Session opened.")
    return {"terminalId": terminal_id}


@app.delete("/v1/terminals/{terminal_id}")
def close_terminal(session: CheckoutSession = Depends(get_terminal)):
    """
    Discards the terminal's session, cart included.

    Raises:
        HTTPException(404): Unknown terminal.
        HTTPException(409): A commit is pending; the session stays open.
    """
    if session.is_committing:
        raise _http_error(CheckoutInProgress())
    terminals.pop(session.session_id, None)
    log.info(f"[Terminal: {session.session_id}] Session closed ({len(session.cart)} lines discarded).")
    return {"terminalId": session.session_id, "closed": True}


@app.get("/v1/terminals/{terminal_id}/cart")
def view_cart(session: CheckoutSession = Depends(get_terminal)):
    return _cart_view(session)


@app.post("/v1/terminals/{terminal_id}/cart/lines")
async def add_line(
        request: AddLineRequest,
        session: CheckoutSession = Depends(get_terminal),
        client: PosApiClient = Depends(get_api_client)
):
    """
    Looks up the product in the POS API and adds it to the terminal's cart.

    Raises:
        HTTPException(404): Unknown product.
        HTTPException(409): Insufficient stock.
        HTTPException(422): Invalid quantity or incompatible unit.
        HTTPException(502): Catalog not reachable.
    """
    try:
        product = await client.fetch_product(request.productId)
    except httpx.HTTPError:
        raise HTTPException(status_code=502, detail={"errorCode": "catalog_unavailable", "message": "Catalog not reachable."})
    if product is None:
        raise HTTPException(status_code=404, detail={"errorCode": "product_not_found", "message": "Product not found."})

    try:
        session.cart.add_or_merge_line(product, request.saleUnit, request.saleQuantity)
    except TransactionError as e:
        raise _http_error(e)
    return _cart_view(session)


@app.patch("/v1/terminals/{terminal_id}/cart/lines")
def update_line(request: UpdateQuantityRequest, session: CheckoutSession = Depends(get_terminal)):
    try:
        session.cart.update_quantity(request.productId, request.saleUnit, request.delta)
    except TransactionError as e:
        raise _http_error(e)
    return _cart_view(session)


@app.delete("/v1/terminals/{terminal_id}/cart/lines")
def remove_line(productId: int, saleUnit: str, session: CheckoutSession = Depends(get_terminal)):
    try:
        session.cart.remove_line(productId, saleUnit)
    except TransactionError as e:
        raise _http_error(e)
    return _cart_view(session)


@app.delete("/v1/terminals/{terminal_id}/cart")
def clear_cart(session: CheckoutSession = Depends(get_terminal)):
    try:
        session.cart.clear()
    except TransactionError as e:
        raise _http_error(e)
    return _cart_view(session)


@app.put("/v1/terminals/{terminal_id}/checkout")
def set_checkout_parameters(params: CheckoutParameters, session: CheckoutSession = Depends(get_terminal)):
    try:
        session.set_parameters(params)
    except TransactionError as e:
        raise _http_error(e)
    return _cart_view(session)


@app.post("/v1/terminals/{terminal_id}/checkout", status_code=201)
async def checkout(session: CheckoutSession = Depends(get_terminal)):
    """
    Commits the terminal's cart as a sale.

    Returns:
        dict: The created sale (with invoice number) and the receipt text.

    Raises:
        HTTPException(409): Stock conflict or a commit already pending.
        HTTPException(422): A checkout precondition failed; nothing was sent.
        HTTPException(502): The POS API failed; the cart is preserved.
    """
    try:
        result = await session.commit()
    except TransactionError as e:
        raise _http_error(e)
    return {"sale": result.sale.model_dump(mode="json"), "receipt": result.receipt}


@app.get("/health")
def health_check():
    """
    Simple health check endpoint.

    Returns:
        dict: A basic JSON object indicating service availability.
    """
    return {"status": "ok"}
