"""
mock_sales_service.py — Mock Implementation of the POS API (REST)

This module provides a simulated POS API for local runs and tests of the transaction engine.
It exposes a FastAPI application that mimics the catalog read and sale creation endpoints.

Simulation Scenarios:
    • Successful sale creation (stock decremented, invoice number assigned)
    • Stock conflict (HTTP 409), nothing is decremented
    • Server error (HTTP 500) for notes starting with "sim_server_error"
    • Replayed request: the same Idempotency-Key returns the original sale

Endpoints:
    GET  /products           Lists the catalog.
    GET  /products/{id}      Returns one product.
    POST /sales              Creates a sale atomically.

Port:
    Default: 8002 (HTTP)
"""

import logging
import threading
import time
from typing import Dict, List, Optional

from fastapi import FastAPI, Header, HTTPException
from pydantic import BaseModel

app = FastAPI(title="Mock POS API")
log = logging.getLogger(__name__)

SEED_PRODUCTS = [
    {"productId": 1, "name": "Sunflower Oil", "sku": "OIL-001", "unit": "l",
     "sellingPrice": 100.0, "stockQuantity": 5.0, "lowStockThreshold": 1.0},
    {"productId": 2, "name": "Basmati Rice", "sku": "RICE-001", "unit": "kg",
     "sellingPrice": 120.0, "stockQuantity": 25.0, "lowStockThreshold": 5.0},
    {"productId": 3, "name": "Notebook", "sku": "NB-001", "unit": "pcs",
     "sellingPrice": 45.0, "stockQuantity": 40.0, "lowStockThreshold": 10.0},
    {"productId": 4, "name": "Eggs", "sku": "EGG-001", "unit": "pcs",
     "sellingPrice": 12.0, "stockQuantity": 60.0, "lowStockThreshold": 12.0},
]

# Float sums of fractional quantities may overshoot stock by a few ulps
STOCK_TOLERANCE = 1e-9

_lock = threading.Lock()
_products: Dict[int, dict] = {}
_sales: List[dict] = []
_sales_by_key: Dict[str, dict] = {}


def reset_state():
    """Restores the seed catalog and forgets all sales."""
    with _lock:
        _products.clear()
        _products.update({p["productId"]: dict(p) for p in SEED_PRODUCTS})
        _sales.clear()
        _sales_by_key.clear()


reset_state()


class SaleItemRequest(BaseModel):
    productId: int
    quantity: float
    unitPrice: float


class SaleRequest(BaseModel):
    """
    Represents a sale creation payload as sent by the engine.
    Quantities are in each product's stock unit.
    """
    items: List[SaleItemRequest]
    subtotal: float
    discount: float
    discountType: str
    tax: float
    taxRate: float
    total: float
    paymentMethod: str
    paymentStatus: str
    receivedAmount: float
    customerName: str
    customerPhone: str = ""
    notes: str = ""


def _envelope(status_code: int, message: str, data):
    return {"statusCode": status_code, "message": message, "data": data}


@app.get("/products")
def list_products():
    with _lock:
        return _envelope(200, "Products retrieved", list(_products.values()))


@app.get("/products/{product_id}")
def get_product(product_id: int):
    with _lock:
        product = _products.get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail={"errorCode": "not_found", "message": "Product not found."})
    return _envelope(200, "Product retrieved", product)


@app.post("/sales", status_code=201)
def create_sale(
        request: SaleRequest,
        idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key")
):
    """
    Creates a sale and decrements stock in one step.

    Returns:
        dict: Envelope whose ``data`` holds the created sale, including
            invoiceNumber, createdAt, changeAmount, paidAmount and dueAmount.

    Raises:
        HTTPException(404): Unknown product.
        HTTPException(409): Not enough stock for at least one item.
        HTTPException(500): Simulated server failure.
    """
    log.info(f"[POS-API] Sale request ({len(request.items)} items, Idempotency: {idempotency_key})")

    if request.notes.startswith("sim_server_error"):
        log.error("[POS-API] Simulated server error.")
        raise HTTPException(status_code=500, detail={"errorCode": "server_error", "message": "Simulated failure."})

    with _lock:
        if idempotency_key and idempotency_key in _sales_by_key:
            log.info(f"[POS-API] Replayed request {idempotency_key}, returning original sale.")
            return _envelope(201, "Sale created", _sales_by_key[idempotency_key])

        # Check everything before touching stock
        requested: Dict[int, float] = {}
        for item in request.items:
            if item.productId not in _products:
                raise HTTPException(status_code=404, detail={"errorCode": "not_found", "message": f"Product {item.productId} not found."})
            requested[item.productId] = requested.get(item.productId, 0.0) + item.quantity
        for product_id, quantity in requested.items():
            if quantity > _products[product_id]["stockQuantity"] * (1 + STOCK_TOLERANCE):
                log.warning(f"[POS-API] Insufficient stock for product {product_id}.")
                raise HTTPException(
                    status_code=409,
                    detail={"errorCode": "insufficient_stock",
                            "message": f"Insufficient stock for {_products[product_id]['name']}."}
                )
        for product_id, quantity in requested.items():
            _products[product_id]["stockQuantity"] = max(0.0, _products[product_id]["stockQuantity"] - quantity)

        sequence = len(_sales) + 1
        partial = request.paymentStatus == "PARTIAL"
        paid = min(request.receivedAmount, request.total)
        sale = {
            "sellId": sequence,
            "invoiceNumber": f"INV-{time.strftime('%Y%m%d', time.gmtime())}-{sequence:04d}",
            "createdAt": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            **request.model_dump(),
            "changeAmount": 0.0 if partial else max(0.0, request.receivedAmount - request.total),
            "paidAmount": paid,
            "dueAmount": max(0.0, request.total - paid) if partial else 0.0,
            "isCreditSale": partial,
        }
        _sales.append(sale)
        if idempotency_key:
            _sales_by_key[idempotency_key] = sale

    log.info(f"[POS-API] Sale {sale['invoiceNumber']} created.")
    return _envelope(201, "Sale created", sale)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8002)
