"""
Pytest fixtures for the POS engine tests.

Provides product snapshots, an empty cart, and POS API clients wired either to the
mock sales service (through httpx.ASGITransport) or to a scripted httpx.MockTransport.
"""

import asyncio
import json

import httpx
import pytest

from mock_services import mock_sales_service
from pos_engine.cart import CartStore
from pos_engine.checkout import CheckoutSession
from pos_engine.clients import PosApiClient
from pos_engine.models import CartLine, Product

MOCK_API_URL = "http://pos-api.test"


@pytest.fixture
def oil():
    """Liquid stocked in liters: 5 l at 100 per liter."""
    return Product(productId=1, name="Sunflower Oil", sku="OIL-001", unit="l",
                   sellingPrice=100.0, stockQuantity=5.0, lowStockThreshold=1.0)


@pytest.fixture
def rice():
    """Bulk good stocked in kilograms."""
    return Product(productId=2, name="Basmati Rice", sku="RICE-001", unit="kg",
                   sellingPrice=120.0, stockQuantity=25.0, lowStockThreshold=5.0)


@pytest.fixture
def notebook():
    """Whole-number item stocked in pieces."""
    return Product(productId=3, name="Notebook", sku="NB-001", unit="pcs",
                   sellingPrice=45.0, stockQuantity=40.0, lowStockThreshold=10.0)


@pytest.fixture
def eggs():
    return Product(productId=4, name="Eggs", sku="EGG-001", unit="pcs",
                   sellingPrice=12.0, stockQuantity=60.0, lowStockThreshold=12.0)


@pytest.fixture
def cart():
    return CartStore()


@pytest.fixture
def mock_api():
    """Fresh mock sales service state for every test."""
    mock_sales_service.reset_state()
    yield mock_sales_service
    mock_sales_service.reset_state()


@pytest.fixture
def api_client(mock_api):
    """POS API client talking to the in-process mock sales service."""
    client = PosApiClient(base_url=MOCK_API_URL, transport=httpx.ASGITransport(app=mock_api.app))
    yield client
    asyncio.run(client.aclose())


@pytest.fixture
def session(api_client):
    return CheckoutSession(client=api_client, session_id="test")


def make_line(subtotal, product_id=99, sale_unit="pcs"):
    """A cart line with a given subtotal, for pricing tests."""
    return CartLine(
        product_id=product_id,
        product_name=f"Item {product_id}",
        sku=f"SKU-{product_id}",
        sale_unit=sale_unit,
        sale_quantity=1.0,
        base_quantity=1.0,
        unit_price=subtotal,
        subtotal=subtotal,
    )


def scripted_client(handler):
    """POS API client whose responses come from ``handler(request) -> httpx.Response``."""
    return PosApiClient(base_url=MOCK_API_URL, transport=httpx.MockTransport(handler))


def sale_response(request, invoice="INV-TEST-0001"):
    """Builds a 201 envelope echoing the sale payload of ``request``."""
    payload = json.loads(request.content)
    data = {
        "invoiceNumber": invoice,
        "createdAt": "2026-10-19T10:00:00Z",
        **payload,
        "changeAmount": max(0.0, payload["receivedAmount"] - payload["total"]),
        "paidAmount": min(payload["receivedAmount"], payload["total"]),
        "dueAmount": 0.0,
    }
    return httpx.Response(201, json={"statusCode": 201, "message": "Sale created", "data": data})
