"""Per-shopper engine state behind the HTTP API.

Each shopper of each tenant gets one order assembler, created on first use.
Shoppers identify themselves with the ``X-Shopper-Id`` header or, failing
that, the ``storefront_shopper`` cookie, which is issued on the first request
that carries neither.
"""

from uuid import uuid4

from fastapi import Request, Response

from storefront.cart.storage import get_storage
from storefront.cart.storage.shopper_adapter import ShopperCartStorage
from storefront.cart.store import CartStore
from storefront.checkout.assembler import OrderAssembler
from storefront.stores import get_directory

SHOPPER_HEADER = "X-Shopper-Id"
SHOPPER_COOKIE = "storefront_shopper"

_sessions: dict[tuple[str, str], OrderAssembler] = {}


def current_shopper(request: Request, response: Response) -> str:
    """FastAPI dependency resolving the shopper id of a request."""
    shopper_id = request.headers.get(SHOPPER_HEADER) or request.cookies.get(SHOPPER_COOKIE)
    if not shopper_id:
        shopper_id = uuid4().hex
        response.set_cookie(SHOPPER_COOKIE, shopper_id, httponly=True, samesite="lax")
    return shopper_id


def get_session(business_id: str, shopper_id: str) -> OrderAssembler:
    """Return the shopper's assembler for a tenant; raises ObjectNotFoundError for unknown tenants."""
    store = get_directory().get(business_id)
    key = (business_id, shopper_id)
    if key not in _sessions:
        storage = ShopperCartStorage(get_storage(), shopper_id)
        _sessions[key] = OrderAssembler(store, CartStore(business_id, storage=storage))
    return _sessions[key]


def reset_sessions() -> None:
    _sessions.clear()
