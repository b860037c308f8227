"""Shared BDD fixtures and step definitions for the storefront engine."""

import pytest
from pytest_bdd import given, parsers, then

from storefront.cart.store import CartStore
from storefront.checkout.assembler import OrderAssembler
from storefront.delivery.pricing.port import FeeCalculationError, FeeErrorCode
from storefront.delivery.resolver import DeliveryFeeResolver


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def units():
    """Catalog units published in the scenario, keyed by product id."""
    return {}


@pytest.fixture()
def outcomes():
    """Cart outcomes in the order the steps produced them."""
    return []


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a storefront "{business_id}"'), target_fixture="assembler")
def storefront(business_id, make_store, storage, pricing, gateway, clock):
    store = make_store(business_id)
    return OrderAssembler(
        store,
        CartStore(business_id),
        resolver=DeliveryFeeResolver(store, timeout=1.0),
        clock=clock,
    )


@given(
    parsers.cfparse('a storefront "{business_id}" with a delivery fee of {fee:g}'),
    target_fixture="assembler",
)
def storefront_with_fee(business_id, fee, make_store, storage, pricing, gateway, clock):
    store = make_store(business_id, delivery_fee=fee)
    pricing.configure(fee=fee)
    return OrderAssembler(
        store,
        CartStore(business_id),
        resolver=DeliveryFeeResolver(store, timeout=1.0),
        clock=clock,
    )


@given(parsers.cfparse('a tracked product "{product_id}" with stock {stock:d}'))
def tracked_product(units, make_unit, product_id, stock):
    units[product_id] = make_unit(product_id, name=product_id.title(), stock=stock, track_inventory=True)


@given(parsers.cfparse('an untracked product "{product_id}" with stock {stock:d}'))
def untracked_product(units, make_unit, product_id, stock):
    units[product_id] = make_unit(product_id, name=product_id.title(), stock=stock)


@given(parsers.cfparse('the shopper has {qty:d} "{product_id}" priced {price:g} in the cart'))
def cart_with_product(assembler, units, make_unit, qty, product_id, price):
    units[product_id] = make_unit(product_id, name=product_id.title(), price=price)
    assembler.cart.add(units[product_id], qty)


@given(parsers.cfparse('the shopper has entered name "{name}" and phone "{phone}"'))
def customer_details(assembler, name, phone):
    assembler.update_customer(name=name, phone=phone)


@given(parsers.cfparse('the delivery service answers "{code}" with "{message}"'))
def delivery_service_error(pricing, code, message):
    pricing.configure(error=FeeCalculationError(FeeErrorCode(code), message))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the cart holds {qty:d} "{product_id}"'))
def cart_holds(assembler, qty, product_id):
    quantities = {line.product_id: line.quantity for line in assembler.cart.items}
    assert quantities.get(product_id) == qty


@then("the order can be submitted")
def order_can_be_submitted(assembler):
    assert assembler.readiness() == []
    assert assembler.can_submit() is True


@then(parsers.cfparse('the order cannot be submitted because "{reason}"'))
def order_blocked(assembler, reason):
    assert assembler.can_submit() is False
    assert reason in assembler.readiness()
