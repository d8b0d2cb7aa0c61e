"""Checkout interaction: poll, pick a method, cancel, leave the success screen"""

from fastapi import APIRouter, Depends, HTTPException, Request

from goldapp.api.dependencies import get_checkout_registry, get_request_id
from goldapp.api.errors import http_error
from goldapp.api.v1.schemas import CheckoutResponse, MethodSelectRequest, NavigateRequest, TransactionSchema
from goldapp.domain.exceptions import DomainException
from goldapp.payments.gateway import PaymentSession
from goldapp.services.checkouts import CheckoutRegistry
from goldapp.services.orders import Checkout

router = APIRouter()


def find_checkout(checkouts: CheckoutRegistry, order_id: str) -> Checkout:
    checkout = checkouts.get(order_id)
    if checkout is None:
        raise HTTPException(status_code=404, detail=f"No checkout found for {order_id}. Start a new order.")
    return checkout


def require_payment(checkout: Checkout) -> PaymentSession:
    if checkout.payment is None:
        raise HTTPException(status_code=409, detail="This order has no payment to act on.")
    return checkout.payment


def checkout_response(order_id: str, checkout: Checkout) -> CheckoutResponse:
    payment = checkout.payment
    return CheckoutResponse(
        checkout_id=order_id,
        outcome=checkout.outcome,
        transaction=TransactionSchema.model_validate(checkout.transaction),
        state=payment.state.value if payment else None,
        stage=payment.stage.value if payment and payment.stage else None,
        stage_label=payment.stage_label if payment else None,
        method=payment.method if payment else None,
        payment_id=payment.payment_result.payment_id if payment and payment.payment_result else None,
        error=checkout.error,
        screen=checkout.screen,
    )


@router.get("/payments/{order_id}", response_model=CheckoutResponse)
def get_checkout(order_id: str, checkouts: CheckoutRegistry = Depends(get_checkout_registry)):
    """Checkout state, processing stage and, once paid, where to go next"""
    return checkout_response(order_id, find_checkout(checkouts, order_id))


@router.post("/payments/{order_id}/method", response_model=CheckoutResponse)
async def select_payment_method(
    order_id: str,
    body: MethodSelectRequest,
    request: Request,
    checkouts: CheckoutRegistry = Depends(get_checkout_registry),
):
    """Start processing the payment with the chosen method"""
    checkout = find_checkout(checkouts, order_id)
    payment = require_payment(checkout)
    try:
        payment.select_method(body.method)
    except DomainException as e:
        raise http_error(e, get_request_id(request)) from e
    return checkout_response(order_id, checkout)


@router.post("/payments/{order_id}/cancel", response_model=CheckoutResponse)
async def cancel_payment(order_id: str, checkouts: CheckoutRegistry = Depends(get_checkout_registry)):
    """
    Close the checkout. No success is reported afterwards, even if the
    gateway was about to settle.
    """
    checkout = find_checkout(checkouts, order_id)
    payment = require_payment(checkout)
    if not payment.cancel():
        raise HTTPException(status_code=409, detail="Payment has already completed and can no longer be cancelled.")
    await checkouts.wait(order_id)
    return checkout_response(order_id, checkout)


@router.post("/payments/{order_id}/navigate", response_model=CheckoutResponse)
def navigate_now(
    order_id: str,
    body: NavigateRequest,
    checkouts: CheckoutRegistry = Depends(get_checkout_registry),
):
    """Skip the redirect countdown (e.g. "View transactions" on the success screen)"""
    checkout = find_checkout(checkouts, order_id)
    if checkout.navigation is None:
        raise HTTPException(status_code=409, detail="The order is not complete yet. Wait for the payment to finish.")
    checkout.navigation.navigate_now(body.screen)
    return checkout_response(order_id, checkout)
