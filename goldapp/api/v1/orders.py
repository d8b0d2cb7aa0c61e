"""Buy and sell orders: preview, placement and the local order journal"""

import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session as DBSession

from goldapp.api.dependencies import (
    get_backend_client,
    get_checkout_registry,
    get_order_service,
    get_request_id,
    require_session,
)
from goldapp.api.errors import http_error
from goldapp.api.v1.schemas import (
    BuyResponse,
    OrderAttemptItem,
    OrderEntry,
    OrderHistoryResponse,
    PaymentMethodSchema,
    QuoteRequest,
    QuoteResponse,
    SellResponse,
    TransactionSchema,
)
from goldapp.config import settings
from goldapp.domain.banks import BankSelector
from goldapp.domain.calculator import format_currency, format_grams, quote
from goldapp.domain.exceptions import DomainException
from goldapp.domain.models import Holding, OrderInput, OrderSide, Quote, Rate
from goldapp.domain.session import Session
from goldapp.domain.validation import validate
from goldapp.infrastructure.clients.degraded import DegradedModeClient
from goldapp.infrastructure.database.repositories import OrderAttemptRepository
from goldapp.infrastructure.database.session import get_db
from goldapp.payments.gateway import PAYMENT_METHODS
from goldapp.services.checkouts import CheckoutRegistry
from goldapp.services.navigation import TRANSACTION_HISTORY
from goldapp.services.orders import OrderService

logger = logging.getLogger(__name__)

router = APIRouter()


async def prepare_order(
    side: OrderSide, entry: OrderEntry, session: Session, client: DegradedModeClient
) -> Tuple[OrderInput, Quote, Rate]:
    """Current rate, chosen bank account and the preview for what the user typed"""
    rate = await client.get_rates()
    selector = BankSelector(await client.get_user_banks(session.unique_id))
    bank = selector.select(entry.bank_id) if entry.bank_id else selector.selected

    order = OrderInput(side=side, mode=entry.mode, raw_value=entry.value, bank=bank)
    return order, quote(side, entry.mode, entry.value, rate), rate


@router.post("/orders/quote", response_model=QuoteResponse)
async def quote_order(
    body: QuoteRequest,
    request: Request,
    session: Session = Depends(require_session),
    client: DegradedModeClient = Depends(get_backend_client),
    service: OrderService = Depends(get_order_service),
):
    """
    Preview an order without placing it.

    Returns the converted value and the first failing pre-submission rule, if any,
    so the screen can show guidance before the user confirms.
    """
    try:
        order, preview, rate = await prepare_order(body.side, body, session, client)
    except DomainException as e:
        raise http_error(e, get_request_id(request)) from e

    holding: Optional[Holding] = await client.get_holdings() if body.side is OrderSide.SELL else None
    result = validate(order, preview.calculated, holding.grams if holding else None, service.minimums)

    return QuoteResponse(
        side=preview.side,
        mode=preview.mode,
        input_value=preview.input_value,
        calculated=preview.calculated,
        quantity=preview.quantity,
        amount=preview.amount,
        rate=preview.rate,
        rate_source=rate.source,
        block_id=rate.block_id,
        formatted_quantity=format_grams(preview.quantity),
        formatted_amount=format_currency(preview.amount),
        valid=result.ok,
        error_code=result.error.value if result.error else None,
        message=result.message or None,
    )


@router.post("/orders/buy", response_model=BuyResponse)
async def buy_gold(
    body: OrderEntry,
    request: Request,
    session: Session = Depends(require_session),
    client: DegradedModeClient = Depends(get_backend_client),
    service: OrderService = Depends(get_order_service),
    checkouts: CheckoutRegistry = Depends(get_checkout_registry),
):
    """
    Place a buy order and open the checkout for it.

    Flow:
    1. Validate the entry (no backend call if it fails)
    2. Create the pending transaction at the current rate block
    3. Create the payment order and open the mock checkout
    4. The client then picks a payment method via /v1/payments/{checkout_id}/method
    """
    request_id = get_request_id(request)
    try:
        order, preview, rate = await prepare_order(OrderSide.BUY, body, session, client)
        checkout = await service.place_buy(order, preview, rate, session)
    except DomainException as e:
        raise http_error(e, request_id) from e

    transaction = TransactionSchema.model_validate(checkout.transaction)

    if checkout.payment is None:
        return BuyResponse(
            transaction=transaction,
            outcome=checkout.outcome,
            simulated=True,
            message="Demo mode: the order was recorded locally and no payment was taken.",
        )

    checkout_id = checkouts.add(checkout)
    checkouts.start_completion(checkout)
    logger.info("Checkout opened", extra={"request_id": request_id, "checkout_id": checkout_id})

    return BuyResponse(
        transaction=transaction,
        outcome=checkout.outcome,
        simulated=False,
        checkout_id=checkout_id,
        payment_methods=[PaymentMethodSchema(id=method_id, name=name) for method_id, name in PAYMENT_METHODS.items()],
        message=f"Pay {format_currency(preview.amount)} to complete your purchase.",
    )


@router.post("/orders/sell", response_model=SellResponse)
async def sell_gold(
    body: OrderEntry,
    request: Request,
    session: Session = Depends(require_session),
    client: DegradedModeClient = Depends(get_backend_client),
    service: OrderService = Depends(get_order_service),
    checkouts: CheckoutRegistry = Depends(get_checkout_registry),
):
    """Place a sell order; proceeds are paid out to the selected bank account"""
    try:
        order, preview, rate = await prepare_order(OrderSide.SELL, body, session, client)
        holding = await client.get_holdings()
        checkout = await service.place_sell(order, preview, rate, session, holding)
    except DomainException as e:
        raise http_error(e, get_request_id(request)) from e

    checkout_id = checkouts.add(checkout)
    if checkout.transaction.simulated:
        message = "Demo mode: the sale was recorded locally and no payout will be made."
    else:
        message = (
            f"Sell order placed. {format_currency(preview.amount)} will be credited to "
            f"{order.bank.bank_name or 'your bank account'} once processed."
        )

    return SellResponse(
        transaction=TransactionSchema.model_validate(checkout.transaction),
        outcome=checkout.outcome,
        simulated=checkout.transaction.simulated,
        checkout_id=checkout_id,
        redirect_to=TRANSACTION_HISTORY,
        redirect_after_seconds=service.redirect_delay,
        message=message,
    )


@router.get("/orders/history", response_model=OrderHistoryResponse)
def get_order_history(
    session: Session = Depends(require_session),
    db: DBSession = Depends(get_db),
):
    """Order attempts journaled on this device, newest first"""
    attempts = OrderAttemptRepository(db).get_attempts_by_user(
        session.unique_id, limit=settings.transactions_page_size
    )
    return OrderHistoryResponse(
        unique_id=session.unique_id,
        orders=[OrderAttemptItem.model_validate(a) for a in attempts],
    )
