"""Rates, linked bank accounts and holdings"""

from fastapi import APIRouter, Depends

from goldapp.api.dependencies import get_backend_client, require_session
from goldapp.api.v1.schemas import BankAccountSchema, BanksResponse, HoldingResponse, RateResponse
from goldapp.domain.banks import BankSelector
from goldapp.domain.calculator import format_currency, format_grams
from goldapp.domain.session import Session
from goldapp.infrastructure.clients.degraded import DegradedModeClient

router = APIRouter()


@router.get("/rates", response_model=RateResponse)
async def get_rates(client: DegradedModeClient = Depends(get_backend_client)):
    """
    Current buy/sell price per gram.

    Always answers: when the backend is down the cached or fallback rate is
    returned and `source` says which.
    """
    rate = await client.get_rates()
    return RateResponse(
        buy_price=rate.buy_price,
        sell_price=rate.sell_price,
        block_id=rate.block_id,
        captured_at=rate.captured_at,
        source=rate.source,
    )


@router.get("/banks", response_model=BanksResponse)
async def get_banks(
    session: Session = Depends(require_session),
    client: DegradedModeClient = Depends(get_backend_client),
):
    selector = BankSelector(await client.get_user_banks(session.unique_id))
    return BanksResponse(
        bank_accounts=[BankAccountSchema.model_validate(bank) for bank in selector.banks],
        selected_id=selector.selected.id if selector.selected else None,
    )


@router.get("/holdings", response_model=HoldingResponse)
async def get_holdings(
    session: Session = Depends(require_session),
    client: DegradedModeClient = Depends(get_backend_client),
):
    holding = await client.get_holdings()
    return HoldingResponse(
        grams=holding.grams,
        value_inr=holding.value_inr,
        formatted_grams=format_grams(holding.grams),
        formatted_value=format_currency(holding.value_inr),
    )
