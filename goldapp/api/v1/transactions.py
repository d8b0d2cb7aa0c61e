"""GET /v1/transactions - Remote transaction history"""

from fastapi import APIRouter, Depends, Query

from goldapp.api.dependencies import get_backend_client, require_session
from goldapp.api.v1.schemas import TransactionPageResponse, TransactionSchema
from goldapp.config import settings
from goldapp.domain.session import Session
from goldapp.infrastructure.clients.degraded import DegradedModeClient

router = APIRouter()


@router.get("/transactions", response_model=TransactionPageResponse)
async def get_transactions(
    type: str = Query("all", pattern="^(all|buy|sell)$", description="Filter by order side"),
    offset: int = Query(0, ge=0),
    session: Session = Depends(require_session),
    client: DegradedModeClient = Depends(get_backend_client),
):
    """
    One page of buy/sell history.

    When the backend cannot be reached, labeled demo transactions are returned
    with `simulated=true`.
    """
    page = await client.get_transactions(type=type, limit=settings.transactions_page_size, offset=offset)
    return TransactionPageResponse(
        transactions=[TransactionSchema.model_validate(t) for t in page.transactions],
        has_more=page.has_more,
        simulated=page.simulated,
        next_offset=offset + len(page.transactions) if page.has_more else None,
    )
