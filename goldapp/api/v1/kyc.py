"""GET/POST /v1/kyc - PAN-based KYC details"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session as DBSession

from goldapp.api.dependencies import get_backend_client, get_request_id, require_session
from goldapp.api.errors import http_error
from goldapp.api.v1.schemas import KycResponse, KycUpdateRequest
from goldapp.domain.exceptions import DomainException
from goldapp.domain.session import Session
from goldapp.domain.validation import validate_adult
from goldapp.infrastructure.clients.degraded import DegradedModeClient
from goldapp.infrastructure.database.repositories import SessionRepository
from goldapp.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/kyc", response_model=KycResponse)
async def get_kyc(
    request: Request,
    session: Session = Depends(require_session),
    client: DegradedModeClient = Depends(get_backend_client),
):
    try:
        data = await client.get_kyc_details(session.unique_id)
    except DomainException as e:
        raise http_error(e, get_request_id(request)) from e
    return KycResponse(unique_id=session.unique_id, kyc_details=data.get("kyc_details") or {})


@router.post("/kyc", response_model=KycResponse)
async def submit_kyc(
    body: KycUpdateRequest,
    request: Request,
    db: DBSession = Depends(get_db),
    session: Session = Depends(require_session),
    client: DegradedModeClient = Depends(get_backend_client),
):
    """Submit KYC for review; the session's KYC status goes back to pending"""
    try:
        validate_adult(body.date_of_birth)
        data = await client.update_kyc_details(
            {
                "unique_id": session.unique_id,
                "panNumber": body.pan_number,
                "nameAsPerPan": body.name_as_per_pan.strip(),
                "dateOfBirth": body.date_of_birth.isoformat(),
                "status": "pending",
            }
        )
    except DomainException as e:
        raise http_error(e, get_request_id(request)) from e

    session.kyc_status = "pending"
    SessionRepository(db).save(session)
    db.commit()

    details = data.get("kyc_details") or {
        "pan_number": body.pan_number,
        "name_as_per_pan": body.name_as_per_pan.strip(),
        "date_of_birth": body.date_of_birth.isoformat(),
        "status": "pending",
    }
    return KycResponse(unique_id=session.unique_id, kyc_details=details)
