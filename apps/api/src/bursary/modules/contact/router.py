"""
Contact Router

- POST /contact - Store a message from the public contact form

Rate limited per client address to keep spam out.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from bursary.core.rate_limit import client_ip, enforce_rate_limit
from bursary.core.result import Err
from bursary.modules.applications.gateway import DataGateway, get_gateway
from bursary.modules.contact.schemas import ContactCreate, ContactResponse

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_CONTACT = (5, 3600)  # 5 messages per hour per IP


@router.post(
    "",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send Contact Message",
    responses={
        429: {"description": "Rate limit exceeded"},
        503: {"description": "The message could not be stored"},
    },
)
async def submit_contact(
    data: ContactCreate,
    request: Request,
    gateway: DataGateway = Depends(get_gateway),
) -> ContactResponse:
    await enforce_rate_limit(f"contact:{client_ip(request)}", *RATE_LIMIT_CONTACT)

    result = await gateway.insert_contact(data)
    if isinstance(result, Err):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "PERSISTENCE_FAILED", "message": result.detail},
        )

    submission = result.value
    logger.info(f"Contact message stored: id={submission.id}, subject={data.subject!r}")
    return ContactResponse(id=submission.id, created_at=submission.created_at)
