"""
Bursary Applications Router

Applicant-facing endpoints: the five-step wizard, submission, status lookup
and location reference data.

Endpoints:
- POST   /applications/drafts - Start a new wizard draft
- GET    /applications/drafts/{id} - Current wizard state
- PATCH  /applications/drafts/{id}/fields - Set field values
- POST   /applications/drafts/{id}/advance - Next step (validates the current one)
- POST   /applications/drafts/{id}/retreat - Previous step
- PUT    /applications/drafts/{id}/documents/{type} - Attach a document
- DELETE /applications/drafts/{id}/documents/{type} - Remove a document
- DELETE /applications/drafts/{id} - Discard a draft
- POST   /applications/drafts/{id}/submit - Submit the application
- GET    /applications/mine - The caller's applications with status
- GET    /applications/lookup - Find one of the caller's applications by reference id
- GET    /applications/locations/counties - Kenyan counties
- GET    /applications/locations/counties/{county}/sub-counties - Sub-counties of a county

Drafts need no account. Submitting anonymously saves the draft and answers
401 with the draft id; signing in with ``resume_draft_id`` completes it.
Once a signed-in principal touches a draft it belongs to them, and other
callers get 404 for it.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from bursary.core.auth import get_session
from bursary.core.exceptions import AuthRequiredError, NotFoundError, PortalError
from bursary.core.session import Session
from bursary.modules.applications import locations
from bursary.modules.applications import status as status_lookup
from bursary.modules.applications.drafts import (
    DRAFT_NOT_FOUND_MESSAGE,
    DocumentAttachment,
    Draft,
    DraftStore,
    get_draft_store,
)
from bursary.modules.applications.gateway import DataGateway, get_gateway
from bursary.modules.applications.models import DocumentType
from bursary.modules.applications.schemas import (
    ApplicationResponse,
    ApplicationStatusListResponse,
    ApplicationStatusView,
    CountyListResponse,
    DraftDocument,
    DraftFieldsUpdate,
    DraftResponse,
    SubCountyListResponse,
    SubmissionResponse,
)
from bursary.modules.applications.submission import SubmissionOutcome, SubmissionWorkflow
from bursary.modules.applications.wizard import ApplicationWizard

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Helper Functions
# ============================================


def _handle_service_error(e: PortalError) -> None:
    """Convert workflow errors to HTTPExceptions."""
    raise HTTPException(status_code=e.status_code, detail=e.to_detail()) from e


def _internal_error(e: Exception, action: str) -> HTTPException:
    logger.exception(f"Unexpected error {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


async def _load_draft(store: DraftStore, draft_id: UUID, session: Session) -> Draft:
    principal_id = session.principal.id if session.principal is not None else None
    draft = await store.load_for(draft_id, principal_id)
    if draft is None:
        raise NotFoundError(DRAFT_NOT_FOUND_MESSAGE)
    return draft


def draft_to_response(draft: Draft) -> DraftResponse:
    """Wizard state without document bytes."""
    wizard = ApplicationWizard(draft)
    missing = wizard.missing_fields(draft.current_step)
    return DraftResponse(
        id=draft.id,
        current_step=draft.current_step,
        fields=draft.fields,
        documents=[
            DraftDocument(
                document_type=document_type,
                filename=attachment.filename,
                content_type=attachment.content_type,
                size=attachment.size,
            )
            for document_type, attachment in draft.documents.items()
        ],
        step_valid=not missing,
        missing_fields=missing,
        awaiting_auth=draft.awaiting_auth,
        submitted_application_id=draft.submitted_application_id,
    )


def submission_to_response(outcome: SubmissionOutcome) -> SubmissionResponse:
    return SubmissionResponse(
        reference_id=outcome.reference_id,
        already_submitted=outcome.already_submitted,
        application=(
            ApplicationResponse.model_validate(outcome.application)
            if outcome.application is not None
            else None
        ),
    )


# ============================================
# Wizard drafts
# ============================================


@router.post(
    "/drafts",
    response_model=DraftResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start Application",
    description="""
Start a new application draft at step 1 (Personal Information).

Drafts are kept for a limited time (DRAFT_TTL_HOURS) and are never saved
as applications until submitted.
""",
)
async def create_draft(
    store: DraftStore = Depends(get_draft_store),
    session: Session = Depends(get_session),
) -> DraftResponse:
    try:
        owner_id = session.principal.id if session.principal is not None else None
        draft = await store.create(owner_id=owner_id)
        return draft_to_response(draft)
    except Exception as e:
        raise _internal_error(e, "creating draft") from e


@router.get(
    "/drafts/{draft_id}",
    response_model=DraftResponse,
    summary="Get Draft",
    responses={404: {"description": "Draft not found or expired"}},
)
async def get_draft(
    draft_id: UUID,
    store: DraftStore = Depends(get_draft_store),
    session: Session = Depends(get_session),
) -> DraftResponse:
    try:
        return draft_to_response(await _load_draft(store, draft_id, session))
    except PortalError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "loading draft") from e


@router.patch(
    "/drafts/{draft_id}/fields",
    response_model=DraftResponse,
    summary="Set Draft Fields",
    description="""
Set one or more field values. Changing **county** clears **sub_county**
unless a new sub_county is sent in the same request.
""",
    responses={
        404: {"description": "Draft not found or expired"},
        409: {"description": "Draft already submitted"},
        422: {"description": "Unknown field name"},
    },
)
async def update_draft_fields(
    draft_id: UUID,
    data: DraftFieldsUpdate,
    store: DraftStore = Depends(get_draft_store),
    session: Session = Depends(get_session),
) -> DraftResponse:
    try:
        draft = await _load_draft(store, draft_id, session)
        ApplicationWizard(draft).set_fields(data.fields)
        await store.save(draft)
        return draft_to_response(draft)
    except PortalError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "updating draft fields") from e


@router.post(
    "/drafts/{draft_id}/advance",
    response_model=DraftResponse,
    summary="Next Step",
    description="""
Move to the next step. The current step must be complete; otherwise a 422
names the step and its missing fields and the draft stays where it is.
""",
    responses={
        404: {"description": "Draft not found or expired"},
        422: {
            "description": "Current step incomplete",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "VALIDATION_ERROR",
                            "message": "Please complete Location (step 2). Missing: village.",
                            "step": 2,
                            "missing": ["village"],
                        }
                    }
                }
            },
        },
    },
)
async def advance_draft(
    draft_id: UUID,
    store: DraftStore = Depends(get_draft_store),
    session: Session = Depends(get_session),
) -> DraftResponse:
    try:
        draft = await _load_draft(store, draft_id, session)
        ApplicationWizard(draft).advance()
        await store.save(draft)
        return draft_to_response(draft)
    except PortalError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "advancing draft") from e


@router.post(
    "/drafts/{draft_id}/retreat",
    response_model=DraftResponse,
    summary="Previous Step",
)
async def retreat_draft(
    draft_id: UUID,
    store: DraftStore = Depends(get_draft_store),
    session: Session = Depends(get_session),
) -> DraftResponse:
    try:
        draft = await _load_draft(store, draft_id, session)
        ApplicationWizard(draft).retreat()
        await store.save(draft)
        return draft_to_response(draft)
    except PortalError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "retreating draft") from e


@router.put(
    "/drafts/{draft_id}/documents/{document_type}",
    response_model=DraftResponse,
    summary="Attach Document",
    description="""
Attach a supporting document (PDF, JPG or PNG). The ID document and the
school fees structure are required before submitting.
""",
)
async def attach_document(
    draft_id: UUID,
    document_type: DocumentType,
    file: UploadFile = File(...),
    store: DraftStore = Depends(get_draft_store),
    session: Session = Depends(get_session),
) -> DraftResponse:
    try:
        draft = await _load_draft(store, draft_id, session)
        content = await file.read()
        attachment = DocumentAttachment(
            filename=file.filename or document_type.value,
            content_type=file.content_type or "application/octet-stream",
            content=content,
        )
        ApplicationWizard(draft).attach_document(document_type, attachment)
        await store.save(draft)
        logger.info(f"Attached {document_type.value} to draft {draft_id} ({attachment.size} bytes)")
        return draft_to_response(draft)
    except PortalError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "attaching document") from e
    finally:
        await file.close()


@router.delete(
    "/drafts/{draft_id}/documents/{document_type}",
    response_model=DraftResponse,
    summary="Remove Document",
)
async def detach_document(
    draft_id: UUID,
    document_type: DocumentType,
    store: DraftStore = Depends(get_draft_store),
    session: Session = Depends(get_session),
) -> DraftResponse:
    try:
        draft = await _load_draft(store, draft_id, session)
        ApplicationWizard(draft).detach_document(document_type)
        await store.save(draft)
        return draft_to_response(draft)
    except PortalError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "removing document") from e


@router.delete(
    "/drafts/{draft_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Discard Draft",
    description="Delete a draft and its attached files. Submitted applications are not affected.",
    responses={404: {"description": "Draft not found or expired"}},
)
async def discard_draft(
    draft_id: UUID,
    store: DraftStore = Depends(get_draft_store),
    session: Session = Depends(get_session),
) -> None:
    try:
        draft = await _load_draft(store, draft_id, session)
        await store.delete(draft.id)
        logger.info(f"Discarded draft {draft_id}")
    except PortalError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "discarding draft") from e


@router.post(
    "/drafts/{draft_id}/submit",
    response_model=SubmissionResponse,
    summary="Submit Application",
    description="""
Submit a complete draft.

**Flow:**
1. Every step is validated, including the mandatory documents
2. Documents are uploaded one at a time; the first failure aborts
3. The application is saved with status *pending*

Anonymous callers get a 401 carrying `draft_id`; signing in with
`resume_draft_id` finishes the submission. Submitting an already submitted
draft returns the existing reference id.
""",
    responses={
        401: {"description": "Sign-in required; the draft is kept"},
        404: {"description": "Draft not found or expired"},
        409: {"description": "The draft is already being submitted"},
        422: {"description": "A step or mandatory document is incomplete"},
        502: {"description": "A document upload failed"},
        503: {"description": "The application could not be saved"},
    },
)
async def submit_draft(
    draft_id: UUID,
    store: DraftStore = Depends(get_draft_store),
    gateway: DataGateway = Depends(get_gateway),
    session: Session = Depends(get_session),
) -> SubmissionResponse:
    try:
        draft = await _load_draft(store, draft_id, session)
        workflow = SubmissionWorkflow(gateway, store, session)
        outcome = await workflow.submit(draft)
        return submission_to_response(outcome)
    except AuthRequiredError as e:
        detail = e.to_detail()
        detail["draft_id"] = str(draft_id)
        raise HTTPException(
            status_code=e.status_code,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except PortalError as e:
        logger.warning(f"Submission of draft {draft_id} failed: {e.message}")
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "submitting application") from e


# ============================================
# Status lookup
# ============================================


@router.get(
    "/mine",
    response_model=ApplicationStatusListResponse,
    summary="My Applications",
    description="All of the caller's applications, newest first, with progress and history.",
)
async def list_my_applications(
    gateway: DataGateway = Depends(get_gateway),
    session: Session = Depends(get_session),
) -> ApplicationStatusListResponse:
    try:
        owned = await status_lookup.list_own(gateway, session)
        views = [status_lookup.build_status_view(app) for app in owned]
        return ApplicationStatusListResponse(applications=views, total=len(views))
    except PortalError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "listing own applications") from e


@router.get(
    "/lookup",
    response_model=ApplicationStatusView,
    summary="Track Application",
    description="""
Find one of the caller's applications by its reference id.

Only the caller's own applications are searched: an id that belongs to
someone else is reported as not found.
""",
    responses={404: {"description": "No owned application has that reference id"}},
)
async def lookup_application(
    reference_id: str = Query(..., min_length=1, max_length=100),
    gateway: DataGateway = Depends(get_gateway),
    session: Session = Depends(get_session),
) -> ApplicationStatusView:
    try:
        owned = await status_lookup.list_own(gateway, session)
        application = status_lookup.find_by_reference(owned, reference_id)
        return status_lookup.build_status_view(application)
    except PortalError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "looking up application") from e


# ============================================
# Location reference data
# ============================================


@router.get(
    "/locations/counties",
    response_model=CountyListResponse,
    summary="List Counties",
)
async def list_counties() -> CountyListResponse:
    return CountyListResponse(counties=list(locations.COUNTIES))


@router.get(
    "/locations/counties/{county}/sub-counties",
    response_model=SubCountyListResponse,
    summary="List Sub-Counties",
    description="Known sub-counties of a county. An empty list means any value is accepted.",
    responses={404: {"description": "Unknown county"}},
)
async def list_sub_counties(county: str) -> SubCountyListResponse:
    if not locations.is_known_county(county):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "UNKNOWN_COUNTY", "message": f"Unknown county: {county}"},
        )
    return SubCountyListResponse(county=county, sub_counties=locations.sub_counties_for(county))
