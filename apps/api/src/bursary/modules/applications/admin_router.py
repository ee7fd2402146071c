"""
Bursary Applications Admin Router

Endpoints for administrators to review applications.
Every endpoint requires a signed-in principal on the admin allow-list.

Endpoints:
- GET   /admin/applications - List applications with filters
- GET   /admin/applications/stats - Dashboard statistics
- GET   /admin/applications/reports - Distributions and trends
- GET   /admin/applications/{id} - Application details
- PATCH /admin/applications/{id}/status - Change status (any status to any status)

Security:
- Allow-list checked on every call, before any data is read
- Rate limiting on status changes
- Status changes are logged with the acting admin
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from bursary.core.auth import get_session
from bursary.core.exceptions import PortalError
from bursary.core.rate_limit import enforce_rate_limit
from bursary.core.session import Session
from bursary.modules.applications.gateway import DataGateway, get_gateway
from bursary.modules.applications.models import ApplicationStatus, ApplicationType
from bursary.modules.applications.review import AdminReviewWorkflow
from bursary.modules.applications.schemas import (
    ApplicationFilters,
    ApplicationListResponse,
    ApplicationResponse,
    DashboardStats,
    ReportResponse,
    SetStatusRequest,
    SetStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_SET_STATUS = (30, 60)  # 30 status changes per minute


# ============================================
# Helper Functions
# ============================================


def _handle_service_error(e: PortalError) -> None:
    """Convert workflow errors to HTTPExceptions."""
    raise HTTPException(status_code=e.status_code, detail=e.to_detail()) from e


def _internal_error(e: Exception, action: str) -> HTTPException:
    logger.exception(f"Error {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


def get_review_workflow(
    gateway: DataGateway = Depends(get_gateway),
    session: Session = Depends(get_session),
) -> AdminReviewWorkflow:
    return AdminReviewWorkflow(gateway, session)


# ============================================
# Endpoints
# ============================================


@router.get(
    "",
    response_model=ApplicationListResponse,
    summary="List Applications",
    description="""
List every application, newest first.

**Filters (all optional):**
- `application_type`: exact match (health, education)
- `status`: exact match
- `school_name`: case-insensitive substring
""",
    responses={
        401: {"description": "Not signed in"},
        403: {"description": "Not an administrator"},
    },
)
async def list_applications(
    application_type: ApplicationType | None = Query(None, description="Filter by type"),
    status_filter: ApplicationStatus | None = Query(None, alias="status", description="Filter by status"),
    school_name: str | None = Query(None, max_length=200, description="School name contains"),
    workflow: AdminReviewWorkflow = Depends(get_review_workflow),
) -> ApplicationListResponse:
    try:
        filters = ApplicationFilters(
            application_type=application_type,
            status=status_filter,
            school_name=school_name.strip() if school_name and school_name.strip() else None,
        )
        applications = await workflow.list_all(filters)
        return ApplicationListResponse(
            applications=[ApplicationResponse.model_validate(app) for app in applications],
            total=len(applications),
        )
    except PortalError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "listing applications") from e


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Dashboard Statistics",
    description="Totals per status and per type, and the approval rate.",
)
async def get_dashboard_stats(
    workflow: AdminReviewWorkflow = Depends(get_review_workflow),
) -> DashboardStats:
    try:
        return await workflow.dashboard_stats()
    except PortalError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "getting dashboard stats") from e


@router.get(
    "/reports",
    response_model=ReportResponse,
    summary="Reports",
    description="""
Reports over all applications: status and type distributions, monthly
submissions by type, top counties and school levels.
""",
)
async def get_reports(
    workflow: AdminReviewWorkflow = Depends(get_review_workflow),
) -> ReportResponse:
    try:
        return await workflow.report()
    except PortalError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "building reports") from e


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get Application Details",
    responses={404: {"description": "Application not found"}},
)
async def get_application(
    application_id: UUID,
    workflow: AdminReviewWorkflow = Depends(get_review_workflow),
) -> ApplicationResponse:
    try:
        application = await workflow.get(application_id)
        return ApplicationResponse.model_validate(application)
    except PortalError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "getting application detail") from e


@router.patch(
    "/{application_id}/status",
    response_model=SetStatusResponse,
    summary="Set Application Status",
    description="""
Record a decision on an application.

Status, reviewer comments, reviewer and review time are updated together.
Any status may be set from any other. The applicant is emailed and the
refreshed dashboard statistics are returned.

**Rate Limit:** 30 requests per minute per admin
""",
    responses={
        404: {"description": "Application not found"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def set_application_status(
    application_id: UUID,
    data: SetStatusRequest,
    workflow: AdminReviewWorkflow = Depends(get_review_workflow),
) -> SetStatusResponse:
    try:
        principal = workflow.session.principal
        if principal is not None and workflow.session.is_admin:
            await enforce_rate_limit(f"admin:set_status:{principal.id}", *RATE_LIMIT_SET_STATUS)

        application, stats = await workflow.set_status(
            application_id,
            data.status,
            data.admin_comments,
        )
        return SetStatusResponse(
            application=ApplicationResponse.model_validate(application),
            stats=stats,
        )
    except HTTPException:
        raise
    except PortalError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "setting application status") from e
