"""
Status Lookup

Lets a signed-in applicant browse their own applications and find one by
reference id. Lookups only ever search the caller's own applications, so a
reference id belonging to somebody else is simply "not found".

Progress and history are derived from the stored status and review
timestamp on every read; they are never stored.
"""

import logging
from collections.abc import Sequence

from bursary.core.exceptions import AuthRequiredError, NotFoundError, PersistenceFailureError
from bursary.core.result import Err
from bursary.core.session import Session
from bursary.modules.applications.gateway import DataGateway
from bursary.modules.applications.models import Application, ApplicationStatus
from bursary.modules.applications.schemas import ApplicationStatusView, StatusMilestone

logger = logging.getLogger(__name__)

PROGRESS_BY_STATUS: dict[ApplicationStatus, int] = {
    ApplicationStatus.PENDING: 25,
    ApplicationStatus.UNDER_REVIEW: 50,
    ApplicationStatus.APPROVED: 100,
    ApplicationStatus.REJECTED: 100,
}

STATUS_LABELS: dict[ApplicationStatus, str] = {
    ApplicationStatus.PENDING: "Pending",
    ApplicationStatus.UNDER_REVIEW: "Under Review",
    ApplicationStatus.APPROVED: "Approved",
    ApplicationStatus.REJECTED: "Rejected",
}

STATUS_DESCRIPTIONS: dict[ApplicationStatus, str] = {
    ApplicationStatus.PENDING: (
        "Your application has been received and is waiting to be reviewed."
    ),
    ApplicationStatus.UNDER_REVIEW: (
        "Our team is reviewing your application. The decision will be sent via email."
    ),
    ApplicationStatus.APPROVED: "Congratulations! Your application has been approved.",
    ApplicationStatus.REJECTED: (
        "Your application was not approved. See the reviewer comments for details."
    ),
}

DECISION_STATUSES = (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED)


async def list_own(gateway: DataGateway, session: Session) -> list[Application]:
    """
    All applications owned by the session's principal, newest first.

    Raises:
        AuthRequiredError: No principal in the session
        PersistenceFailureError: The store could not be read
    """
    if session.principal is None:
        raise AuthRequiredError("Please sign in to view your applications.")

    result = await gateway.select_own(session.principal.id)
    if isinstance(result, Err):
        raise PersistenceFailureError(result.detail)
    return result.value


def find_by_reference(owned: Sequence[Application], reference_id: str) -> Application:
    """
    Exact match of ``reference_id`` (trimmed) against already-fetched applications.

    Raises:
        NotFoundError: No owned application has that id
    """
    wanted = reference_id.strip()
    for application in owned:
        if str(application.id) == wanted:
            return application
    raise NotFoundError()


def progress_for(status: ApplicationStatus | str) -> int:
    """
    Progress percentage for a status.

    Raises:
        ValueError: Not a known status
    """
    return PROGRESS_BY_STATUS[ApplicationStatus(status)]


def build_status_history(application: Application) -> list[StatusMilestone]:
    """
    Milestones reached so far (one to three entries).

    Submitted is always present; Under Review once the status has moved past
    pending; Approved or Rejected for a decision.
    """
    status = ApplicationStatus(application.status)
    history = [StatusMilestone(name="Application Submitted", reached_at=application.created_at)]

    if status != ApplicationStatus.PENDING:
        history.append(StatusMilestone(name="Under Review", reached_at=application.reviewed_at))

    if status in DECISION_STATUSES:
        history.append(StatusMilestone(name=STATUS_LABELS[status], reached_at=application.reviewed_at))

    return history


def build_status_view(application: Application) -> ApplicationStatusView:
    """Applicant-facing status for one application."""
    status = ApplicationStatus(application.status)
    return ApplicationStatusView(
        reference_id=str(application.id),
        application_type=application.application_type,
        school_name=application.school_name,
        status=status,
        status_label=STATUS_LABELS[status],
        status_description=STATUS_DESCRIPTIONS[status],
        progress=progress_for(status),
        submitted_at=application.created_at,
        admin_comments=application.admin_comments,
        history=build_status_history(application),
    )
