"""
Admin Review Workflow

Everything administrators do with applications: browse and filter the full
list, open one application, change its status and read the dashboard
statistics and reports.

Every call checks the session first. Anonymous callers get
``AuthRequiredError`` and signed-in non-admins get ``AccessDeniedError``
before any data is read.
"""

import logging
from collections import Counter
from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID

from bursary.core.email import send_status_update
from bursary.core.exceptions import (
    AccessDeniedError,
    AuthRequiredError,
    NotFoundError,
    PersistenceFailureError,
)
from bursary.core.result import Err, ErrorKind, Result
from bursary.core.session import Principal, Session
from bursary.modules.applications.gateway import DataGateway
from bursary.modules.applications.models import Application, ApplicationStatus, ApplicationType
from bursary.modules.applications.schemas import (
    ApplicationFilters,
    CountBucket,
    DashboardStats,
    MonthlyBucket,
    ReportResponse,
)
from bursary.modules.applications.status import STATUS_LABELS

logger = logging.getLogger(__name__)

TOP_COUNTIES = 5
TREND_MONTHS = 6


# ============================================
# Analytics (derived from a fetched list)
# ============================================


def approval_rate(applications: Sequence[Application]) -> float:
    """Approved applications as a percentage of all, one decimal place."""
    if not applications:
        return 0.0
    approved = sum(1 for app in applications if app.status == ApplicationStatus.APPROVED)
    return round(approved * 100 / len(applications), 1)


def compute_dashboard_stats(applications: Sequence[Application]) -> DashboardStats:
    """Counts per status and per type, plus the approval rate."""
    by_status = Counter(ApplicationStatus(app.status) for app in applications)
    by_type = Counter(ApplicationType(app.application_type) for app in applications)

    return DashboardStats(
        total=len(applications),
        pending=by_status[ApplicationStatus.PENDING],
        under_review=by_status[ApplicationStatus.UNDER_REVIEW],
        approved=by_status[ApplicationStatus.APPROVED],
        rejected=by_status[ApplicationStatus.REJECTED],
        health=by_type[ApplicationType.HEALTH],
        education=by_type[ApplicationType.EDUCATION],
        approval_rate=approval_rate(applications),
    )


def _monthly_trend(applications: Sequence[Application], months: int) -> list[MonthlyBucket]:
    counts: dict[str, Counter] = {}
    for app in applications:
        month = app.created_at.strftime("%Y-%m")
        counts.setdefault(month, Counter())[ApplicationType(app.application_type)] += 1

    buckets = [
        MonthlyBucket(
            month=month,
            education=counter[ApplicationType.EDUCATION],
            health=counter[ApplicationType.HEALTH],
            total=counter.total(),
        )
        for month, counter in sorted(counts.items())
    ]
    return buckets[-months:]


def build_report(applications: Sequence[Application]) -> ReportResponse:
    """
    Admin report over all applications.

    Includes status and type distributions, the monthly trend by type for
    the most recent months with submissions, the counties with the most
    applications and a breakdown by school level.
    """
    by_status = Counter(ApplicationStatus(app.status) for app in applications)
    by_type = Counter(ApplicationType(app.application_type) for app in applications)
    by_county = Counter(app.county for app in applications)
    by_level = Counter(app.school_level.strip().title() for app in applications)

    return ReportResponse(
        total=len(applications),
        approval_rate=approval_rate(applications),
        status_distribution=[
            CountBucket(label=STATUS_LABELS[status], count=by_status[status])
            for status in ApplicationStatus
        ],
        type_distribution=[
            CountBucket(label=app_type.value.title(), count=by_type[app_type])
            for app_type in ApplicationType
        ],
        monthly_trend=_monthly_trend(applications, TREND_MONTHS),
        top_counties=[
            CountBucket(label=county, count=count)
            for county, count in by_county.most_common(TOP_COUNTIES)
        ],
        school_levels=[
            CountBucket(label=level, count=count) for level, count in by_level.most_common()
        ],
    )


# ============================================
# Workflow
# ============================================


class AdminReviewWorkflow:
    """
    Review operations for one admin session.

    ``applications`` and ``stats`` hold the last full (unfiltered) list and
    its statistics; they are refreshed after every status change.
    """

    def __init__(self, gateway: DataGateway, session: Session):
        self.gateway = gateway
        self.session = session
        self.applications: list[Application] = []
        self.stats: DashboardStats | None = None

    def _require_admin(self) -> Principal:
        principal = self.session.principal
        if principal is None:
            raise AuthRequiredError("Please sign in as an administrator.")
        if not self.session.is_admin:
            logger.warning(f"Access denied: {principal} is not on the admin allow-list")
            raise AccessDeniedError()
        return principal

    @staticmethod
    def _unwrap(result: Result, not_found_message: str = "Application not found."):
        if isinstance(result, Err):
            if result.kind == ErrorKind.NOT_FOUND:
                raise NotFoundError(not_found_message)
            raise PersistenceFailureError(result.detail)
        return result.value

    async def list_all(self, filters: ApplicationFilters | None = None) -> list[Application]:
        """Every application matching ``filters``, newest first."""
        self._require_admin()
        applications = self._unwrap(await self.gateway.select_all(filters))

        is_unfiltered = filters is None or not filters.model_dump(exclude_none=True)
        if is_unfiltered:
            self.applications = applications
            self.stats = compute_dashboard_stats(applications)
        return applications

    async def get(self, application_id: UUID) -> Application:
        self._require_admin()
        return self._unwrap(await self.gateway.get_application(application_id))

    async def refresh(self) -> DashboardStats:
        """Reload the full list and recompute the dashboard statistics."""
        await self.list_all()
        return self.stats

    async def dashboard_stats(self) -> DashboardStats:
        return await self.refresh()

    async def report(self) -> ReportResponse:
        return build_report(await self.list_all())

    async def set_status(
        self,
        application_id: UUID,
        new_status: ApplicationStatus,
        comment: str | None = None,
    ) -> tuple[Application, DashboardStats | None]:
        """
        Record a decision.

        Any status may follow any other. Status, comment, reviewer and review
        time are written in one update; nothing else changes.

        Returns:
            The updated application and the refreshed dashboard statistics
            (the last known statistics, or None, when the refresh fails; the
            update itself is already committed)

        Raises:
            NotFoundError: Unknown application id
            PersistenceFailureError: The update failed
        """
        principal = self._require_admin()

        application = self._unwrap(
            await self.gateway.update_review(
                application_id,
                new_status,
                comment,
                principal.id,
                datetime.now(UTC),
            )
        )

        logger.info(
            f"Application {application_id} set to {new_status.value} by admin {principal.id}"
        )

        await self._notify_applicant(application)
        try:
            stats = await self.refresh()
        except PersistenceFailureError as e:
            logger.error(f"Application {application_id} updated but dashboard refresh failed: {e.message}")
            stats = self.stats
        return application, stats

    async def _notify_applicant(self, application: Application) -> None:
        try:
            await send_status_update(
                to_email=application.email,
                applicant_name=application.full_name,
                reference_id=str(application.id),
                status=ApplicationStatus(application.status).value,
                admin_comments=application.admin_comments,
            )
        except Exception as e:
            logger.error(f"Failed to send status update for application {application.id}: {e}")
