"""
Submission Workflow

Turns a complete draft into a persisted application exactly once:

1. A draft that was already submitted returns its existing reference.
2. Every wizard step must be complete, mandatory documents included.
3. Without a principal the draft is saved as awaiting authentication and
   the workflow subscribes to the session; the first sign-in resumes the
   submission once and unsubscribes.
4. The draft is claimed in the draft store. A second request submitting
   the same draft meanwhile gets SubmissionInProgressError, and one that
   arrives after the insert gets the existing reference.
5. Documents upload one at a time in a fixed order. The first failure
   aborts; nothing is inserted.
6. The application is inserted with status pending.

Failures leave the draft (fields, documents and current step) untouched so
the applicant can retry without re-entering anything.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from uuid import UUID

from bursary.core.email import send_application_received
from bursary.core.exceptions import (
    AuthRequiredError,
    NotFoundError,
    PersistenceFailureError,
    PortalError,
    SubmissionInProgressError,
    UploadFailureError,
)
from bursary.core.result import Err
from bursary.core.session import Principal, Session
from bursary.modules.applications.drafts import DRAFT_NOT_FOUND_MESSAGE, Draft, DraftStore
from bursary.modules.applications.gateway import DataGateway
from bursary.modules.applications.models import (
    DOCUMENT_LABELS,
    DOCUMENT_ORDER,
    Application,
    DocumentType,
)
from bursary.modules.applications.wizard import ApplicationWizard

logger = logging.getLogger(__name__)


@dataclass
class SubmissionOutcome:
    """Terminal state of a submitted draft."""

    application_id: UUID
    application: Application | None = None
    already_submitted: bool = False

    @property
    def reference_id(self) -> str:
        return str(self.application_id)


def document_key(
    principal_id: UUID,
    document_type: DocumentType,
    extension: str,
    timestamp_ms: int | None = None,
) -> str:
    """Storage key ``{principal}/{document_type}-{millis}.{ext}``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{principal_id}/{document_type.value}-{timestamp_ms}.{extension}"


class SubmissionWorkflow:
    """
    Submits drafts for one session.

    Submit and resume calls on one workflow are serialised by a local lock.
    Across workflows (and processes) the draft store's submission claim
    keeps a draft from being inserted twice.
    """

    def __init__(self, gateway: DataGateway, draft_store: DraftStore, session: Session):
        self.gateway = gateway
        self.draft_store = draft_store
        self.session = session
        self._lock = asyncio.Lock()
        self._unsubscribe = None
        self.resume_outcome: SubmissionOutcome | None = None
        self.resume_error: PortalError | None = None

    @property
    def is_waiting_for_sign_in(self) -> bool:
        return self._unsubscribe is not None

    async def submit(self, draft: Draft) -> SubmissionOutcome:
        """
        Submit ``draft``.

        Raises:
            ValidationError: A step or mandatory document is incomplete
            AuthRequiredError: No principal yet (submission resumes on sign-in)
            NotFoundError: The draft belongs to another principal
            SubmissionInProgressError: Another request is submitting this draft
            UploadFailureError: A document could not be stored
            PersistenceFailureError: The insert failed
        """
        async with self._lock:
            return await self._submit(draft)

    async def _submit(self, draft: Draft) -> SubmissionOutcome:
        if draft.is_submitted:
            logger.info(f"Draft {draft.id} already submitted as {draft.submitted_application_id}")
            return SubmissionOutcome(draft.submitted_application_id, already_submitted=True)

        wizard = ApplicationWizard(draft)
        wizard.validate_all()

        principal = self.session.principal
        if principal is None:
            draft.awaiting_auth = True
            await self.draft_store.save(draft)
            self.resume_after_sign_in(draft.id)
            raise AuthRequiredError(
                "Please sign in to submit your application. Your answers have been saved."
            )

        if not draft.is_accessible_by(principal.id):
            logger.warning(f"{principal} tried to submit draft {draft.id} owned by {draft.owner_id}")
            raise NotFoundError(DRAFT_NOT_FOUND_MESSAGE)

        # Reject bad values before anything is uploaded
        wizard.build_payload(principal.id, {})

        if not await self.draft_store.claim_submission(draft.id):
            logger.warning(f"Draft {draft.id} is already being submitted")
            raise SubmissionInProgressError()
        try:
            return await self._submit_claimed(draft, wizard, principal)
        finally:
            await self.draft_store.release_submission(draft.id)

    async def _submit_claimed(
        self,
        draft: Draft,
        wizard: ApplicationWizard,
        principal: Principal,
    ) -> SubmissionOutcome:
        # Another request may have finished between our load and the claim
        stored = await self.draft_store.get(draft.id)
        if stored is not None and stored.is_submitted:
            draft.submitted_application_id = stored.submitted_application_id
            logger.info(f"Draft {draft.id} was submitted concurrently as {stored.submitted_application_id}")
            return SubmissionOutcome(stored.submitted_application_id, already_submitted=True)

        document_urls = await self._upload_documents(principal.id, draft)
        payload = wizard.build_payload(principal.id, document_urls)

        result = await self.gateway.insert_application(payload)
        if isinstance(result, Err):
            logger.error(f"Insert failed for draft {draft.id}: {result.detail}")
            raise PersistenceFailureError(result.detail)

        application = result.value
        draft.owner_id = principal.id
        draft.submitted_application_id = application.id
        draft.awaiting_auth = False
        await self.draft_store.save(draft)

        logger.info(
            f"Application submitted: id={application.id}, type={application.application_type.value}, "
            f"owner={principal.id}"
        )

        await self._send_confirmation(application)
        return SubmissionOutcome(application.id, application)

    async def _upload_documents(self, principal_id: UUID, draft: Draft) -> dict[DocumentType, str]:
        urls: dict[DocumentType, str] = {}
        for document_type in DOCUMENT_ORDER:
            attachment = draft.documents.get(document_type)
            if attachment is None:
                continue

            key = document_key(principal_id, document_type, attachment.extension)
            result = await self.gateway.upload_document(key, attachment.content)
            if isinstance(result, Err):
                logger.error(f"Upload of {document_type.value} failed for draft {draft.id}: {result.detail}")
                raise UploadFailureError(
                    document_type.value,
                    DOCUMENT_LABELS[document_type],
                    result.detail,
                )
            urls[document_type] = result.value
        return urls

    async def _send_confirmation(self, application: Application) -> None:
        try:
            await send_application_received(
                to_email=application.email,
                applicant_name=application.full_name,
                application_type=application.application_type.value,
                reference_id=str(application.id),
            )
        except Exception as e:
            logger.error(f"Failed to send confirmation for application {application.id}: {e}")

    # ============================================
    # Resume after authentication
    # ============================================

    def resume_after_sign_in(self, draft_id: UUID) -> None:
        """
        Submit ``draft_id`` once, the next time the session gains a principal.

        The outcome lands in ``resume_outcome`` (or ``resume_error``).
        """
        if self._unsubscribe is not None:
            return

        async def on_session_change(session: Session) -> None:
            if session.principal is None:
                return
            self._stop_waiting()
            await self._resume(draft_id)

        self._unsubscribe = self.session.subscribe(on_session_change)

    def _stop_waiting(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _resume(self, draft_id: UUID) -> None:
        draft = await self.draft_store.get(draft_id)
        if draft is None:
            self.resume_error = NotFoundError(
                "Your saved application has expired. Please fill in the form again."
            )
            return

        logger.info(f"Resuming submission of draft {draft_id} after sign-in")
        try:
            self.resume_outcome = await self.submit(draft)
        except PortalError as e:
            logger.warning(f"Resumed submission of draft {draft_id} failed: {e.message}")
            self.resume_error = e
