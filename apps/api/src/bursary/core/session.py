"""
Session / Identity Provider

Holds the current principal for one interaction and notifies subscribers
whenever it changes. Workflows that must wait for a sign-in (deferred
submission) subscribe here instead of polling.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from uuid import UUID

logger = logging.getLogger(__name__)

SessionListener = Callable[["Session"], Awaitable[None]]
AdminLookup = Callable[[UUID], Awaitable[bool]]


@dataclass(frozen=True)
class Principal:
    """An authenticated identity."""

    id: UUID
    email: str
    full_name: str | None = None

    def __str__(self) -> str:
        return f"Principal(id={self.id}, email={self.email})"


class Session:
    """
    Current principal plus admin flag, with change notifications.

    Args:
        admin_lookup: Async callable answering "is this principal an admin?".
            Lookup failures are treated as "not admin".
    """

    def __init__(self, admin_lookup: AdminLookup | None = None):
        self._admin_lookup = admin_lookup
        self._listeners: list[SessionListener] = []
        self.principal: Principal | None = None
        self.is_admin: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Register ``listener`` for session changes.

        Returns:
            A callable that removes the listener (safe to call twice)
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _resolve_admin(self, principal: Principal) -> bool:
        if self._admin_lookup is None:
            return False
        try:
            return bool(await self._admin_lookup(principal.id))
        except Exception as e:
            logger.warning(f"Admin lookup failed for {principal.id}, treating as non-admin: {e}")
            return False

    async def _notify(self) -> None:
        # Copy: listeners may unsubscribe themselves while running
        for listener in list(self._listeners):
            try:
                await listener(self)
            except Exception:
                logger.exception("Session listener failed")

    async def restore(self, principal: Principal) -> None:
        """Attach an already-authenticated principal without notifying listeners."""
        self.principal = principal
        self.is_admin = await self._resolve_admin(principal)

    async def sign_in(self, principal: Principal) -> None:
        """Set the principal, resolve admin privilege and notify listeners."""
        self.principal = principal
        self.is_admin = await self._resolve_admin(principal)
        logger.info(f"Session signed in: {principal.id} (admin={self.is_admin})")
        await self._notify()

    async def sign_out(self) -> None:
        """Clear the principal and notify listeners."""
        if self.principal is not None:
            logger.info(f"Session signed out: {self.principal.id}")
        self.principal = None
        self.is_admin = False
        await self._notify()
