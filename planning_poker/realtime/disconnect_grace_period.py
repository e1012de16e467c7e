"""
Disconnect grace period management for estimation sessions.

When a session's admin connection drops, the session is kept alive for a
grace period so the admin can come back (typically a page reload). If no
join re-elects an admin before the period ends, the room is told the host
has left and the session is deleted.
"""

import asyncio
import time

from ..error_types import ErrorType, create_socket_error_payload
from ..models.session import Session
from ..structured_logging.enhanced_logging_config import get_logger
from .session_registry import SessionRegistry
from .transport import Transport

logger = get_logger(__name__)

GRACE_PERIOD_DURATION = 30.0  # 30 seconds


class SessionReaper:
    """
    Schedules and cancels delayed session deletion.

    The pending task lives on the Session record itself (``delete_task``), so
    cancelling is a lookup on the session rather than a separate index.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        transport: Transport,
        grace_period: float = GRACE_PERIOD_DURATION,
    ) -> None:
        self.registry = registry
        self.transport = transport
        self.grace_period = grace_period

    def schedule(self, session: Session) -> asyncio.Task:
        """
        Start the grace period for a session whose admin disconnected.

        Any task already pending for the session is cancelled first.
        Must be called while holding ``session.lock``.

        Args:
            session: The session whose admin left

        Returns:
            asyncio.Task: The scheduled deletion task
        """
        if session.delete_task is not None:
            logger.debug("Replacing pending grace period", session_id=session.session_id)
            self.cancel(session)

        session.admin.release_pending(time.monotonic() + self.grace_period)
        logger.info(
            "Starting grace period for session",
            session_id=session.session_id,
            admin_connection=session.admin.connection_id,
            duration=self.grace_period,
        )
        task = asyncio.create_task(self._expire(session), name=f"session-reaper:{session.session_id}")
        session.delete_task = task
        return task

    def cancel(self, session: Session) -> bool:
        """
        Cancel a pending deletion (e.g., the admin rejoined).

        Returns:
            bool: True if a pending task was cancelled
        """
        task = session.delete_task
        if task is None:
            return False

        session.delete_task = None
        if not task.done():
            task.cancel()
        logger.info("Cancelled grace period for session", session_id=session.session_id)
        return True

    def is_pending(self, session: Session) -> bool:
        return session.delete_task is not None and not session.delete_task.done()

    async def _expire(self, session: Session) -> None:
        try:
            await asyncio.sleep(session.admin.seconds_until_reclaim_expires() or 0.0)

            async with session.lock:
                # A join may have re-elected the admin while we waited for the lock.
                if session.delete_task is not asyncio.current_task():
                    logger.debug("Grace period superseded", session_id=session.session_id)
                    return
                session.delete_task = None

                if not self.registry.is_registered(session):
                    return

                logger.info(
                    "Grace period expired, deleting session",
                    session_id=session.session_id,
                    admin_connection=session.admin.connection_id,
                )
                try:
                    await self.transport.broadcast(
                        session.session_id,
                        "error",
                        create_socket_error_payload(ErrorType.HOST_LEFT, seconds=self.grace_period),
                    )
                except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: the session must be deleted even if the farewell broadcast fails
                    logger.error(
                        "Error broadcasting host-left notice",
                        session_id=session.session_id,
                        error=str(e),
                        exc_info=True,
                    )
                finally:
                    self.registry.delete(session.session_id)
        except asyncio.CancelledError:
            logger.debug("Grace period task cancelled", session_id=session.session_id)
            raise

    async def shutdown(self) -> None:
        """Cancel every pending deletion task (application shutdown)."""
        tasks = []
        for session in self.registry:
            task = session.delete_task
            if task is not None and not task.done():
                task.cancel()
                tasks.append(task)
            session.delete_task = None
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Session reaper shut down", cancelled=len(tasks))
