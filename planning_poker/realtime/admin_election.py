"""
Admin election rules for estimation sessions.

Invoked on every join and every disconnect. All functions must be called
while holding ``session.lock``.

Two connections joining under the designated admin username both satisfy
the join rule; the later one wins. No mutual exclusion is enforced.
"""

from ..exceptions import ErrorContext, UnauthorizedActionError
from ..models.session import Session
from ..structured_logging.enhanced_logging_config import get_logger
from .disconnect_grace_period import SessionReaper

logger = get_logger(__name__)


def is_admin_candidate(session: Session, username: str) -> bool:
    """An open session elects any joiner; otherwise only the designated name."""
    return session.is_open or session.admin_username == username


def elect_on_join(session: Session, connection_id: str, username: str, reaper: SessionReaper) -> bool:
    """
    Apply the join rule.

    The joining connection becomes admin (displacing any previous holder,
    including a departed one) when it is a candidate. Election also cancels
    a pending deletion.

    Returns:
        bool: True if the joining connection is now the admin
    """
    if not is_admin_candidate(session, username):
        return False

    reaper.cancel(session)
    previous = session.admin.connection_id
    session.admin.hold(connection_id)
    logger.info(
        "Admin elected",
        session_id=session.session_id,
        username=username,
        connection_id=connection_id,
        previous_connection=previous,
    )
    return True


def handle_departure(session: Session, connection_id: str, reaper: SessionReaper) -> bool:
    """
    Apply the disconnect rule.

    Only the current admin's departure has any effect: the admin slot moves
    to pending-reclaim and the reaper starts the grace period.

    Returns:
        bool: True if the departing connection was the admin
    """
    if not session.admin.is_held_by(connection_id):
        return False
    reaper.schedule(session)
    return True


def require_admin(session: Session, connection_id: str, action: str) -> None:
    """
    Raise UnauthorizedActionError unless the connection currently holds admin.

    Raises:
        UnauthorizedActionError: The connection is not the session's admin
    """
    if session.admin.is_held_by(connection_id):
        return
    raise UnauthorizedActionError(
        f"Connection is not the admin for {action}",
        ErrorContext(session_id=session.session_id, connection_id=connection_id, event=action),
        action=action,
    )
