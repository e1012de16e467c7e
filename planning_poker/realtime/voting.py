"""
Voting round state machine.

States are Collecting (``reveal`` false) and Revealed (``reveal`` true).
``voting_active`` is a display flag layered on top; it never gates vote
acceptance. Functions here only mutate the Session; the event router does
authorization and broadcasting.
"""

from typing import Any

from ..models.session import Session
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


def start_voting(session: Session) -> None:
    session.voting_active = True
    logger.debug("Voting started", session_id=session.session_id)


def reveal_votes(session: Session) -> bool:
    """
    Close the round to further votes.

    Returns:
        bool: False if the round was already revealed (no-op)
    """
    if session.reveal:
        return False
    session.reveal = True
    logger.debug("Votes revealed", session_id=session.session_id, votes=len(session.votes))
    return True


def restart_voting(session: Session) -> None:
    """Reset to a fresh, inactive round regardless of prior state."""
    session.reveal = False
    session.voting_active = False
    session.votes = {}
    logger.debug("Voting reset", session_id=session.session_id)


def change_sizing_technique(session: Session, technique: str) -> None:
    """Switch scale; votes cast on the old scale are discarded."""
    session.plan_sizing_technique = technique
    session.votes = {}
    logger.debug("Sizing technique changed", session_id=session.session_id, technique=technique)


def cast_vote(session: Session, username: str | None, value: Any) -> bool:
    """
    Record a vote, overwriting any earlier vote by the same username.

    Returns:
        bool: False if the vote was rejected because the round is revealed
    """
    if session.reveal or username is None:
        return False
    session.votes[username] = value
    return True
