"""
Unit tests for the voting round state machine.
"""

from planning_poker.models.session import Session
from planning_poker.realtime import voting


def _session(**kwargs) -> Session:
    return Session(session_id="s1", **kwargs)


class TestCastVote:
    """Tests for cast_vote."""

    def test_vote_recorded_while_collecting(self):
        """Test a vote is stored under the voter's username."""
        session = _session()

        assert voting.cast_vote(session, "bob", 5) is True
        assert session.votes == {"bob": 5}

    def test_revote_overwrites(self):
        """Test a second vote by the same user replaces the first."""
        session = _session()
        voting.cast_vote(session, "bob", 5)
        voting.cast_vote(session, "bob", 8)

        assert session.votes == {"bob": 8}

    def test_vote_rejected_after_reveal(self):
        """Test revealed rounds are closed to further votes."""
        session = _session(votes={"bob": 3}, reveal=True)

        assert voting.cast_vote(session, "bob", 13) is False
        assert voting.cast_vote(session, "carol", 1) is False
        assert session.votes == {"bob": 3}

    def test_vote_accepted_while_voting_inactive(self):
        """Test voting_active does not gate votes."""
        session = _session(voting_active=False)
        assert voting.cast_vote(session, "bob", "?") is True

    def test_vote_without_username_rejected(self):
        """Test a connection that never joined cannot vote."""
        session = _session()

        assert voting.cast_vote(session, None, 5) is False
        assert session.votes == {}

    def test_opaque_values_stored_verbatim(self):
        """Test vote values are not interpreted."""
        session = _session()
        voting.cast_vote(session, "bob", {"card": "coffee"})

        assert session.votes["bob"] == {"card": "coffee"}


class TestRoundTransitions:
    """Tests for start, reveal, restart and technique change."""

    def test_start_voting_sets_active(self):
        """Test start_voting only raises the display flag."""
        session = _session(votes={"bob": 2})
        voting.start_voting(session)

        assert session.voting_active is True
        assert session.votes == {"bob": 2}
        assert session.reveal is False

    def test_reveal_votes(self):
        """Test reveal closes the round once."""
        session = _session()

        assert voting.reveal_votes(session) is True
        assert session.reveal is True
        assert voting.reveal_votes(session) is False
        assert session.reveal is True

    def test_restart_resets_everything(self):
        """Test restart returns to a fresh inactive round from any state."""
        session = _session(votes={"bob": 2}, reveal=True, voting_active=True)
        voting.restart_voting(session)

        assert session.votes == {}
        assert session.reveal is False
        assert session.voting_active is False

    def test_restart_reopens_voting(self):
        """Test votes are accepted again after a restart."""
        session = _session(reveal=True)
        voting.restart_voting(session)

        assert voting.cast_vote(session, "bob", 1) is True

    def test_change_sizing_technique_clears_votes(self):
        """Test switching scale discards votes but keeps reveal state."""
        session = _session(votes={"bob": 2}, reveal=True)
        voting.change_sizing_technique(session, "t-shirt")

        assert session.plan_sizing_technique == "t-shirt"
        assert session.votes == {}
        assert session.reveal is True
