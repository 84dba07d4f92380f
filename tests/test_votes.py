"""
Vote tally tests
================
"""

import pytest

from core.database.models import ContributionReview
from core.errors import ConflictError, ForbiddenError, NotFoundError
from contributions.service import ContributionService
from contributions.votes import VoteTally


PAYLOAD = {"make": "Lucid", "model": "Air", "year": 2024}


@pytest.fixture
def contribution(db, staging, alice):
    return ContributionService(db, staging).submit(alice, dict(PAYLOAD))


class TestVoteTally:
    """One +1 per user per contribution, never on your own."""

    def test_votes_are_counted_from_rows(self, db, contribution, bob, carol):
        tally = VoteTally(db)
        assert tally.count(contribution.id) == 0
        assert tally.vote(bob, contribution.id) == 1
        assert tally.vote(carol, contribution.id) == 2
        assert db.query(ContributionReview).filter_by(contribution_id=contribution.id).count() == 2

    def test_self_vote_forbidden(self, db, contribution, alice):
        with pytest.raises(ForbiddenError):
            VoteTally(db).vote(alice, contribution.id)
        assert VoteTally(db).count(contribution.id) == 0

    def test_second_vote_conflicts(self, db, contribution, bob):
        tally = VoteTally(db)
        tally.vote(bob, contribution.id)
        with pytest.raises(ConflictError):
            tally.vote(bob, contribution.id)
        assert tally.count(contribution.id) == 1

    def test_unique_constraint_backs_the_check(self, db, contribution, bob, monkeypatch):
        """A racing duplicate that slips past the lookup still conflicts."""
        tally = VoteTally(db)
        tally.vote(bob, contribution.id)

        original_query = db.query

        def query_without_existing(*entities):
            query = original_query(*entities)
            if entities == (ContributionReview,):
                return query.filter(ContributionReview.id.is_(None))
            return query

        monkeypatch.setattr(db, "query", query_without_existing)
        with pytest.raises(ConflictError):
            tally.vote(bob, contribution.id)

    def test_unknown_contribution(self, db, bob):
        with pytest.raises(NotFoundError):
            VoteTally(db).vote(bob, 4242)

    def test_counts_for_many(self, db, staging, contribution, alice, bob, carol):
        other = ContributionService(db, staging).submit(alice, {"make": "Lucid", "model": "Gravity", "year": 2025})
        tally = VoteTally(db)
        tally.vote(bob, contribution.id)
        tally.vote(carol, contribution.id)

        assert tally.counts([contribution.id, other.id]) == {contribution.id: 2, other.id: 0}
        assert tally.counts([]) == {}
