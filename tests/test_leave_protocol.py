"""
Tests for the Club Leave Protocol (service level)

Tests cover:
- Non-owner leave
- Owner leave without a disposition
- Ownership transfer and every transfer rejection
- Closing a club
- Repeating a leave request
- Two transfers racing from the same owner, and the row lock they queue on
- Rollback leaves no partial state
"""

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Session

from bookclub.models import Club, ClubMembership, User
from bookclub.services import membership
from bookclub.services import membership_store as store
from bookclub.services.errors import (
    ClubNameTaken,
    ClubNotFound,
    InvalidDisposition,
    NewOwnerNotAMember,
    NewOwnerNotApproved,
    NewOwnerRequired,
    NotAMember,
    OwnerDispositionRequired,
    SameOwner,
)
from bookclub.services.membership import CloseClub, LeaveOutcome, TransferOwnership


# =============================================================================
# Helper Functions
# =============================================================================


def member_ids(db: Session, club_id: int) -> list[int]:
    rows = db.execute(
        select(ClubMembership.user_id)
        .where(ClubMembership.club_id == club_id)
        .order_by(ClubMembership.user_id)
    ).scalars()
    return list(rows)


def snapshot(db: Session, club_id: int) -> tuple:
    """(owner_id, members_count, member ids, deleted) as stored in the database."""
    db.expire_all()
    club = db.get(Club, club_id)
    return (club.owner_id, club.members_count, member_ids(db, club_id), club.deleted_at is not None)


# =============================================================================
# Test: resolve_disposition
# =============================================================================


class TestResolveDisposition:

    def test_no_action(self):
        assert membership.resolve_disposition(None) is None
        assert membership.resolve_disposition(None, 7) is None

    def test_empty_action_is_invalid(self):
        with pytest.raises(InvalidDisposition):
            membership.resolve_disposition("")

    @pytest.mark.parametrize(
        "action, new_owner_id",
        [
            (5, None),
            (["close"], None),
            ("close", "abc"),
            ("transfer", "7"),
            ("transfer", True),
            ("transfer", 7.5),
        ],
    )
    def test_mistyped_values_are_invalid(self, action, new_owner_id):
        with pytest.raises(InvalidDisposition):
            membership.resolve_disposition(action, new_owner_id)

    def test_transfer(self):
        assert membership.resolve_disposition("transfer", 7) == TransferOwnership(new_owner_id=7)

    def test_transfer_without_target(self):
        with pytest.raises(NewOwnerRequired):
            membership.resolve_disposition("transfer")

    def test_close_ignores_new_owner(self):
        assert membership.resolve_disposition("close", 7) == CloseClub()

    def test_unknown_action(self):
        with pytest.raises(InvalidDisposition):
            membership.resolve_disposition("archive")


# =============================================================================
# Test: Non-owner leave
# =============================================================================


class TestMemberLeave:

    def test_member_leave_removes_only_their_row(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
        alice: User,
        bob: User,
    ):
        outcome = membership.leave_club(db_session, scenario_club.id, alice.id)

        assert outcome == LeaveOutcome.LEFT
        owner_id, count, members, deleted = snapshot(db_session, scenario_club.id)
        assert owner_id == owner.id
        assert count == 2
        assert members == sorted([owner.id, bob.id])
        assert deleted is False

    def test_pending_member_can_leave(
        self,
        db_session: Session,
        scenario_club: Club,
        bob: User,
    ):
        outcome = membership.leave_club(db_session, scenario_club.id, bob.id)

        assert outcome == LeaveOutcome.LEFT
        assert snapshot(db_session, scenario_club.id)[1] == 2

    def test_member_disposition_is_ignored(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
        alice: User,
    ):
        """A non-owner sending close or transfer just leaves."""
        outcome = membership.leave_club(db_session, scenario_club.id, alice.id, "close")

        assert outcome == LeaveOutcome.LEFT
        owner_id, count, _, deleted = snapshot(db_session, scenario_club.id)
        assert owner_id == owner.id
        assert count == 2
        assert deleted is False

    def test_member_invalid_action_is_ignored(
        self,
        db_session: Session,
        scenario_club: Club,
        alice: User,
    ):
        outcome = membership.leave_club(db_session, scenario_club.id, alice.id, "explode", 999)

        assert outcome == LeaveOutcome.LEFT

    def test_non_member_cannot_leave(
        self,
        db_session: Session,
        scenario_club: Club,
        carol: User,
    ):
        before = snapshot(db_session, scenario_club.id)

        with pytest.raises(NotAMember):
            membership.leave_club(db_session, scenario_club.id, carol.id)

        assert snapshot(db_session, scenario_club.id) == before

    def test_unknown_club(self, db_session: Session, alice: User):
        with pytest.raises(ClubNotFound):
            membership.leave_club(db_session, 9999, alice.id)

    def test_last_member_of_ownerless_club_closes_it(
        self,
        db_session: Session,
        club: Club,
        alice: User,
    ):
        membership.join_club(db_session, club.id, alice.id)
        store.delete_membership(db_session, club.id, club.owner_id)
        store.set_owner(db_session, club, None)
        store.recount_members(db_session, club)
        db_session.commit()

        outcome = membership.leave_club(db_session, club.id, alice.id)

        assert outcome == LeaveOutcome.CLOSED
        assert store.get_club(db_session, club.id) is None


# =============================================================================
# Test: Owner leave without disposition
# =============================================================================


class TestOwnerDispositionRequired:

    @pytest.mark.parametrize("new_owner_id", [None, 7])
    def test_owner_must_choose(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
        new_owner_id,
    ):
        before = snapshot(db_session, scenario_club.id)

        with pytest.raises(OwnerDispositionRequired):
            membership.leave_club(db_session, scenario_club.id, owner.id, None, new_owner_id)

        assert snapshot(db_session, scenario_club.id) == before

    @pytest.mark.parametrize("action", ["archive", ""])
    def test_owner_invalid_action(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
        action,
    ):
        before = snapshot(db_session, scenario_club.id)

        with pytest.raises(InvalidDisposition):
            membership.leave_club(db_session, scenario_club.id, owner.id, action)

        assert snapshot(db_session, scenario_club.id) == before


# =============================================================================
# Test: Ownership transfer
# =============================================================================


class TestTransferOwnership:

    def test_transfer_to_approved_member(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
        alice: User,
        bob: User,
    ):
        alice_row = store.get_membership(db_session, scenario_club.id, alice.id)
        alice_before = (alice_row.id, alice_row.role, alice_row.is_approved, alice_row.joined_at)

        outcome = membership.leave_club(
            db_session, scenario_club.id, owner.id, "transfer", alice.id
        )

        assert outcome == LeaveOutcome.TRANSFERRED
        owner_id, count, members, deleted = snapshot(db_session, scenario_club.id)
        assert owner_id == alice.id
        assert count == 2
        assert members == sorted([alice.id, bob.id])
        assert deleted is False

        alice_row = store.get_membership(db_session, scenario_club.id, alice.id)
        assert (alice_row.id, alice_row.role, alice_row.is_approved, alice_row.joined_at) == alice_before

    def test_new_owner_can_manage(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
        alice: User,
    ):
        membership.leave_club(db_session, scenario_club.id, owner.id, "transfer", alice.id)

        assert membership.can_manage_club(db_session, scenario_club.id, alice.id) is True
        assert membership.can_manage_club(db_session, scenario_club.id, owner.id) is False

    def test_transfer_requires_new_owner(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
    ):
        before = snapshot(db_session, scenario_club.id)

        with pytest.raises(NewOwnerRequired):
            membership.leave_club(db_session, scenario_club.id, owner.id, "transfer")

        assert snapshot(db_session, scenario_club.id) == before

    def test_transfer_to_self(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
    ):
        before = snapshot(db_session, scenario_club.id)

        with pytest.raises(SameOwner):
            membership.leave_club(db_session, scenario_club.id, owner.id, "transfer", owner.id)

        assert snapshot(db_session, scenario_club.id) == before

    def test_transfer_to_non_member(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
        carol: User,
    ):
        before = snapshot(db_session, scenario_club.id)

        with pytest.raises(NewOwnerNotAMember):
            membership.leave_club(db_session, scenario_club.id, owner.id, "transfer", carol.id)

        assert snapshot(db_session, scenario_club.id) == before

    def test_transfer_to_unknown_user(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
    ):
        with pytest.raises(NewOwnerNotAMember):
            membership.leave_club(db_session, scenario_club.id, owner.id, "transfer", 424242)

    def test_transfer_to_pending_member(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
        bob: User,
    ):
        before = snapshot(db_session, scenario_club.id)

        with pytest.raises(NewOwnerNotApproved):
            membership.leave_club(db_session, scenario_club.id, owner.id, "transfer", bob.id)

        assert snapshot(db_session, scenario_club.id) == before


# =============================================================================
# Test: Closing a club
# =============================================================================


class TestCloseClub:

    def test_owner_close_deletes_club_and_memberships(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
        alice: User,
    ):
        club_id = scenario_club.id

        outcome = membership.leave_club(db_session, club_id, owner.id, "close")

        assert outcome == LeaveOutcome.CLOSED
        assert store.get_club(db_session, club_id) is None
        assert member_ids(db_session, club_id) == []
        assert membership.list_user_clubs(db_session, alice.id) == []

        with pytest.raises(ClubNotFound):
            membership.list_club_members(db_session, club_id)

    def test_close_ignores_new_owner_id(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
        alice: User,
    ):
        outcome = membership.leave_club(db_session, scenario_club.id, owner.id, "close", alice.id)

        assert outcome == LeaveOutcome.CLOSED

    def test_closed_club_name_stays_reserved(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
    ):
        membership.leave_club(db_session, scenario_club.id, owner.id, "close")

        with pytest.raises(ClubNameTaken):
            membership.create_club(db_session, owner.id, name="Sci-Fi Saturdays")


# =============================================================================
# Test: Repeated requests
# =============================================================================


class TestIdempotence:

    def test_member_leaving_twice(
        self,
        db_session: Session,
        scenario_club: Club,
        alice: User,
    ):
        membership.leave_club(db_session, scenario_club.id, alice.id)

        with pytest.raises(NotAMember):
            membership.leave_club(db_session, scenario_club.id, alice.id)

        assert snapshot(db_session, scenario_club.id)[1] == 2

    def test_transfer_twice(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
        alice: User,
    ):
        membership.leave_club(db_session, scenario_club.id, owner.id, "transfer", alice.id)

        with pytest.raises(NotAMember):
            membership.leave_club(db_session, scenario_club.id, owner.id, "transfer", alice.id)

        owner_id, count, _, _ = snapshot(db_session, scenario_club.id)
        assert owner_id == alice.id
        assert count == 2

    def test_close_twice(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
    ):
        membership.leave_club(db_session, scenario_club.id, owner.id, "close")

        with pytest.raises(ClubNotFound):
            membership.leave_club(db_session, scenario_club.id, owner.id, "close")


# =============================================================================
# Test: Competing transfers
# =============================================================================


class TestCompetingTransfers:

    def test_second_transfer_from_same_owner_is_rejected(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
        alice: User,
        carol: User,
    ):
        """
        Two transfers from one owner to different targets.

        The club row lock serializes them; whichever runs second sees the
        committed state and finds the requester is no longer a member.
        """
        membership.join_club(db_session, scenario_club.id, carol.id)

        first = membership.leave_club(db_session, scenario_club.id, owner.id, "transfer", alice.id)
        with pytest.raises(NotAMember):
            membership.leave_club(db_session, scenario_club.id, owner.id, "transfer", carol.id)

        assert first == LeaveOutcome.TRANSFERRED
        owner_id, count, members, _ = snapshot(db_session, scenario_club.id)
        assert owner_id == alice.id
        assert owner.id not in members
        assert count == len(members) == 3

    def test_leave_locks_the_club_row(
        self,
        db_session: Session,
        scenario_club: Club,
        alice: User,
        monkeypatch,
    ):
        """SQLite ignores FOR UPDATE, so check the statement PostgreSQL would receive."""
        statements = []
        execute = db_session.execute

        def recording_execute(statement, *args, **kwargs):
            statements.append(statement)
            return execute(statement, *args, **kwargs)

        monkeypatch.setattr(db_session, "execute", recording_execute)

        membership.leave_club(db_session, scenario_club.id, alice.id)

        first_sql = str(statements[0].compile(dialect=postgresql.dialect()))
        assert first_sql.startswith("SELECT")
        assert "FROM clubs" in first_sql
        assert first_sql.rstrip().endswith("FOR UPDATE")

    def test_lock_club_selects_live_row_for_update(
        self,
        db_session: Session,
        scenario_club: Club,
        monkeypatch,
    ):
        statements = []
        execute = db_session.execute

        def recording_execute(statement, *args, **kwargs):
            statements.append(statement)
            return execute(statement, *args, **kwargs)

        monkeypatch.setattr(db_session, "execute", recording_execute)

        club = store.lock_club(db_session, scenario_club.id)

        assert club.id == scenario_club.id
        sql = str(statements[0].compile(dialect=postgresql.dialect()))
        assert "clubs.deleted_at IS NULL" in sql
        assert "FOR UPDATE" in sql


# =============================================================================
# Test: Atomicity
# =============================================================================


class TestAtomicity:

    def test_failure_after_owner_change_rolls_back(
        self,
        db_session: Session,
        scenario_club: Club,
        owner: User,
        alice: User,
        monkeypatch,
    ):
        """A failure midway through a transfer must not leave owner_id moved."""
        before = snapshot(db_session, scenario_club.id)

        def broken_delete(db, club_id, user_id):
            raise RuntimeError("connection lost")

        monkeypatch.setattr(store, "delete_membership", broken_delete)

        with pytest.raises(RuntimeError):
            membership.leave_club(db_session, scenario_club.id, owner.id, "transfer", alice.id)

        assert snapshot(db_session, scenario_club.id) == before


# =============================================================================
# Test: Example walkthrough
# =============================================================================


def test_example_walkthrough(
    db_session: Session,
    scenario_club: Club,
    owner: User,
    alice: User,
    bob: User,
):
    """Owner, approved alice and pending bob; members_count starts at 3."""
    club_id = scenario_club.id
    assert snapshot(db_session, club_id)[1] == 3

    with pytest.raises(NewOwnerNotApproved):
        membership.leave_club(db_session, club_id, owner.id, "transfer", bob.id)
    assert snapshot(db_session, club_id)[:2] == (owner.id, 3)

    membership.leave_club(db_session, club_id, owner.id, "transfer", alice.id)
    assert snapshot(db_session, club_id)[:3] == (alice.id, 2, sorted([alice.id, bob.id]))

    with pytest.raises(OwnerDispositionRequired):
        membership.leave_club(db_session, club_id, alice.id)

    membership.leave_club(db_session, club_id, bob.id)
    assert snapshot(db_session, club_id)[:3] == (alice.id, 1, [alice.id])
