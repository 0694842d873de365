"""
Membership Errors

Typed failures raised by the membership store and the membership service.

Every error carries a stable ``code`` that clients can switch on, the HTTP
status the API maps it to, and a default human-readable message. The
handler registered in ``bookclub.main`` turns any of them into:

    {"detail": <message>, "code": <code>}
"""

from fastapi import status


class MembershipError(Exception):
    """Base class for club membership failures."""

    code: str = "membership_error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Membership operation failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code='{self.code}')"


# =============================================================================
# Lookup failures
# =============================================================================

class ClubNotFound(MembershipError):
    code = "club_not_found"
    message = "Club not found"


class NotAMember(MembershipError):
    code = "not_a_member"
    message = "User is not a member of this club"


class MemberNotFound(MembershipError):
    code = "member_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Member not found"


# =============================================================================
# Leave disposition failures
# =============================================================================

class OwnerDispositionRequired(MembershipError):
    code = "owner_disposition_required"
    message = "Owner must choose action: transfer or close"


class NewOwnerRequired(MembershipError):
    code = "new_owner_required"
    message = "new_owner_id is required to transfer ownership"


class SameOwner(MembershipError):
    code = "same_owner"
    message = "New owner must be different from the current owner"


class NewOwnerNotAMember(MembershipError):
    code = "new_owner_not_a_member"
    message = "New owner must be a member of the club"


class NewOwnerNotApproved(MembershipError):
    code = "new_owner_not_approved"
    message = "New owner must be an approved member of the club"


class InvalidDisposition(MembershipError):
    code = "invalid_disposition"
    message = "Invalid action: must be 'transfer' or 'close'"


# =============================================================================
# Join / administration failures
# =============================================================================

class AlreadyMember(MembershipError):
    code = "already_member"
    message = "User is already a member of this club"


class ClubFull(MembershipError):
    code = "club_full"
    message = "Club has reached its maximum number of members"


class NotClubManager(MembershipError):
    code = "not_club_manager"
    status_code = status.HTTP_403_FORBIDDEN
    message = "Only the club owner can manage this club"


class ClubNameTaken(MembershipError):
    code = "club_name_taken"
    status_code = status.HTTP_409_CONFLICT
    message = "A club with this name already exists"


# =============================================================================
# Persistence failures
# =============================================================================

class ConstraintViolation(MembershipError):
    """A uniqueness constraint fired that prior validation should have caught."""

    code = "constraint_violation"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"
