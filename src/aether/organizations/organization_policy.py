"""Role preconditions for organization management.

Every check raises before the matching store mutation runs, so a failed
check never leaves a partial write behind. ``actor_role`` is None when the
actor has no membership in the organization.
"""

from typing import Optional

from aether.main.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from aether.roles.role import OrganizationRole


def _require_member(actor_role: Optional[OrganizationRole], org_id: str) -> OrganizationRole:
    if actor_role is None:
        raise ForbiddenException(
            "User is not a member of this organization", details={"org_id": org_id}
        )
    return actor_role


def _require_manager(actor_role: Optional[OrganizationRole], org_id: str, message: str):
    role = _require_member(actor_role, org_id)
    if not role.at_least(OrganizationRole.ADMIN):
        raise ForbiddenException(message, details={"org_id": org_id, "user_role": role.value})
    return role


def _require_target(target_role: Optional[OrganizationRole], org_id: str) -> OrganizationRole:
    if target_role is None:
        raise NotFoundException("Member not found", details={"org_id": org_id})
    return target_role


def ensure_can_update_organization(actor_role: Optional[OrganizationRole], org_id: str) -> None:
    _require_manager(actor_role, org_id, "Insufficient permissions to update organization")


def ensure_can_delete_organization(actor_role: Optional[OrganizationRole], org_id: str) -> None:
    role = _require_member(actor_role, org_id)
    if not role.at_least(OrganizationRole.OWNER):
        raise ForbiddenException(
            "Only organization owners can delete organizations",
            details={"org_id": org_id, "user_role": role.value},
        )


def ensure_can_invite_member(
    actor_role: Optional[OrganizationRole],
    requested_role: OrganizationRole,
    org_id: str,
) -> None:
    _require_manager(actor_role, org_id, "Insufficient permissions to invite organization members")

    # Ownership is granted through a role change, never through an invite
    if requested_role is OrganizationRole.OWNER:
        raise BadRequestException(
            "Members cannot be invited as owners", details={"org_id": org_id}
        )


def ensure_not_member(target_role: Optional[OrganizationRole], org_id: str) -> None:
    if target_role is not None:
        raise ConflictException(
            "User is already a member of this organization",
            details={"org_id": org_id, "current_role": target_role.value},
        )


def ensure_can_update_member_role(
    actor_role: Optional[OrganizationRole],
    current_role: Optional[OrganizationRole],
    requested_role: OrganizationRole,
    org_id: str,
) -> None:
    role = _require_manager(actor_role, org_id, "Insufficient permissions to update member roles")
    current_role = _require_target(current_role, org_id)

    touches_owner = OrganizationRole.OWNER in (current_role, requested_role)
    if touches_owner and not role.at_least(OrganizationRole.OWNER):
        raise ForbiddenException(
            "Only owners can change owner roles",
            details={
                "org_id": org_id,
                "user_role": role.value,
                "target_role": current_role.value,
                "requested_role": requested_role.value,
            },
        )


def ensure_can_remove_member(
    actor_role: Optional[OrganizationRole],
    target_role: Optional[OrganizationRole],
    org_id: str,
) -> None:
    role = _require_manager(
        actor_role, org_id, "Insufficient permissions to remove organization members"
    )
    target_role = _require_target(target_role, org_id)

    if target_role is OrganizationRole.OWNER and not role.at_least(OrganizationRole.OWNER):
        raise ForbiddenException(
            "Only owners can remove other owners",
            details={"org_id": org_id, "user_role": role.value, "target_role": target_role.value},
        )


def ensure_owner_remains(owner_count: int, org_id: str) -> None:
    """Reject a change that would leave the organization without an owner."""
    if owner_count < 1:
        raise BadRequestException(
            "An organization must retain at least one owner", details={"org_id": org_id}
        )
