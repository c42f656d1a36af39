# salon/core/policy.py

from .errors import AuthorizationError

ADMIN = "admin"
STAFF = "staff"
USER = "user"

VIEW = "view"
RESCHEDULE = "reschedule"
CANCEL = "cancel"
UPDATE_STATUS = "update_status"
REVIEW = "review"

OWNER_ACTIONS = frozenset({VIEW, RESCHEDULE, CANCEL, REVIEW})
ASSIGNED_STAFF_ACTIONS = frozenset({VIEW, RESCHEDULE, CANCEL, UPDATE_STATUS})


def is_owner(actor: dict, booking) -> bool:
    return actor.get("id") is not None and actor.get("id") == booking.user_id


def is_assigned_staff(actor: dict, booking) -> bool:
    if actor.get("role") != STAFF:
        return False
    staff_id = actor.get("staff_id")
    return staff_id is not None and staff_id == booking.staff_id


def is_allowed(actor: dict, action: str, booking) -> bool:
    if actor.get("role") == ADMIN:
        return True
    if is_owner(actor, booking) and action in OWNER_ACTIONS:
        return True
    if is_assigned_staff(actor, booking) and action in ASSIGNED_STAFF_ACTIONS:
        return True
    return False


def authorize(actor: dict, action: str, booking) -> None:
    if not is_allowed(actor, action, booking):
        raise AuthorizationError(
            f"User {actor.get('id')} is not authorized to {action.replace('_', ' ')} booking {booking.id}"
        )
