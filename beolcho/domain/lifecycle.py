"""
Reservation and worker lifecycle rules.

Plain functions over ORM entities and the acting account. They mutate the
entities in memory and never touch the session; the calling service
commits the result as one transaction.
"""

import logging
from typing import Iterable, Optional, Union

from ..auth import Actor, require_admin
from ..errors import AuthorizationError, ValidationError
from ..models import (
    RESERVATION_STATUS_LABELS,
    Reservation,
    ReservationStatus,
    UserAccount,
    UserRole,
    WorkerProfile,
)

logger = logging.getLogger(__name__)

# Transitions an operator would normally make. Anything else is still
# applied, only logged.
EXPECTED_TRANSITIONS = {
    ReservationStatus.PENDING: {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED},
    ReservationStatus.CONFIRMED: {
        ReservationStatus.COMPLETED,
        ReservationStatus.CANCELLED,
        ReservationStatus.PENDING,
    },
    ReservationStatus.COMPLETED: set(),
    ReservationStatus.CANCELLED: {ReservationStatus.PENDING},
}

_LABEL_TO_STATUS = {label: status for status, label in RESERVATION_STATUS_LABELS.items()}


def parse_status(value: Union[str, ReservationStatus]) -> ReservationStatus:
    """Accept the enum name or its Korean label"""
    if isinstance(value, ReservationStatus):
        return value
    value = (value or "").strip()
    if value in _LABEL_TO_STATUS:
        return _LABEL_TO_STATUS[value]
    try:
        return ReservationStatus(value.upper())
    except ValueError as e:
        raise ValidationError(f"알 수 없는 예약 상태입니다: {value}") from e


def parse_role(value: Union[str, UserRole]) -> UserRole:
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole((value or "").strip().upper())
    except ValueError as e:
        raise ValidationError(f"알 수 없는 권한입니다: {value}") from e


def check_transition(current: ReservationStatus, new: ReservationStatus) -> Optional[str]:
    """Warn-only check. Returns the warning text for an unusual transition."""
    if current == new or new in EXPECTED_TRANSITIONS[current]:
        return None
    warning = f"unusual reservation transition {current.value} -> {new.value}"
    logger.warning(f"⚠️ {warning}")
    return warning


def set_reservation_status(
    reservation: Reservation, new_status: Union[str, ReservationStatus], actor: Actor
) -> Optional[str]:
    """
    Overwrite the status. Any status may follow any other; only an admin
    may do it. Returns the transition warning, if any.
    """
    require_admin(actor)
    target = parse_status(new_status)
    current = ReservationStatus(reservation.status)
    warning = check_transition(current, target)
    reservation.status = target.value
    return warning


def ensure_owner_or_admin(owner_id: str, actor: Actor, message: str) -> None:
    if actor.uid != owner_id and not actor.is_admin:
        logger.warning(f"🚫 {actor.uid} denied access to a document owned by {owner_id}")
        raise AuthorizationError(message)


def _ensure_worker_target(account: UserAccount, actor: Actor) -> None:
    """Approval never touches the acting admin or any other ADMIN account."""
    if account.uid == actor.uid:
        raise AuthorizationError("본인의 반장 승인 상태는 변경할 수 없습니다.")
    if account.role == UserRole.ADMIN.value:
        logger.warning(f"🚫 {actor.uid} tried to change worker approval of admin {account.uid}")
        raise AuthorizationError("관리자 계정의 권한은 승인/해제로 변경할 수 없습니다.")


def approve_worker(profile: WorkerProfile, account: UserAccount, actor: Actor) -> None:
    """Approval flag and WORKER role are always written together."""
    require_admin(actor)
    _ensure_worker_target(account, actor)
    profile.is_approved = True
    account.role = UserRole.WORKER.value


def revoke_worker(profile: WorkerProfile, account: UserAccount, actor: Actor) -> None:
    require_admin(actor)
    _ensure_worker_target(account, actor)
    profile.is_approved = False
    account.role = UserRole.CUSTOMER.value


def change_role(
    account: UserAccount,
    profile: Optional[WorkerProfile],
    new_role: Union[str, UserRole],
    actor: Actor,
) -> bool:
    """
    Set an account's role directly.

    When a WorkerProfile exists its approval flag follows the role
    (WORKER approves, anything else revokes). Without a profile the role is
    written alone and a WORKER account will not be listed publicly.
    Returns True when the profile was touched.
    """
    require_admin(actor)
    if account.uid == actor.uid:
        raise AuthorizationError("본인의 권한은 변경할 수 없습니다.")

    role = parse_role(new_role)
    account.role = role.value

    if profile is None:
        if role == UserRole.WORKER:
            logger.warning(f"⚠️ {account.uid} set to WORKER without a worker profile")
        return False

    profile.is_approved = role == UserRole.WORKER
    return True


def visible_workers(profiles: Iterable[WorkerProfile]) -> list[WorkerProfile]:
    """Public listing: approved profiles only, whatever their availability"""
    return [p for p in profiles if p.is_approved]
