import pytest

from beolcho.auth import Actor
from beolcho.domain.lifecycle import (
    approve_worker,
    change_role,
    check_transition,
    parse_status,
    revoke_worker,
    set_reservation_status,
    visible_workers,
)
from beolcho.errors import AuthorizationError, ValidationError
from beolcho.models import Reservation, ReservationStatus, UserAccount, UserRole, WorkerProfile

ADMIN = Actor(uid="admin", email="admin@example.com", display_name="관리자", role=UserRole.ADMIN)
CUSTOMER = Actor(uid="cust", email="cust@example.com", display_name="고객", role=UserRole.CUSTOMER)


def reservation(status=ReservationStatus.PENDING):
    return Reservation(id="r1", user_id="cust", status=status.value)


def worker(approved=False, role=UserRole.CUSTOMER):
    return WorkerProfile(uid="w", is_approved=approved), UserAccount(uid="w", role=role.value)


@pytest.mark.parametrize("value", ["PENDING", "pending", "접수대기", ReservationStatus.PENDING])
def test_parse_status_accepts_names_and_labels(value):
    assert parse_status(value) is ReservationStatus.PENDING


def test_parse_status_rejects_unknown():
    with pytest.raises(ValidationError):
        parse_status("FINISHED")


@pytest.mark.parametrize("target", list(ReservationStatus))
def test_any_status_can_follow_any_other(target):
    for start in ReservationStatus:
        r = reservation(start)
        set_reservation_status(r, target, ADMIN)
        assert r.status == target.value


def test_non_admin_status_change_leaves_status_unchanged():
    r = reservation()

    with pytest.raises(AuthorizationError):
        set_reservation_status(r, ReservationStatus.CONFIRMED, CUSTOMER)

    assert r.status == ReservationStatus.PENDING.value


def test_transition_warnings():
    assert check_transition(ReservationStatus.PENDING, ReservationStatus.CONFIRMED) is None
    assert check_transition(ReservationStatus.CONFIRMED, ReservationStatus.COMPLETED) is None
    assert check_transition(ReservationStatus.COMPLETED, ReservationStatus.COMPLETED) is None
    assert check_transition(ReservationStatus.COMPLETED, ReservationStatus.CANCELLED) is not None
    assert check_transition(ReservationStatus.PENDING, ReservationStatus.COMPLETED) is not None


def test_approve_and_revoke_write_both_fields():
    profile, account = worker()

    approve_worker(profile, account, ADMIN)
    assert (profile.is_approved, account.role) == (True, UserRole.WORKER.value)

    revoke_worker(profile, account, ADMIN)
    assert (profile.is_approved, account.role) == (False, UserRole.CUSTOMER.value)


def test_approve_requires_admin():
    profile, account = worker()

    with pytest.raises(AuthorizationError):
        approve_worker(profile, account, CUSTOMER)

    assert profile.is_approved is False
    assert account.role == UserRole.CUSTOMER.value


@pytest.mark.parametrize("transition", [approve_worker, revoke_worker])
def test_approval_never_touches_admin_accounts(transition):
    profile, account = worker(role=UserRole.ADMIN)

    with pytest.raises(AuthorizationError):
        transition(profile, account, ADMIN)

    assert account.role == UserRole.ADMIN.value


def test_admin_cannot_approve_self():
    profile = WorkerProfile(uid=ADMIN.uid, is_approved=False)
    account = UserAccount(uid=ADMIN.uid, role=UserRole.ADMIN.value)

    with pytest.raises(AuthorizationError):
        approve_worker(profile, account, ADMIN)

    assert profile.is_approved is False
    assert account.role == UserRole.ADMIN.value


def test_change_role_syncs_profile():
    profile, account = worker(approved=True, role=UserRole.WORKER)

    assert change_role(account, profile, "ADMIN", ADMIN) is True
    assert profile.is_approved is False

    assert change_role(account, profile, UserRole.WORKER, ADMIN) is True
    assert profile.is_approved is True


def test_change_role_without_profile():
    _, account = worker()

    assert change_role(account, None, "WORKER", ADMIN) is False
    assert account.role == UserRole.WORKER.value


def test_change_own_role_forbidden():
    account = UserAccount(uid=ADMIN.uid, role=UserRole.ADMIN.value)

    with pytest.raises(AuthorizationError):
        change_role(account, None, "CUSTOMER", ADMIN)
    assert account.role == UserRole.ADMIN.value


def test_visible_workers_ignores_availability():
    profiles = [
        WorkerProfile(uid="a", is_approved=True, is_available=True),
        WorkerProfile(uid="b", is_approved=True, is_available=False),
        WorkerProfile(uid="c", is_approved=False, is_available=True),
    ]

    assert [p.uid for p in visible_workers(profiles)] == ["a", "b"]
