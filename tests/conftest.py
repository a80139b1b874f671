from __future__ import annotations

import dataclasses
from datetime import date, datetime, timedelta
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from attendance_tracker import create_app
from attendance_tracker.attendance.model import AttendanceLog, AttendanceLogWithPerson
from attendance_tracker.container import wire_container
from attendance_tracker.core.enums import AttendanceStatus, LeaveStatus, Role
from attendance_tracker.core.exceptions import StorageError
from attendance_tracker.identity.model import Account
from attendance_tracker.leave.model import LeaveRequest, LeaveRequestWithPerson
from attendance_tracker.people.model import Person

TEST_PASSWORD = "secret123"


class InMemoryStore:
    """Tables shared by the in-memory repositories, so cascades behave like the MySQL schema."""

    def __init__(self):
        self.accounts: dict[int, Account] = {}
        self.roles: dict[int, Role] = {}
        self.people: dict[int, Person] = {}
        self.logs: dict[tuple[int, date], AttendanceLog] = {}
        self.leaves: dict[int, LeaveRequest] = {}
        self._seq = 0

    def next_id(self) -> int:
        self._seq += 1
        return self._seq

    def stamp(self) -> datetime:
        # Strictly increasing created_at values.
        return datetime(2024, 1, 1) + timedelta(seconds=self.next_id())


class InMemoryAccounts:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_by_id(self, account_id):
        return self._s.accounts.get(int(account_id))

    def get_by_email(self, email):
        for a in self._s.accounts.values():
            if a.email.lower() == (email or "").lower():
                return a
        return None

    def create_account(self, *, email, password_hash, email_confirmed, full_name=None):
        if self.get_by_email(email):
            raise StorageError("Database operation failed")
        account_id = self._s.next_id()
        self._s.accounts[account_id] = Account(
            account_id=account_id,
            email=email,
            password_hash=password_hash,
            email_confirmed=email_confirmed,
            full_name=full_name,
        )
        return account_id

    def update_password_hash(self, account_id, password_hash):
        account = self._s.accounts.get(int(account_id))
        if not account:
            return False
        self._s.accounts[account.account_id] = dataclasses.replace(account, password_hash=password_hash)
        return True

    def delete_by_id(self, account_id):
        if self._s.accounts.pop(int(account_id), None) is None:
            return False
        self._s.roles.pop(int(account_id), None)
        for p in list(self._s.people.values()):
            if p.user_id == int(account_id):
                self._s.people[p.person_id] = dataclasses.replace(p, user_id=None)
        return True


class InMemoryRoles:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_role(self, user_id):
        return self._s.roles.get(int(user_id))

    def set_role(self, user_id, role):
        self._s.roles[int(user_id)] = role


class InMemoryPeople:
    def __init__(self, store: InMemoryStore):
        self._s = store
        self.fail_on_create = False

    def list_all(self):
        return sorted(self._s.people.values(), key=lambda p: p.full_name)

    def list_linked(self):
        return [p for p in self.list_all() if p.user_id is not None]

    def count(self):
        return len(self._s.people)

    def get_by_id(self, person_id):
        return self._s.people.get(int(person_id))

    def get_by_user_id(self, user_id):
        for p in self._s.people.values():
            if p.user_id == int(user_id):
                return p
        return None

    def get_by_email(self, email):
        for p in self._s.people.values():
            if p.email and p.email.lower() == email.lower():
                return p
        return None

    def find_unlinked_by_email(self, email):
        for p in self.list_all():
            if p.user_id is None and p.email and p.email.lower() == email.lower():
                return p
        return None

    def create(self, *, full_name, role, phone, email, user_id, created_by):
        if self.fail_on_create:
            raise StorageError("Database operation failed")
        if user_id is not None and self.get_by_user_id(user_id):
            raise StorageError("Database operation failed")
        person_id = self._s.next_id()
        self._s.people[person_id] = Person(
            person_id=person_id,
            full_name=full_name,
            role=role,
            phone=phone,
            email=email,
            user_id=user_id,
            created_by=created_by,
            created_at=self._s.stamp(),
        )
        return person_id

    def update(self, person_id, *, full_name, role, phone, email):
        p = self._s.people.get(int(person_id))
        if not p:
            return False
        self._s.people[p.person_id] = dataclasses.replace(p, full_name=full_name, role=role, phone=phone, email=email)
        return True

    def set_email(self, person_id, email):
        p = self._s.people.get(int(person_id))
        if not p:
            return False
        self._s.people[p.person_id] = dataclasses.replace(p, email=email)
        return True

    def link_user(self, person_id, user_id):
        p = self._s.people.get(int(person_id))
        if not p or p.user_id is not None or self.get_by_user_id(user_id):
            return False
        self._s.people[p.person_id] = dataclasses.replace(p, user_id=int(user_id))
        return True

    def delete_by_id(self, person_id):
        if self._s.people.pop(int(person_id), None) is None:
            return False
        for key in [k for k in self._s.logs if k[0] == int(person_id)]:
            del self._s.logs[key]
        for rid in [r.request_id for r in self._s.leaves.values() if r.person_id == int(person_id)]:
            del self._s.leaves[rid]
        return True


def _with_person(store: InMemoryStore, log: AttendanceLog) -> AttendanceLogWithPerson:
    person = store.people[log.person_id]
    values = {f.name: getattr(log, f.name) for f in dataclasses.fields(AttendanceLog)}
    return AttendanceLogWithPerson(**values, full_name=person.full_name, person_role=person.role)


def upsert_log(store: InMemoryStore, person_id: int, attendance_date: date, **changes) -> AttendanceLog:
    """Insert-or-update on (person_id, attendance_date), like ON DUPLICATE KEY UPDATE."""
    key = (int(person_id), attendance_date)
    existing = store.logs.get(key)
    if existing is None:
        existing = AttendanceLog(
            attendance_id=store.next_id(),
            person_id=int(person_id),
            attendance_date=attendance_date,
            created_at=store.stamp(),
        )
    row = dataclasses.replace(existing, **changes)
    store.logs[key] = row
    return row


class InMemoryAttendance:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_for_person_and_date(self, person_id, attendance_date):
        return self._s.logs.get((int(person_id), attendance_date))

    def claim_punch_in(self, *, person_id, attendance_date, punch_in_time, location, recorded_by):
        existing = self.get_for_person_and_date(person_id, attendance_date)
        if existing is not None:
            if existing.punch_in_time is not None:
                return False
            if existing.status in (AttendanceStatus.ABSENT, AttendanceStatus.LEAVE):
                return False
        upsert_log(
            self._s,
            person_id,
            attendance_date,
            status=AttendanceStatus.PRESENT,
            punch_in_time=punch_in_time,
            punch_in_latitude=location.latitude if location else None,
            punch_in_longitude=location.longitude if location else None,
            punch_in_address=location.address if location else None,
            recorded_by=recorded_by,
        )
        return True

    def record_punch_out(self, *, attendance_id, punch_out_time, location):
        for key, row in self._s.logs.items():
            if row.attendance_id != int(attendance_id):
                continue
            if row.punch_in_time is None or row.punch_out_time is not None:
                return False
            if row.status in (AttendanceStatus.ABSENT, AttendanceStatus.LEAVE):
                return False
            self._s.logs[key] = dataclasses.replace(
                row,
                punch_out_time=punch_out_time,
                punch_out_latitude=location.latitude if location else None,
                punch_out_longitude=location.longitude if location else None,
                punch_out_address=location.address if location else None,
            )
            return True
        return False

    def upsert_entries(self, *, attendance_date, entries, recorded_by):
        for e in entries:
            upsert_log(self._s, e.person_id, attendance_date, status=e.status, notes=e.notes, recorded_by=recorded_by)
        return len(entries)

    def mark_absent_if_unrecorded(self, *, person_ids, attendance_date, notes):
        marked = []
        for person_id in person_ids:
            existing = self.get_for_person_and_date(person_id, attendance_date)
            if existing is not None and (existing.punch_in_time is not None or existing.status is not None):
                continue
            upsert_log(
                self._s,
                person_id,
                attendance_date,
                status=AttendanceStatus.ABSENT,
                notes=notes,
                recorded_by=None,
            )
            marked.append(int(person_id))
        return marked

    def list_for_date(self, attendance_date):
        return [r for r in self._s.logs.values() if r.attendance_date == attendance_date]

    def count_by_status(self, attendance_date):
        counts: dict[AttendanceStatus, int] = {}
        for r in self.list_for_date(attendance_date):
            if r.status is not None:
                counts[r.status] = counts.get(r.status, 0) + 1
        return counts

    def _matching(self, filters):
        rows = list(self._s.logs.values())
        if filters.date_from is not None:
            rows = [r for r in rows if r.attendance_date >= filters.date_from]
        if filters.date_to is not None:
            rows = [r for r in rows if r.attendance_date <= filters.date_to]
        if filters.person_id is not None:
            rows = [r for r in rows if r.person_id == filters.person_id]
        if filters.status is not None:
            rows = [r for r in rows if r.status == filters.status]
        rows.sort(key=lambda r: (r.attendance_date, r.created_at), reverse=True)
        return rows

    def search(self, filters, *, offset=None, limit=None):
        rows = self._matching(filters)
        if limit is not None:
            start = offset or 0
            rows = rows[start : start + limit]
        return [_with_person(self._s, r) for r in rows]

    def count(self, filters):
        return len(self._matching(filters))

    def list_for_person(self, person_id, limit):
        rows = [r for r in self._s.logs.values() if r.person_id == int(person_id)]
        rows.sort(key=lambda r: r.attendance_date, reverse=True)
        return [_with_person(self._s, r) for r in rows[:limit]]

    def list_punches_for_date(self, attendance_date):
        rows = [r for r in self.list_for_date(attendance_date) if r.punch_in_time is not None]
        rows.sort(key=lambda r: r.punch_in_time, reverse=True)
        return [_with_person(self._s, r) for r in rows]


class InMemoryLeaves:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def create_unless_overlapping(self, *, person_id, start_date, end_date, leave_type, reason):
        if any(
            r.person_id == int(person_id) and r.status != LeaveStatus.REJECTED and r.overlaps(start_date, end_date)
            for r in self._s.leaves.values()
        ):
            return None
        request_id = self._s.next_id()
        self._s.leaves[request_id] = LeaveRequest(
            request_id=request_id,
            person_id=int(person_id),
            start_date=start_date,
            end_date=end_date,
            leave_type=leave_type,
            status=LeaveStatus.PENDING,
            reason=reason,
            created_at=self._s.stamp(),
        )
        return request_id

    def get_by_id(self, request_id):
        return self._s.leaves.get(int(request_id))

    def delete_pending(self, request_id):
        r = self._s.leaves.get(int(request_id))
        if not r or r.status != LeaveStatus.PENDING:
            return False
        del self._s.leaves[r.request_id]
        return True

    def decide(self, *, request_id, status, reviewed_by, reviewed_at, review_notes, leave_days=()):
        r = self._s.leaves.get(int(request_id))
        if not r or r.status != LeaveStatus.PENDING:
            return False
        self._s.leaves[r.request_id] = dataclasses.replace(
            r,
            status=status,
            reviewed_by=reviewed_by,
            reviewed_at=reviewed_at,
            review_notes=review_notes,
        )
        for day in leave_days:
            upsert_log(self._s, r.person_id, day, status=AttendanceStatus.LEAVE, recorded_by=reviewed_by)
        return True

    def _with_person(self, r):
        person = self._s.people[r.person_id]
        values = {f.name: getattr(r, f.name) for f in dataclasses.fields(LeaveRequest)}
        return LeaveRequestWithPerson(**values, full_name=person.full_name, person_role=person.role)

    def list_for_person(self, person_id):
        rows = [r for r in self._s.leaves.values() if r.person_id == int(person_id)]
        rows.sort(key=lambda r: r.created_at, reverse=True)
        return [self._with_person(r) for r in rows]

    def list_all(self, *, status=None):
        rows = [r for r in self._s.leaves.values() if status is None or r.status == status]
        rows.sort(key=lambda r: r.created_at, reverse=True)
        return [self._with_person(r) for r in rows]


class World:
    """Container over in-memory repositories plus helpers to seed accounts and people."""

    def __init__(self, *, cutoff_hour: int = 13):
        self.store = InMemoryStore()
        self.accounts = InMemoryAccounts(self.store)
        self.roles = InMemoryRoles(self.store)
        self.people = InMemoryPeople(self.store)
        self.attendance = InMemoryAttendance(self.store)
        self.leaves = InMemoryLeaves(self.store)
        self.container = wire_container(
            accounts_repo=self.accounts,
            roles_repo=self.roles,
            people_repo=self.people,
            attendance_repo=self.attendance,
            leave_repo=self.leaves,
            cutoff_hour=cutoff_hour,
        )

    def add_account(self, email: str, *, role: Optional[Role] = None, password: str = TEST_PASSWORD) -> int:
        account_id = self.accounts.create_account(
            email=email,
            password_hash=generate_password_hash(password),
            email_confirmed=True,
        )
        if role is not None:
            self.roles.set_role(account_id, role)
        return account_id

    def add_person(self, full_name: str, *, email: Optional[str] = None, user_id: Optional[int] = None, role: str = "Engineer") -> Person:
        person_id = self.people.create(
            full_name=full_name,
            role=role,
            phone=None,
            email=email,
            user_id=user_id,
            created_by=None,
        )
        return self.people.get_by_id(person_id)

    def add_member(self, full_name: str, email: Optional[str] = None) -> tuple[int, Person]:
        email = email or f"{full_name.lower().replace(' ', '.')}@example.com"
        account_id = self.add_account(email)
        return account_id, self.add_person(full_name, email=email, user_id=account_id)

    def add_admin(self, email: str = "admin@example.com") -> int:
        return self.add_account(email, role=Role.ADMIN)


@pytest.fixture
def world() -> World:
    return World()


@pytest.fixture
def app(world):
    flask_app = create_app(container=world.container, settings_module="attendance_tracker.settings.testing")
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(email: str, password: str = TEST_PASSWORD):
        resp = client.post("/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp

    return _login
