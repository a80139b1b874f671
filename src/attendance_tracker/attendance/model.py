from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import ClassVar, Optional

from ..common.datetime_utils import parse_optional_date
from ..common.validators import optional_text, parse_positive_int, text_value
from ..core.constants import DEFAULT_PAGE_SIZE, MAPS_URL, MAX_PAGE_SIZE
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError


def maps_url(latitude: Optional[float], longitude: Optional[float]) -> Optional[str]:
    if latitude is None or longitude is None:
        return None
    return MAPS_URL.format(lat=latitude, lng=longitude)


def parse_status(value: Optional[str]) -> Optional[AttendanceStatus]:
    v = text_value(value, "Status").lower()
    if not v:
        return None
    try:
        return AttendanceStatus(v)
    except ValueError:
        allowed = ", ".join(s.value for s in AttendanceStatus)
        raise ValidationError(f"Status must be one of: {allowed}")


@dataclass(frozen=True)
class PunchLocation:
    latitude: float
    longitude: float
    address: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Optional[dict]) -> Optional["PunchLocation"]:
        """Build from request data; missing coordinates mean no location."""
        if not data:
            return None
        lat, lng = data.get("latitude"), data.get("longitude")
        if lat in (None, "") or lng in (None, ""):
            return None
        try:
            latitude, longitude = float(lat), float(lng)
        except (TypeError, ValueError):
            raise ValidationError("Latitude and longitude must be numbers")
        if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            raise ValidationError("Location is out of range")
        address = text_value(data.get("address"), "Address") or None
        return cls(latitude=latitude, longitude=longitude, address=address)


@dataclass(frozen=True)
class AttendanceLog:
    """Domain entity: one person's attendance for one calendar date."""

    attendance_id: int
    person_id: int
    attendance_date: date
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None
    punch_in_time: Optional[datetime] = None
    punch_out_time: Optional[datetime] = None
    punch_in_latitude: Optional[float] = None
    punch_in_longitude: Optional[float] = None
    punch_in_address: Optional[str] = None
    punch_out_latitude: Optional[float] = None
    punch_out_longitude: Optional[float] = None
    punch_out_address: Optional[str] = None
    recorded_by: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceLogWithPerson(AttendanceLog):
    """Read-model for listings and export (log joined with the person)."""

    full_name: str = ""
    person_role: Optional[str] = None

    payload_properties: ClassVar[tuple[str, ...]] = ("punch_in_map_url", "punch_out_map_url")

    @property
    def punch_in_map_url(self) -> Optional[str]:
        return maps_url(self.punch_in_latitude, self.punch_in_longitude)

    @property
    def punch_out_map_url(self) -> Optional[str]:
        return maps_url(self.punch_out_latitude, self.punch_out_longitude)


@dataclass(frozen=True)
class TodayPunchStatus:
    has_punched_in: bool
    has_punched_out: bool
    punch_in_time: Optional[datetime]
    punch_out_time: Optional[datetime]
    status: Optional[AttendanceStatus]
    attendance_id: Optional[int]


@dataclass(frozen=True)
class AttendanceEntry:
    """One row of an admin bulk entry."""

    person_id: int
    status: AttendanceStatus
    notes: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: dict) -> "AttendanceEntry":
        if not isinstance(data, dict):
            raise ValidationError("Each record must be an object")
        try:
            person_id = int(data.get("person_id"))
        except (TypeError, ValueError):
            raise ValidationError("Each record needs a person_id")
        status = parse_status(data.get("status"))
        if status is None:
            raise ValidationError("Each record needs a status")
        notes = optional_text(data.get("notes"))
        return cls(person_id=person_id, status=status, notes=notes)


@dataclass(frozen=True)
class AttendanceSheetRow:
    """A person merged with their attendance for one date (bulk-entry sheet)."""

    person_id: int
    full_name: str
    role: Optional[str]
    status: Optional[AttendanceStatus]
    notes: Optional[str]
    existing_id: Optional[int]


@dataclass(frozen=True)
class LogFilters:
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    person_id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_mapping(cls, args) -> "LogFilters":
        person_raw = str(args.get("person_id") or "").strip()
        try:
            person_id = int(person_raw) if person_raw else None
        except ValueError:
            raise ValidationError("person_id must be a number")

        filters = cls(
            date_from=parse_optional_date(args.get("date_from"), "date_from"),
            date_to=parse_optional_date(args.get("date_to"), "date_to"),
            person_id=person_id,
            status=parse_status(args.get("status")),
            page=parse_positive_int(args.get("page"), "page", default=1),
            limit=parse_positive_int(args.get("limit"), "limit", default=DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE),
        )
        if filters.date_from and filters.date_to and filters.date_to < filters.date_from:
            raise ValidationError("date_to must be on or after date_from")
        return filters


@dataclass(frozen=True)
class LogPage:
    records: list
    count: int
    page: int
    limit: int
    total_pages: int


@dataclass(frozen=True)
class DashboardStats:
    total_people: int
    today_present: int
    today_absent: int
    today_pending: int


@dataclass(frozen=True)
class TodayPunch:
    attendance_id: int
    person_id: int
    full_name: str
    person_role: Optional[str]
    status: Optional[AttendanceStatus]
    punch_in_time: Optional[datetime]
    punch_out_time: Optional[datetime]
    punch_in_address: Optional[str]
    punch_out_address: Optional[str]
    punch_in_map_url: Optional[str]
    punch_out_map_url: Optional[str]
