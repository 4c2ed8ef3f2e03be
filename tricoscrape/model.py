"""
Central data model definitions used across the project.

The field names follow the JSON the Banner search endpoint returns, so
decoding a page and writing courses.json use the same vocabulary:

- Course is one section (unique by courseReferenceNumber within a term)
- Faculty, MeetingTime and Attribute hang off a course
- CatalogPage is one answer of the search endpoint
- Dataset is everything collected for one term

Decoding is structural only: JSON null becomes an empty default and a
record that is not an object raises DecodeError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from tricoscrape.errors import DecodeError

log = logging.getLogger(__name__)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


# ---------------------------------------------------------------------------
# Decoding helpers
# ---------------------------------------------------------------------------


def _obj(raw: Any, what: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise DecodeError(f"expected {what} object, got {type(raw).__name__}")
    return raw


def _str(x: Any) -> str:
    return "" if x is None else str(x)


def _int(x: Any) -> int:
    if x is None or isinstance(x, bool):
        return 0
    try:
        return int(x)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"expected integer, got {x!r}") from exc


def _float(x: Any) -> float:
    if x is None or isinstance(x, bool):
        return 0.0
    try:
        return float(x)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"expected number, got {x!r}") from exc


def _list(x: Any, what: str) -> List[Any]:
    if x is None:
        return []
    if not isinstance(x, list):
        raise DecodeError(f"expected list of {what}, got {type(x).__name__}")
    return x


# ---------------------------------------------------------------------------
# Sub-records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Faculty:
    banner_id: str
    ref: str
    name: str
    email: str

    @classmethod
    def from_json(cls, raw: Any) -> "Faculty":
        d = _obj(raw, "faculty")
        return cls(
            banner_id=_str(d.get("bannerId")),
            ref=_str(d.get("courseReferenceNumber")),
            name=_str(d.get("displayName")),
            email=_str(d.get("emailAddress")),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "bannerId": self.banner_id,
            "courseReferenceNumber": self.ref,
            "displayName": self.name,
            "emailAddress": self.email,
        }


@dataclass(frozen=True)
class MeetingTime:
    """
    One weekly meeting block. Times are Banner's "HHMM" strings, dates
    are "MM/DD/YYYY" as the server sends them.
    """

    begin: str
    end: str
    start_date: str
    end_date: str
    building: str
    building_description: str
    room: str
    category: str
    ref: str
    hours_week: float
    meeting_type: str
    meeting_type_description: str
    monday: bool = False
    tuesday: bool = False
    wednesday: bool = False
    thursday: bool = False
    friday: bool = False
    saturday: bool = False
    sunday: bool = False

    @classmethod
    def from_json(cls, raw: Any) -> "MeetingTime":
        d = _obj(raw, "meeting time")
        return cls(
            begin=_str(d.get("beginTime")),
            end=_str(d.get("endTime")),
            start_date=_str(d.get("startDate")),
            end_date=_str(d.get("endDate")),
            building=_str(d.get("building")),
            building_description=_str(d.get("buildingDescription")),
            room=_str(d.get("room")),
            category=_str(d.get("category")),
            ref=_str(d.get("courseReferenceNumber")),
            hours_week=_float(d.get("hoursWeek")),
            meeting_type=_str(d.get("meetingType")),
            meeting_type_description=_str(d.get("meetingTypeDescription")),
            **{day: bool(d.get(day)) for day in WEEKDAYS},
        )

    def days(self) -> List[str]:
        return [day for day in WEEKDAYS if getattr(self, day)]

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "beginTime": self.begin,
            "endTime": self.end,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "building": self.building,
            "buildingDescription": self.building_description,
            "room": self.room,
            "category": self.category,
            "courseReferenceNumber": self.ref,
            "hoursWeek": self.hours_week,
            "meetingType": self.meeting_type,
            "meetingTypeDescription": self.meeting_type_description,
        }
        for day in WEEKDAYS:
            out[day] = getattr(self, day)
        return out


@dataclass(frozen=True)
class MeetingFaculty:
    category: str
    ref: str
    meeting_time: Optional[MeetingTime]

    @classmethod
    def from_json(cls, raw: Any) -> "MeetingFaculty":
        d = _obj(raw, "meetingsFaculty")
        mt = d.get("meetingTime")
        return cls(
            category=_str(d.get("category")),
            ref=_str(d.get("courseReferenceNumber")),
            meeting_time=MeetingTime.from_json(mt) if mt is not None else None,
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "courseReferenceNumber": self.ref,
            "meetingTime": self.meeting_time.to_json() if self.meeting_time else None,
        }


@dataclass(frozen=True)
class Attribute:
    code: str
    description: str
    ref: str

    @classmethod
    def from_json(cls, raw: Any) -> "Attribute":
        d = _obj(raw, "section attribute")
        return cls(
            code=_str(d.get("code")),
            description=_str(d.get("description")),
            ref=_str(d.get("courseReferenceNumber")),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "description": self.description,
            "courseReferenceNumber": self.ref,
        }


# ---------------------------------------------------------------------------
# Course
# ---------------------------------------------------------------------------


@dataclass
class Course:
    """
    Represents one course section as stored in courses.json.

    Everything except description/description_url comes from the search
    endpoint. The description is filled in later, at most once.
    """

    id: int
    ref: str
    subject: str
    number: str
    title: str
    schedule_type: str
    credits: float
    max_enrollment: int
    enrolled: int
    seats_available: int
    faculty: List[Faculty] = field(default_factory=list)
    meetings: List[MeetingFaculty] = field(default_factory=list)
    attributes: List[Attribute] = field(default_factory=list)
    description_url: str = ""
    description: str = ""
    _described: bool = field(default=False, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._described = bool(self.description)

    @classmethod
    def from_json(cls, raw: Any) -> "Course":
        d = _obj(raw, "course")
        ref = _str(d.get("courseReferenceNumber")).strip()
        if not ref:
            raise DecodeError(f"course without courseReferenceNumber (id={d.get('id')!r})")

        credits = d.get("creditHours")
        if credits is None:
            # variable-credit sections only report a range
            credits = d.get("creditHourLow")

        return cls(
            id=_int(d.get("id")),
            ref=ref,
            subject=_str(d.get("subject")),
            number=_str(d.get("courseNumber")),
            title=_str(d.get("courseTitle")),
            schedule_type=_str(d.get("scheduleTypeDescription")),
            credits=_float(credits),
            max_enrollment=_int(d.get("maximumEnrollment")),
            enrolled=_int(d.get("enrollment")),
            seats_available=_int(d.get("seatsAvailable")),
            faculty=[Faculty.from_json(x) for x in _list(d.get("faculty"), "faculty")],
            meetings=[MeetingFaculty.from_json(x) for x in _list(d.get("meetingsFaculty"), "meetings")],
            attributes=[Attribute.from_json(x) for x in _list(d.get("sectionAttributes"), "attributes")],
            description_url=_str(d.get("descriptionUrl")),
            description=_str(d.get("description")),
        )

    @property
    def code(self) -> str:
        return f"{self.subject} {self.number}".strip()

    def set_description(self, text: str) -> None:
        # An empty description still counts as set.
        if self._described:
            raise ValueError(f"description of CRN {self.ref} is already set")
        self.description = text
        self._described = True

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "courseReferenceNumber": self.ref,
            "courseNumber": self.number,
            "subject": self.subject,
            "scheduleTypeDescription": self.schedule_type,
            "courseTitle": self.title,
            "descriptionUrl": self.description_url,
            "description": self.description,
            "creditHours": self.credits,
            "maximumEnrollment": self.max_enrollment,
            "enrollment": self.enrolled,
            "seatsAvailable": self.seats_available,
            "faculty": [f.to_json() for f in self.faculty],
            "meetingsFaculty": [m.to_json() for m in self.meetings],
            "sectionAttributes": [a.to_json() for a in self.attributes],
        }


# ---------------------------------------------------------------------------
# Pages & dataset
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CatalogPage:
    total_count: int
    courses: Tuple[Course, ...]

    @classmethod
    def from_json(cls, raw: Any) -> "CatalogPage":
        d = _obj(raw, "search result")
        if "totalCount" not in d:
            raise DecodeError("search result without totalCount")
        total = _int(d.get("totalCount"))
        if total < 0:
            raise DecodeError(f"negative totalCount {total}")
        courses = tuple(Course.from_json(x) for x in _list(d.get("data"), "courses"))
        return cls(total_count=total, courses=courses)


@dataclass
class Dataset:
    """
    All sections of one term.

    total_count is the number the first page declared. Courses only ever
    grow by add_page; afterwards the list is not resized, so enrichment
    workers can each own one index.
    """

    total_count: int = 0
    courses: List[Course] = field(default_factory=list)
    _refs: set = field(default_factory=set, init=False, repr=False, compare=False)
    _first_page_seen: bool = field(default=False, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._refs = {c.ref for c in self.courses}
        self._first_page_seen = bool(self.courses) or self.total_count > 0

    def __len__(self) -> int:
        return len(self.courses)

    @property
    def complete(self) -> bool:
        return len(self.courses) >= self.total_count

    def add_page(self, page: CatalogPage) -> int:
        """
        Append a page in server order. Returns how many courses were new.
        """
        if not self._first_page_seen:
            self.total_count = page.total_count
            self._first_page_seen = True
        elif page.total_count != self.total_count:
            log.warning(
                "server now reports %d courses instead of %d; keeping the first count",
                page.total_count,
                self.total_count,
            )

        added = 0
        for course in page.courses:
            if course.ref in self._refs:
                log.warning("duplicate CRN %s (%s) skipped", course.ref, course.code)
                continue
            self._refs.add(course.ref)
            self.courses.append(course)
            added += 1
        return added

    def freeze(self) -> Tuple[Course, ...]:
        return tuple(self.courses)

    @classmethod
    def from_json(cls, raw: Any) -> "Dataset":
        page = CatalogPage.from_json(raw)
        return cls(total_count=page.total_count, courses=list(page.courses))
