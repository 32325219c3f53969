"""Core domain models for tagged photos, requirements and portfolios."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from core.dates import as_calendar_date, days_until_due, format_short_date
from core.errors import DomainViolation

TOOTH_NUMBER_RANGE = range(1, 33)
RATING_RANGE = range(0, 6)
DUE_SOON_DAYS = 7


class Stage(str, Enum):
    """Procedure stage a photo documents."""

    PREPARATION = "Preparation"
    RESTORATION = "Restoration"

    @property
    def abbreviation(self) -> str:
        return "Prep" if self is Stage.PREPARATION else "Resto"


class Angle(str, Enum):
    """Fixed vocabulary of camera angles."""

    OCCLUSAL = "Occlusal"
    BUCCAL_FACIAL = "Buccal/Facial"
    LINGUAL = "Lingual"
    PROXIMAL = "Proximal"
    MESIAL = "Mesial"
    DISTAL = "Distal"
    OTHER = "Other"


def validate_rating(rating: int) -> int:
    """Return `rating` unchanged, raising DomainViolation if outside 0..5."""
    if isinstance(rating, bool) or not isinstance(rating, int) or rating not in RATING_RANGE:
        raise DomainViolation(f"rating must be an integer in 0..5, got {rating!r}")
    return rating


def _validate_count(angle: Any, count: Any) -> int:
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise DomainViolation(
            f"photo count for {angle!r} must be a positive integer, got {count!r}"
        )
    return count


def _summary(
    procedure: str | None,
    tooth_number: int | None,
    stage: Stage | None,
    angle: Angle | None,
    placeholder: str,
) -> str:
    parts: list[str] = []
    if procedure is not None:
        parts.append(procedure)
    if tooth_number is not None:
        parts.append(f"#{tooth_number}")
    if stage is not None:
        parts.append(Stage(stage).abbreviation)
    if angle is not None:
        parts.append(Angle(angle).value)
    return " · ".join(parts) if parts else placeholder


@dataclass(frozen=True)
class ToothEntry:
    """A specific tooth worked on for a procedure on a calendar day.

    The date is reduced to its calendar day on construction, so two captures
    on the same day compare equal.
    """

    procedure: str
    tooth_number: int
    date: date

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", as_calendar_date(self.date))

    @property
    def date_string(self) -> str:
        return format_short_date(self.date)

    @property
    def id(self) -> str:
        return f"{self.procedure}-{self.tooth_number}-{self.date_string}"

    @property
    def display_string(self) -> str:
        return f"Tooth {self.tooth_number} - {self.date_string}"


@dataclass(frozen=True)
class TagSelection:
    """Pending classification values chosen before or during capture.

    Any subset of fields may be set. Instances are immutable snapshots; use
    `with_changes` to derive an updated selection.
    """

    procedure: str | None = None
    tooth_number: int | None = None
    tooth_date: date | None = None
    stage: Stage | None = None
    angle: Angle | None = None

    def __post_init__(self) -> None:
        if self.stage is not None:
            object.__setattr__(self, "stage", Stage(self.stage))
        if self.angle is not None:
            object.__setattr__(self, "angle", Angle(self.angle))
        if self.tooth_date is not None:
            object.__setattr__(self, "tooth_date", as_calendar_date(self.tooth_date))

    @property
    def has_any_tag(self) -> bool:
        return self.procedure is not None

    @property
    def is_complete(self) -> bool:
        return (
            self.procedure is not None
            and self.tooth_number is not None
            and self.tooth_date is not None
            and self.stage is not None
            and self.angle is not None
        )

    @property
    def display_summary(self) -> str:
        """Set fields joined in fixed order, e.g. `Class 1 · #14 · Prep · Occlusal`."""
        return _summary(self.procedure, self.tooth_number, self.stage, self.angle, "Tap to add tags")

    def with_changes(self, **changes: Any) -> TagSelection:
        return replace(self, **changes)

    def validate(self) -> None:
        """Raise DomainViolation when the tooth number is outside 1..32."""
        if self.tooth_number is not None and self.tooth_number not in TOOTH_NUMBER_RANGE:
            raise DomainViolation(f"tooth number must be in 1..32, got {self.tooth_number!r}")


@dataclass(frozen=True)
class CapturedPhotoRecord:
    """A single photo taken during a capture session.

    Only `rating` and `keep` change after creation, and only through
    `with_rating` / `toggled_keep`, which return new records.
    """

    id: str
    image_payload: Any
    captured_at: datetime
    rating: int = 0
    keep: bool = True

    @classmethod
    def create(cls, image_payload: Any, captured_at: datetime | None = None) -> CapturedPhotoRecord:
        return cls(
            id=str(uuid4()),
            image_payload=image_payload,
            captured_at=captured_at or datetime.now(),
        )

    def with_rating(self, rating: int) -> CapturedPhotoRecord:
        return replace(self, rating=rating)

    def toggled_keep(self) -> CapturedPhotoRecord:
        return replace(self, keep=not self.keep)


@dataclass(frozen=True)
class PhotoMetadata:
    """Finalized tags stored alongside a saved photo."""

    procedure: str | None = None
    tooth_number: int | None = None
    tooth_date: date | None = None
    stage: Stage | None = None
    angle: Angle | None = None
    rating: int | None = None

    def __post_init__(self) -> None:
        if self.stage is not None:
            object.__setattr__(self, "stage", Stage(self.stage))
        if self.angle is not None:
            object.__setattr__(self, "angle", Angle(self.angle))
        if self.tooth_date is not None:
            object.__setattr__(self, "tooth_date", as_calendar_date(self.tooth_date))

    @classmethod
    def from_selection(cls, tags: TagSelection, rating: int | None = None) -> PhotoMetadata:
        return cls(
            procedure=tags.procedure,
            tooth_number=tags.tooth_number,
            tooth_date=tags.tooth_date,
            stage=tags.stage,
            angle=tags.angle,
            rating=rating,
        )

    @property
    def tooth_entry(self) -> ToothEntry | None:
        if self.procedure is None or self.tooth_number is None or self.tooth_date is None:
            return None
        return ToothEntry(self.procedure, self.tooth_number, self.tooth_date)

    @property
    def is_complete(self) -> bool:
        return (
            self.procedure is not None
            and self.tooth_number is not None
            and self.tooth_date is not None
            and self.stage is not None
            and self.angle is not None
        )

    @property
    def summary_text(self) -> str:
        return _summary(self.procedure, self.tooth_number, self.stage, self.angle, "Choose procedure")


@dataclass(frozen=True)
class StoredPhoto:
    """A persisted photo as handed over by the photo store."""

    id: str
    metadata: PhotoMetadata
    captured_at: datetime


@dataclass
class PortfolioRequirement:
    """Photos one procedure needs, per stage and angle.

    `angle_counts` is completed on construction: every listed angle without
    an explicit count needs one photo.
    """

    procedure: str
    stages: list[Stage] = field(default_factory=list)
    angles: list[Angle] = field(default_factory=list)
    angle_counts: dict[Angle, int] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid4()))

    def __post_init__(self) -> None:
        # Duplicates collapse; order of first appearance is kept
        self.stages = list(dict.fromkeys(Stage(s) for s in self.stages))
        self.angles = list(dict.fromkeys(Angle(a) for a in self.angles))
        counts = {Angle(a): _validate_count(a, n) for a, n in self.angle_counts.items()}
        for angle in self.angles:
            counts.setdefault(angle, 1)
        self.angle_counts = counts

    @property
    def total_required(self) -> int:
        return len(self.stages) * sum(self.angle_counts[a] for a in self.angles)

    @property
    def display_string(self) -> str:
        if len(self.stages) == len(Stage):
            stage_text = "Both Stages"
        else:
            stage_text = ", ".join(s.value for s in self.stages)
        if len(self.angles) == len(Angle):
            angle_text = "All Angles"
        else:
            angle_text = ", ".join(a.value for a in self.angles)
        return f"{self.procedure} · {stage_text} · {angle_text}"


@dataclass
class Portfolio:
    """A named collection of photo requirements with an optional deadline."""

    name: str
    requirements: list[PortfolioRequirement] = field(default_factory=list)
    due_date: date | datetime | None = None
    notes: str | None = None
    created_date: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: str(uuid4()))

    @property
    def days_until_due(self) -> int | None:
        """Calendar days until the due date (today is 0); None without one."""
        return days_until_due(self.due_date)

    @property
    def is_overdue(self) -> bool:
        days = self.days_until_due
        return days is not None and days < 0

    @property
    def is_due_soon(self) -> bool:
        """Due within the default 7-day window, today included.

        A configured window goes through `classify_portfolio` instead.
        """
        days = self.days_until_due
        return days is not None and 0 <= days <= DUE_SOON_DAYS

    def add_requirement(self, requirement: PortfolioRequirement) -> None:
        self.requirements.append(requirement)

    def update_requirement(self, requirement: PortfolioRequirement) -> bool:
        """Replace the requirement with the same id; False when none matches."""
        for i, existing in enumerate(self.requirements):
            if existing.id == requirement.id:
                self.requirements[i] = requirement
                return True
        return False

    def remove_requirement(self, requirement_id: str) -> None:
        self.requirements = [r for r in self.requirements if r.id != requirement_id]


DEFAULT_PROCEDURE_NAMES = [
    "Class 1",
    "Class 2",
    "Class 3",
    "Class 4",
    "Class 5",
    "Crown",
    "Bridge",
    "Veneer",
    "Inlay",
    "Onlay",
    "Root Canal",
    "Extraction",
]


@dataclass
class ProcedureConfig:
    """A procedure type offered for capture and tagging.

    Attributes:
        name: Display name, also the value stored in photo metadata.
        is_default: Built-in procedures cannot be renamed or deleted, only disabled.
        is_enabled: Disabled procedures are hidden from capture and tagging.
        sort_order: Position among the configured procedures, ascending.
        id: Unique identifier.
    """

    name: str
    is_default: bool = False
    is_enabled: bool = True
    sort_order: int = 0
    id: str = field(default_factory=lambda: str(uuid4()))
