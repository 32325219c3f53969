"""Core service interfaces and shared data structures.

This module defines the dataclasses exchanged between the core services and
their collaborators (photo store, UI, haptics): finalized capture output and
fulfillment results.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from core.models import Angle, CapturedPhotoRecord, PhotoMetadata, Stage


@dataclass(frozen=True)
class FinalizedPhoto:
    """A kept capture paired with the tags it is stored under.

    Attributes:
        record: The captured photo, including its opaque image payload.
        metadata: Final tag values and rating for the photo store.
    """

    record: CapturedPhotoRecord
    metadata: PhotoMetadata


@dataclass(frozen=True)
class CancelResult:
    """Outcome of discarding a capture session.

    Attributes:
        discarded_count: Number of captured photos thrown away.
        source_portfolio_id: Portfolio the session was launched from, if any.
    """

    discarded_count: int
    source_portfolio_id: str | None = None


@dataclass(frozen=True)
class SlotFulfillment:
    """Assignment of photos to one (stage, angle) slot of a requirement.

    Attributes:
        stage: Slot stage.
        angle: Slot angle.
        required: Photos the slot needs.
        photo_ids: Photos counted towards the slot, oldest first.
        surplus_ids: Matching photos beyond `required`; they add nothing.
    """

    stage: Stage
    angle: Angle
    required: int
    photo_ids: list[str] = field(default_factory=list)
    surplus_ids: list[str] = field(default_factory=list)

    @property
    def satisfied(self) -> int:
        return len(self.photo_ids)

    @property
    def is_complete(self) -> bool:
        return self.satisfied >= self.required


@dataclass(frozen=True)
class RequirementFulfillment:
    """Completion of a single requirement.

    Attributes:
        requirement_id: Id of the evaluated requirement.
        procedure: Procedure the requirement is about.
        satisfied_count: Photos counted, capped at `total_required`.
        total_required: Photos the requirement needs in total.
        slots: Per-slot detail in stage-major order.
    """

    requirement_id: str
    procedure: str
    satisfied_count: int
    total_required: int
    slots: list[SlotFulfillment] = field(default_factory=list)

    @property
    def fraction(self) -> float:
        if self.total_required == 0:
            return 1.0
        return self.satisfied_count / self.total_required

    @property
    def is_fulfilled(self) -> bool:
        return self.satisfied_count >= self.total_required

    @property
    def remaining(self) -> int:
        return self.total_required - self.satisfied_count


@dataclass(frozen=True)
class PortfolioFulfillment:
    """Aggregate completion of a portfolio.

    Attributes:
        portfolio_id: Id of the evaluated portfolio.
        requirements: Per-requirement results in portfolio order.
    """

    portfolio_id: str
    requirements: list[RequirementFulfillment] = field(default_factory=list)

    @property
    def satisfied_count(self) -> int:
        return sum(r.satisfied_count for r in self.requirements)

    @property
    def total_required(self) -> int:
        return sum(r.total_required for r in self.requirements)

    @property
    def completion_fraction(self) -> float:
        total = self.total_required
        return self.satisfied_count / total if total else 0.0

    @property
    def is_complete(self) -> bool:
        return self.satisfied_count >= self.total_required

    def for_requirement(self, requirement_id: str) -> RequirementFulfillment | None:
        for item in self.requirements:
            if item.requirement_id == requirement_id:
                return item
        return None


class HapticFeedback:
    """Interface for the device haptics collaborator."""

    def photo_captured(self) -> None:
        """Emit a short pulse acknowledging a shutter press."""
        raise NotImplementedError


class NullHaptics(HapticFeedback):
    """Haptics stand-in for hosts without a vibration motor."""

    def photo_captured(self) -> None:
        return None
