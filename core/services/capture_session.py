"""Capture session state machine.

A session moves through three steps: SETUP (choose tags), SHOOTING (take
photos) and REVIEW (rate and keep/discard). The state is an immutable
`CaptureState` snapshot and every change goes through `transition`, a pure
function that returns the next snapshot or raises `InvalidStateTransition`.

`CaptureSession` is the mutable holder used by a UI. It stamps new photos
with identities and timestamps, pulses the haptics collaborator and
publishes each applied snapshot to its subscribers. A session has a single
writer; hosts that introduce threads must serialize calls themselves.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from loguru import logger

from core.errors import InvalidStateTransition
from core.models import Angle, CapturedPhotoRecord, PhotoMetadata, Stage, TagSelection
from core.services.interfaces import CancelResult, FinalizedPhoto, HapticFeedback, NullHaptics


class CaptureStep(str, Enum):
    """Capture session steps."""

    SETUP = "setup"
    SHOOTING = "shooting"
    REVIEW = "review"


@dataclass(frozen=True)
class CaptureState:
    """Snapshot of a capture session."""

    step: CaptureStep = CaptureStep.SETUP
    tags: TagSelection = field(default_factory=TagSelection)
    photos: tuple[CapturedPhotoRecord, ...] = ()
    is_from_requirement: bool = False
    source_portfolio_id: str | None = None

    @property
    def kept_photos(self) -> list[CapturedPhotoRecord]:
        return [p for p in self.photos if p.keep]

    @property
    def has_unsaved_photos(self) -> bool:
        return bool(self.photos)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Prefill:
    procedure: str | None = None
    stage: Stage | None = None
    angle: Angle | None = None
    tooth_number: int | None = None
    source_portfolio_id: str | None = None


@dataclass(frozen=True)
class SelectTags:
    """Replace the given TagSelection fields, e.g. `{"tooth_number": 14}`."""

    changes: Mapping[str, Any]


@dataclass(frozen=True)
class StartShooting:
    pass


@dataclass(frozen=True)
class AddPhoto:
    record: CapturedPhotoRecord


@dataclass(frozen=True)
class RemovePhoto:
    index: int


@dataclass(frozen=True)
class ToggleKeep:
    photo_id: str


@dataclass(frozen=True)
class SetRating:
    photo_id: str
    rating: int


@dataclass(frozen=True)
class FinishShooting:
    pass


@dataclass(frozen=True)
class Reset:
    pass


CaptureEvent = (
    Prefill
    | SelectTags
    | StartShooting
    | AddPhoto
    | RemovePhoto
    | ToggleKeep
    | SetRating
    | FinishShooting
    | Reset
)


# ---------------------------------------------------------------------------
# Transition function
# ---------------------------------------------------------------------------


def _require(state: CaptureState, allowed: tuple[CaptureStep, ...], operation: str) -> None:
    if state.step not in allowed:
        raise InvalidStateTransition(state.step.value, operation)


def _prefill(state: CaptureState, event: Prefill) -> CaptureState:
    if state.photos or state.step is CaptureStep.REVIEW:
        raise InvalidStateTransition(state.step.value, "prefill")
    tags = state.tags.with_changes(
        procedure=event.procedure,
        stage=event.stage,
        angle=event.angle,
        tooth_number=event.tooth_number,
    )
    from_requirement = event.procedure is not None
    return replace(
        state,
        tags=tags,
        is_from_requirement=from_requirement,
        source_portfolio_id=event.source_portfolio_id,
        step=CaptureStep.SHOOTING if from_requirement else state.step,
    )


def _select_tags(state: CaptureState, event: SelectTags) -> CaptureState:
    _require(state, (CaptureStep.SETUP, CaptureStep.SHOOTING), "select_tags")
    return replace(state, tags=state.tags.with_changes(**dict(event.changes)))


def _start_shooting(state: CaptureState, _event: StartShooting) -> CaptureState:
    _require(state, (CaptureStep.SETUP,), "start_shooting")
    return replace(state, step=CaptureStep.SHOOTING)


def _add_photo(state: CaptureState, event: AddPhoto) -> CaptureState:
    _require(state, (CaptureStep.SHOOTING,), "add_photo")
    return replace(state, photos=state.photos + (event.record,))


def _remove_photo(state: CaptureState, event: RemovePhoto) -> CaptureState:
    _require(state, (CaptureStep.SHOOTING, CaptureStep.REVIEW), "remove_photo")
    if not 0 <= event.index < len(state.photos):
        return state
    photos = state.photos[: event.index] + state.photos[event.index + 1 :]
    return replace(state, photos=photos)


def _update_photo(
    state: CaptureState, photo_id: str, update: Callable[[CapturedPhotoRecord], CapturedPhotoRecord]
) -> CaptureState:
    if not any(p.id == photo_id for p in state.photos):
        return state
    photos = tuple(update(p) if p.id == photo_id else p for p in state.photos)
    return replace(state, photos=photos)


def _toggle_keep(state: CaptureState, event: ToggleKeep) -> CaptureState:
    return _update_photo(state, event.photo_id, lambda p: p.toggled_keep())


def _set_rating(state: CaptureState, event: SetRating) -> CaptureState:
    return _update_photo(state, event.photo_id, lambda p: p.with_rating(event.rating))


def _finish_shooting(state: CaptureState, _event: FinishShooting) -> CaptureState:
    _require(state, (CaptureStep.SHOOTING,), "finish_shooting")
    if not state.photos:
        return state
    return replace(state, step=CaptureStep.REVIEW)


def _reset(_state: CaptureState, _event: Reset) -> CaptureState:
    return CaptureState()


_HANDLERS: dict[type, Callable[[CaptureState, Any], CaptureState]] = {
    Prefill: _prefill,
    SelectTags: _select_tags,
    StartShooting: _start_shooting,
    AddPhoto: _add_photo,
    RemovePhoto: _remove_photo,
    ToggleKeep: _toggle_keep,
    SetRating: _set_rating,
    FinishShooting: _finish_shooting,
    Reset: _reset,
}


def transition(state: CaptureState, event: CaptureEvent) -> CaptureState:
    """Apply `event` to `state` and return the resulting snapshot.

    Raises:
        InvalidStateTransition: The event is not legal in `state.step`.
        TypeError: `event` is not a capture event.
    """
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unsupported capture event: {event!r}")
    return handler(state, event)


# ---------------------------------------------------------------------------
# Session holder
# ---------------------------------------------------------------------------


Listener = Callable[[CaptureState], None]


class CaptureSession:
    """Mutable owner of one capture session's state."""

    def __init__(
        self,
        haptics: HapticFeedback | None = None,
        prefill: Prefill | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Create a session.

        Args:
            haptics: Receives a pulse per captured photo (defaults to no-op).
            prefill: Tags from a specific requirement; a set procedure skips
                the SETUP step.
            clock: Source of capture timestamps.
        """
        self._haptics = haptics or NullHaptics()
        self._clock = clock
        self._listeners: list[Listener] = []
        self._state = CaptureState()
        if prefill is not None:
            self._state = transition(self._state, prefill)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def step(self) -> CaptureStep:
        return self._state.step

    @property
    def tags(self) -> TagSelection:
        return self._state.tags

    @property
    def captured_photos(self) -> list[CapturedPhotoRecord]:
        return list(self._state.photos)

    @property
    def kept_photos(self) -> list[CapturedPhotoRecord]:
        return self._state.kept_photos

    @property
    def is_from_requirement(self) -> bool:
        return self._state.is_from_requirement

    @property
    def source_portfolio_id(self) -> str | None:
        return self._state.source_portfolio_id

    @property
    def has_unsaved_photos(self) -> bool:
        return self._state.has_unsaved_photos

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with every applied snapshot; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def dispatch(self, event: CaptureEvent) -> CaptureState:
        """Apply `event`, publish the new snapshot and return it."""
        previous = self._state
        try:
            new_state = transition(previous, event)
        except InvalidStateTransition as ex:
            logger.warning("Rejected capture event {}: {}", type(event).__name__, ex)
            raise
        if new_state is previous:
            return previous
        self._state = new_state
        if new_state.step is not previous.step:
            logger.debug("Capture step {} -> {}", previous.step.value, new_state.step.value)
        for listener in list(self._listeners):
            listener(new_state)
        return new_state

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def prefill(
        self,
        procedure: str | None = None,
        stage: Stage | None = None,
        angle: Angle | None = None,
        tooth_number: int | None = None,
        source_portfolio_id: str | None = None,
    ) -> None:
        self.dispatch(Prefill(procedure, stage, angle, tooth_number, source_portfolio_id))

    def select_tags(self, **changes: Any) -> None:
        self.dispatch(SelectTags(changes))

    def start_shooting(self) -> None:
        self.dispatch(StartShooting())

    def add_photo(self, image_payload: Any) -> CapturedPhotoRecord:
        """Record a shutter press and return the new photo record."""
        record = CapturedPhotoRecord.create(image_payload, captured_at=self._clock())
        self.dispatch(AddPhoto(record))
        try:
            self._haptics.photo_captured()
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.warning("Haptic feedback failed: {}", ex)
        return record

    def remove_photo(self, index: int) -> None:
        self.dispatch(RemovePhoto(index))

    def toggle_keep(self, photo_id: str) -> None:
        self.dispatch(ToggleKeep(photo_id))

    def set_rating(self, photo_id: str, rating: int) -> None:
        """Set a photo's rating; callers must pass a value in 0..5."""
        self.dispatch(SetRating(photo_id, rating))

    def finish_shooting(self) -> None:
        self.dispatch(FinishShooting())

    def reset(self) -> None:
        self.dispatch(Reset())

    def finalize(self) -> list[FinalizedPhoto]:
        """Hand over kept photos with their final tags and reset the session.

        A missing procedure date falls back to the photo's capture day. A
        rating of 0 is stored as unrated.

        Raises:
            InvalidStateTransition: The session is not in REVIEW.
        """
        state = self._state
        if state.step is not CaptureStep.REVIEW:
            logger.warning("Rejected finalize during {}", state.step.value)
            raise InvalidStateTransition(state.step.value, "finalize")

        finalized: list[FinalizedPhoto] = []
        for record in state.kept_photos:
            tags = state.tags
            if tags.tooth_date is None:
                tags = tags.with_changes(tooth_date=record.captured_at)
            metadata = PhotoMetadata.from_selection(tags, rating=record.rating or None)
            finalized.append(FinalizedPhoto(record=record, metadata=metadata))

        logger.info(
            "Finalized capture session: kept {} of {} photos ({})",
            len(finalized),
            len(state.photos),
            state.tags.display_summary,
        )
        self.reset()
        return finalized

    def cancel(self) -> CancelResult:
        """Discard the session, reporting what was thrown away."""
        result = CancelResult(
            discarded_count=len(self._state.photos),
            source_portfolio_id=self._state.source_portfolio_id,
        )
        if result.discarded_count:
            logger.info("Discarded capture session with {} photos", result.discarded_count)
        self.reset()
        return result
