"""ViewModel mediating between capture screens and the capture session."""

from __future__ import annotations

from typing import Any

from loguru import logger

from core.models import validate_rating
from core.services.capture_session import CaptureSession, CaptureStep
from core.services.interfaces import CancelResult, FinalizedPhoto


class CaptureVM:
    """Capture flow view-model.

    Exposes display text for the capture screens and forwards user actions
    to a `CaptureSession`.
    """

    def __init__(self, session: CaptureSession, procedures: list[str] | None = None) -> None:
        """Create a CaptureVM.

        Args:
            session: The session being driven.
            procedures: Procedure names offered in the setup step.
        """
        self._session = session
        self.procedures: list[str] = list(procedures or [])

    @property
    def session(self) -> CaptureSession:
        return self._session

    @property
    def step(self) -> CaptureStep:
        return self._session.step

    @property
    def tag_summary(self) -> str:
        return self._session.tags.display_summary

    @property
    def needs_manual_tagging(self) -> bool:
        """True while any tag is still missing, e.g. the tooth after a prefill."""
        return not self._session.tags.is_complete

    @property
    def photo_count(self) -> int:
        return len(self._session.captured_photos)

    @property
    def kept_count(self) -> int:
        return len(self._session.kept_photos)

    @property
    def can_finish(self) -> bool:
        return self.step is CaptureStep.SHOOTING and self.photo_count > 0

    @property
    def cancel_prompt(self) -> str | None:
        """Discard confirmation message, or None when nothing would be lost."""
        if not self._session.has_unsaved_photos:
            return None
        return f"You have {self.photo_count} unsaved photo(s). Discard them?"

    def select_tags(self, **changes: Any) -> None:
        if "tooth_number" in changes and changes["tooth_number"] is not None:
            self._session.tags.with_changes(tooth_number=changes["tooth_number"]).validate()
        self._session.select_tags(**changes)

    def rate(self, photo_id: str, rating: int) -> None:
        """Validate UI input, then record the rating."""
        self._session.set_rating(photo_id, validate_rating(rating))

    def save(self) -> list[FinalizedPhoto]:
        finalized = self._session.finalize()
        logger.info("Handing {} photos to the photo store", len(finalized))
        return finalized

    def discard(self) -> CancelResult:
        return self._session.cancel()
