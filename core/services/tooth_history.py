"""Grouping of stored photos by tooth entry.

A tooth entry is one physical tooth treated for a procedure on one day; its
photos span stages and angles.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from core.models import StoredPhoto, ToothEntry


class ToothHistoryService:
    """Derives tooth entries from photo metadata."""

    def group_by_tooth_entry(self, photos: Iterable[StoredPhoto]) -> dict[ToothEntry, list[StoredPhoto]]:
        """Map each tooth entry to its photos, skipping photos without one."""
        grouped: dict[ToothEntry, list[StoredPhoto]] = defaultdict(list)
        for photo in photos:
            entry = photo.metadata.tooth_entry
            if entry is not None:
                grouped[entry].append(photo)
        return dict(grouped)

    def tooth_entries_for(self, procedure: str, photos: Iterable[StoredPhoto]) -> list[ToothEntry]:
        """Distinct entries recorded for `procedure`, newest date first then by tooth."""
        entries = {e for e in self.group_by_tooth_entry(photos) if e.procedure == procedure}
        return sorted(entries, key=lambda e: (-e.date.toordinal(), e.tooth_number))
