"""Requirement fulfillment engine.

Counts how far a set of stored, tagged photos covers a portfolio's
requirements. Each requirement is split into (stage, angle) slots; a slot
needs `angle_counts[angle]` photos whose procedure, stage and angle all match.
Matching photos fill a slot oldest first and anything beyond the needed count
is surplus. Photos are not consumed: a photo may count for several
requirements.
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from core.models import Angle, PhotoMetadata, Portfolio, PortfolioRequirement, Stage, StoredPhoto
from core.services.interfaces import PortfolioFulfillment, RequirementFulfillment, SlotFulfillment


def matches_slot(metadata: PhotoMetadata, procedure: str, stage: Stage, angle: Angle) -> bool:
    """True when the photo is tagged exactly with this procedure, stage and angle."""
    return metadata.procedure == procedure and metadata.stage is stage and metadata.angle is angle


def is_relevant(metadata: PhotoMetadata, requirement: PortfolioRequirement) -> bool:
    """Looser check used for browsing: unset stage or angle does not exclude."""
    if metadata.procedure != requirement.procedure:
        return False
    if metadata.stage is not None and metadata.stage not in requirement.stages:
        return False
    if metadata.angle is not None and metadata.angle not in requirement.angles:
        return False
    return True


def _chronological(photos: Iterable[StoredPhoto]) -> list[StoredPhoto]:
    # Later duplicates of an id are dropped; sort is stable so ties keep input order
    unique: dict[str, StoredPhoto] = {}
    for photo in photos:
        unique.setdefault(photo.id, photo)
    return sorted(unique.values(), key=lambda p: p.captured_at)


class RequirementFulfillmentEngine:
    """Stateless evaluator of portfolio requirements against stored photos."""

    def evaluate_requirement(
        self, requirement: PortfolioRequirement, photos: Iterable[StoredPhoto]
    ) -> RequirementFulfillment:
        ordered = _chronological(photos)
        slots: list[SlotFulfillment] = []
        for stage in requirement.stages:
            for angle in requirement.angles:
                needed = requirement.angle_counts[angle]
                matched = [
                    p.id for p in ordered if matches_slot(p.metadata, requirement.procedure, stage, angle)
                ]
                slots.append(
                    SlotFulfillment(
                        stage=stage,
                        angle=angle,
                        required=needed,
                        photo_ids=matched[:needed],
                        surplus_ids=matched[needed:],
                    )
                )

        total = requirement.total_required
        satisfied = min(sum(s.satisfied for s in slots), total)
        return RequirementFulfillment(
            requirement_id=requirement.id,
            procedure=requirement.procedure,
            satisfied_count=satisfied,
            total_required=total,
            slots=slots,
        )

    def evaluate(self, portfolio: Portfolio, photos: Iterable[StoredPhoto]) -> PortfolioFulfillment:
        """Evaluate every requirement of `portfolio` against `photos`."""
        ordered = _chronological(photos)
        result = PortfolioFulfillment(
            portfolio_id=portfolio.id,
            requirements=[self.evaluate_requirement(r, ordered) for r in portfolio.requirements],
        )
        logger.debug(
            "Portfolio {} fulfillment: {}/{}",
            portfolio.name,
            result.satisfied_count,
            result.total_required,
        )
        return result

    def is_requirement_fulfilled(
        self, requirement: PortfolioRequirement, photos: Iterable[StoredPhoto]
    ) -> bool:
        return self.evaluate_requirement(requirement, photos).is_fulfilled

    def matching_photos(self, portfolio: Portfolio, photos: Iterable[StoredPhoto]) -> list[StoredPhoto]:
        """Photos relevant to at least one requirement, in input order."""
        return [
            p for p in photos if any(is_relevant(p.metadata, r) for r in portfolio.requirements)
        ]

    def photos_by_requirement(
        self, portfolio: Portfolio, photos: Iterable[StoredPhoto]
    ) -> list[tuple[PortfolioRequirement, list[StoredPhoto]]]:
        """Relevant photos grouped per requirement by procedure; empty groups are left out."""
        relevant = self.matching_photos(portfolio, photos)
        grouped: list[tuple[PortfolioRequirement, list[StoredPhoto]]] = []
        for requirement in portfolio.requirements:
            items = [p for p in relevant if p.metadata.procedure == requirement.procedure]
            if items:
                grouped.append((requirement, items))
        return grouped

    def overall_completion_rate(
        self, portfolios: Iterable[Portfolio], photos: Iterable[StoredPhoto]
    ) -> int:
        """Average completion across portfolios as a whole percentage.

        Portfolios without requirements count as 0% but still weigh in.
        """
        portfolio_list = list(portfolios)
        if not portfolio_list:
            return 0
        ordered = _chronological(photos)
        progress = 0.0
        for portfolio in portfolio_list:
            result = self.evaluate(portfolio, ordered)
            if result.total_required > 0:
                progress += result.completion_fraction
        return int(progress / len(portfolio_list) * 100)

    @staticmethod
    def photo_count(procedure: str, photos: Iterable[StoredPhoto]) -> int:
        """Number of photos tagged with `procedure`."""
        return sum(1 for p in photos if p.metadata.procedure == procedure)

    @staticmethod
    def average_rating(photos: Iterable[StoredPhoto]) -> float:
        """Mean rating over rated photos (rating > 0); 0.0 when none are rated."""
        ratings = [p.metadata.rating for p in photos if (p.metadata.rating or 0) > 0]
        return sum(ratings) / len(ratings) if ratings else 0.0

    @staticmethod
    def incomplete_photo_ids(photos: Iterable[StoredPhoto]) -> list[str]:
        """Ids of photos still missing at least one tag."""
        return [p.id for p in photos if not p.metadata.is_complete]
