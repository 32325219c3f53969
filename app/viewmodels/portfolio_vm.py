"""View models for portfolio progress screens."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from core.models import DUE_SOON_DAYS, Portfolio, PortfolioRequirement
from core.services.due_status import DueStatus, DueSummary, classify_portfolio
from core.services.interfaces import PortfolioFulfillment, RequirementFulfillment


@dataclass
class RequirementVM:
    """Expose convenient properties for a requirement checklist row."""

    requirement: PortfolioRequirement
    fulfillment: RequirementFulfillment

    @property
    def title(self) -> str:
        return self.requirement.display_string

    @property
    def counter_text(self) -> str:
        return f"{self.fulfillment.satisfied_count}/{self.fulfillment.total_required}"

    @property
    def progress(self) -> float:
        """Bar fill in 0..1; an empty requirement shows as empty, not full."""
        if self.fulfillment.total_required == 0:
            return 0.0
        return self.fulfillment.fraction

    @property
    def is_complete(self) -> bool:
        return self.fulfillment.is_fulfilled


class PortfolioVM:
    """Portfolio detail view-model built from a fulfillment result."""

    def __init__(
        self,
        portfolio: Portfolio,
        fulfillment: PortfolioFulfillment,
        due_soon_days: int = DUE_SOON_DAYS,
        today: date | None = None,
    ) -> None:
        self.portfolio = portfolio
        self.fulfillment = fulfillment
        self.due: DueSummary = classify_portfolio(portfolio, today, due_soon_days)
        self.requirements: list[RequirementVM] = []
        for requirement in portfolio.requirements:
            result = fulfillment.for_requirement(requirement.id)
            if result is not None:
                self.requirements.append(RequirementVM(requirement, result))

    @property
    def progress_text(self) -> str:
        return f"{self.fulfillment.satisfied_count} of {self.fulfillment.total_required} photos captured"

    @property
    def remaining_text(self) -> str:
        if self.fulfillment.is_complete:
            return "All photos captured"
        remaining = self.fulfillment.total_required - self.fulfillment.satisfied_count
        return "1 photo needed" if remaining == 1 else f"{remaining} photos needed"

    @property
    def percent_complete(self) -> int:
        return int(self.fulfillment.completion_fraction * 100)

    @property
    def due_label(self) -> str | None:
        return self.due.label

    @property
    def needs_attention(self) -> bool:
        """Overdue or due soon while still incomplete."""
        return self.due.status in (DueStatus.OVERDUE, DueStatus.DUE_SOON) and not self.fulfillment.is_complete
