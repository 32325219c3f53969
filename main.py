from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from app.viewmodels.capture_vm import CaptureVM
from app.viewmodels.portfolio_vm import PortfolioVM
from core.models import Angle, Portfolio, Stage, StoredPhoto
from core.rules.engine import RequirementFulfillmentEngine
from core.services.capture_session import CaptureSession, Prefill
from core.services.interfaces import HapticFeedback
from core.services.procedure_catalog import ProcedureCatalog
from infrastructure.logging import init_logging
from infrastructure.settings import CoreSettings, JsonSettings


BASE_DIR = Path(__file__).parent


@dataclass
class AppContext:
    """Wiring handed to the host UI."""

    settings: CoreSettings
    engine: RequirementFulfillmentEngine
    haptics: HapticFeedback | None = None
    catalog: ProcedureCatalog | None = None

    def __post_init__(self) -> None:
        if self.catalog is None:
            self.catalog = ProcedureCatalog.from_names(self.settings.procedures)

    def new_capture(
        self,
        procedure: str | None = None,
        stage: Stage | None = None,
        angle: Angle | None = None,
        tooth_number: int | None = None,
        source_portfolio_id: str | None = None,
    ) -> CaptureVM:
        """Start a capture flow, optionally launched from a requirement."""
        prefill = Prefill(procedure, stage, angle, tooth_number, source_portfolio_id)
        session = CaptureSession(haptics=self.haptics, prefill=prefill)
        logger.info(
            "Capture started at {} ({})", session.step.value, session.tags.display_summary
        )
        return CaptureVM(session, procedures=self.catalog.enabled_names)

    def portfolio_view(self, portfolio: Portfolio, photos: list[StoredPhoto]) -> PortfolioVM:
        fulfillment = self.engine.evaluate(portfolio, photos)
        return PortfolioVM(portfolio, fulfillment, due_soon_days=self.settings.due_soon_days)


def build_context(
    settings_path: str | Path | None = None, haptics: HapticFeedback | None = None
) -> AppContext:
    """Load settings, start logging and build the core services."""
    settings_file = Path(settings_path) if settings_path else BASE_DIR / "settings.json"
    settings = CoreSettings.from_json(JsonSettings(settings_file))
    log_path = init_logging(settings.log_dir, level=settings.log_level)
    logger.info("Settings loaded from {}; logging to {}", settings_file, log_path)
    return AppContext(settings=settings, engine=RequirementFulfillmentEngine(), haptics=haptics)


def main() -> int:
    context = build_context()
    logger.info("Procedures available: {}", ", ".join(context.catalog.enabled_names))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
