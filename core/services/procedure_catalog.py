"""Configurable list of procedure types offered for capture and tagging.

Built-in procedures are protected: they can be disabled and reordered but
not renamed or deleted. Photos keep their stored procedure names whatever
happens to the catalog.
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from core.errors import DomainViolation
from core.models import DEFAULT_PROCEDURE_NAMES, ProcedureConfig


def _defaults(names: Iterable[str]) -> list[ProcedureConfig]:
    return [ProcedureConfig(name=n, is_default=True, sort_order=i) for i, n in enumerate(names)]


class ProcedureCatalog:
    """Holds procedure configurations and the operations that edit them."""

    def __init__(
        self,
        configs: Iterable[ProcedureConfig] | None = None,
        default_names: Iterable[str] | None = None,
    ) -> None:
        """Create a catalog.

        Args:
            configs: Existing configurations; the defaults when omitted.
            default_names: Built-in procedure names, used by `reset_to_defaults`.
        """
        self._default_names = list(default_names or DEFAULT_PROCEDURE_NAMES)
        self._configs: list[ProcedureConfig] = (
            list(configs) if configs is not None else _defaults(self._default_names)
        )

    @classmethod
    def from_names(cls, names: Iterable[str]) -> ProcedureCatalog:
        """Catalog whose built-in procedures are `names`, in that order."""
        names = list(names)
        return cls(_defaults(names), default_names=names)

    @property
    def configs(self) -> list[ProcedureConfig]:
        return sorted(self._configs, key=lambda c: c.sort_order)

    @property
    def enabled(self) -> list[ProcedureConfig]:
        return [c for c in self.configs if c.is_enabled]

    @property
    def disabled(self) -> list[ProcedureConfig]:
        return [c for c in self.configs if not c.is_enabled]

    @property
    def enabled_names(self) -> list[str]:
        """Names offered in capture and tagging, in display order."""
        return [c.name for c in self.enabled]

    def get(self, procedure_id: str) -> ProcedureConfig | None:
        for config in self._configs:
            if config.id == procedure_id:
                return config
        return None

    def can_delete(self, procedure_id: str) -> bool:
        config = self.get(procedure_id)
        return config is not None and not config.is_default

    can_rename = can_delete

    def add(self, name: str) -> ProcedureConfig:
        """Append a custom, enabled procedure after the existing ones."""
        clean = self._checked_name(name)
        next_order = max((c.sort_order for c in self._configs), default=-1) + 1
        config = ProcedureConfig(name=clean, sort_order=next_order)
        self._configs.append(config)
        logger.info("Procedure added: {}", clean)
        return config

    def rename(self, procedure_id: str, new_name: str) -> bool:
        """Rename a custom procedure; False when the id is unknown."""
        config = self.get(procedure_id)
        if config is None:
            return False
        if config.is_default:
            raise DomainViolation(f"built-in procedure {config.name!r} cannot be renamed")
        clean = self._checked_name(new_name, ignore_id=procedure_id)
        logger.info("Procedure renamed: {} -> {}", config.name, clean)
        config.name = clean
        return True

    def delete(self, procedure_id: str) -> bool:
        """Delete a custom procedure; False when the id is unknown."""
        config = self.get(procedure_id)
        if config is None:
            return False
        if config.is_default:
            raise DomainViolation(f"built-in procedure {config.name!r} cannot be deleted")
        self._configs.remove(config)
        logger.info("Procedure deleted: {}", config.name)
        return True

    def set_enabled(self, procedure_id: str, enabled: bool) -> bool:
        config = self.get(procedure_id)
        if config is None:
            return False
        config.is_enabled = enabled
        return True

    def toggle(self, procedure_id: str) -> bool:
        config = self.get(procedure_id)
        return config is not None and self.set_enabled(procedure_id, not config.is_enabled)

    def move(self, source: int, destination: int) -> None:
        """Move an enabled procedure to a new position among the enabled ones.

        Both indices refer to the enabled list; `destination` is the final
        position. Enabled procedures are renumbered 0..n-1, disabled ones keep
        their sort order.
        """
        enabled = self.enabled
        if not 0 <= source < len(enabled) or not 0 <= destination < len(enabled):
            raise DomainViolation(
                f"move {source} -> {destination} outside {len(enabled)} enabled procedures"
            )
        enabled.insert(destination, enabled.pop(source))
        for index, config in enumerate(enabled):
            config.sort_order = index

    def reset_to_defaults(self) -> None:
        """Replace every configuration with the built-in list."""
        self._configs = _defaults(self._default_names)
        logger.info("Procedures reset to {} defaults", len(self._configs))

    def _checked_name(self, name: str, ignore_id: str | None = None) -> str:
        clean = name.strip()
        if not clean:
            raise DomainViolation("procedure name must not be empty")
        for config in self._configs:
            if config.id != ignore_id and config.name.casefold() == clean.casefold():
                raise DomainViolation(f"procedure {clean!r} already exists")
        return clean
