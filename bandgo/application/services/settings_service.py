"""System settings manager.

SystemSettings is the single piece of process-wide state. It is created
from the configured defaults on first access, persisted through the entity
store, and changed only by a privileged settings save. Managers that need
it (band formation, rehearsal polls) receive this service at construction.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Mapping

from bandgo.application.ports.entity_store import (
    EntityKind,
    EntityStoreProtocol,
    lock_key,
)
from bandgo.application.services.authorization import require_privileged
from bandgo.application.services.base import LoggingMixin
from bandgo.domain.models.patching import apply_patch
from bandgo.domain.models.system_settings import (
    SETTINGS_EDITABLE_FIELDS,
    SYSTEM_SETTINGS_ID,
    SystemSettings,
)


class SettingsService(LoggingMixin):
    """Owns the load/save lifecycle of SystemSettings."""

    def __init__(self, store: EntityStoreProtocol, defaults: SystemSettings) -> None:
        """Initialize the settings service.

        Args:
            store: Entity store holding the settings record.
            defaults: Settings persisted on first access.
        """
        self._store = store
        self._defaults = defaults
        self._init_logger(component="settings")

    async def get_settings(self) -> SystemSettings:
        """Return the current settings, initializing them on first access."""
        settings = await self._store.get(EntityKind.SYSTEM_SETTINGS, SYSTEM_SETTINGS_ID)
        if settings is not None:
            return settings

        async with self._store.transaction(self._lock_key) as uow:
            settings = await uow.get(EntityKind.SYSTEM_SETTINGS, SYSTEM_SETTINGS_ID)
            if settings is None:
                settings = self._defaults
                await uow.put(EntityKind.SYSTEM_SETTINGS, settings)
                self._log.info(
                    "system_settings_initialized",
                    rehearsal_goal=settings.rehearsal_goal,
                    poll_duration_hours=settings.poll_duration_hours,
                )
        return settings

    async def update_settings(
        self, patch: Mapping[str, Any] | SystemSettings, actor_id: str
    ) -> SystemSettings:
        """Apply a partial (or full) settings update.

        Args:
            patch: Changed fields, or a complete SystemSettings record.
            actor_id: The staff member saving the settings.

        Returns:
            The saved settings.

        Raises:
            PermissionDeniedError: If the actor is not privileged.
            ValidationError: If a field is unknown or a value is out of range.
        """
        if isinstance(patch, SystemSettings):
            patch = {k: v for k, v in asdict(patch).items() if k in SETTINGS_EDITABLE_FIELDS}
        log = self._log_operation("update_settings", actor_id=actor_id, fields=sorted(patch))
        log.debug("update_settings_started")

        current = await self.get_settings()
        async with self._store.transaction(self._lock_key) as uow:
            await require_privileged(uow, actor_id, "update system settings")
            current = await uow.get(EntityKind.SYSTEM_SETTINGS, SYSTEM_SETTINGS_ID) or current
            updated = apply_patch(current, patch, SETTINGS_EDITABLE_FIELDS)
            await uow.put(EntityKind.SYSTEM_SETTINGS, updated)

        log.info("system_settings_updated")
        return updated

    @property
    def _lock_key(self) -> str:
        return lock_key(EntityKind.SYSTEM_SETTINGS, SYSTEM_SETTINGS_ID)
