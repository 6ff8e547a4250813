from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from app.petcare.modules.settings.service import get_value, set_setting

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


class PluginError(ValueError):
    pass


@dataclass(frozen=True)
class PluginConfig:
    id: str
    name: str
    description: str
    category: str
    is_core: bool = False
    dependencies: tuple[str, ...] = ()
    default_settings: dict[str, Any] = field(default_factory=dict)


PLUGINS: tuple[PluginConfig, ...] = (
    PluginConfig(
        id="ai-vet",
        name="AI Veterinarian",
        description="Symptom triage and consultation history",
        category="ai",
        is_core=True,
        default_settings={"maxConsultationsPerDay": 10, "enableEmergencyDetection": True},
    ),
    PluginConfig(
        id="health-analytics",
        name="Health Analytics",
        description="Health trends and alerts across pets",
        category="analytics",
        dependencies=("ai-vet",),
        default_settings={"alertThreshold": 70, "trackWeight": True},
    ),
    PluginConfig(
        id="pet-photography",
        name="Pet Photography",
        description="Photo albums and timeline",
        category="photography",
        dependencies=("ai-vet",),
        default_settings={"maxPhotosPerAlbum": 200},
    ),
    PluginConfig(
        id="pet-social-network",
        name="Pet Social Network",
        description="Posts, stories and challenges between owners",
        category="social",
        dependencies=("ai-vet",),
        default_settings={"allowPublicProfiles": True},
    ),
)

_BY_ID = {p.id: p for p in PLUGINS}


def get_plugin(plugin_id: str) -> PluginConfig | None:
    return _BY_ID.get(plugin_id)


def _enabled_key(plugin_id: str) -> str:
    return f"plugin.{plugin_id}.enabled"


def _settings_key(plugin_id: str) -> str:
    return f"plugin.{plugin_id}.settings"


def is_plugin_enabled(s: "Session", plugin: PluginConfig) -> bool:
    raw = get_value(s, _enabled_key(plugin.id))
    if raw is None:
        return plugin.is_core
    return raw.strip().lower() == "true"


def set_plugin_enabled(s: "Session", plugin: PluginConfig, enabled: bool) -> None:
    if not enabled and plugin.is_core:
        raise PluginError(f"Plugin {plugin.id} is core and cannot be disabled")
    if enabled:
        for dep in plugin.dependencies:
            dep_plugin = get_plugin(dep)
            if dep_plugin is None or not is_plugin_enabled(s, dep_plugin):
                raise PluginError(f"Dependency {dep} not enabled for plugin {plugin.id}")
    set_setting(
        s,
        _enabled_key(plugin.id),
        enabled,
        description=f"Plugin {plugin.id} enabled status",
        category="plugins",
    )


def get_plugin_settings(s: "Session", plugin: PluginConfig) -> dict[str, Any]:
    merged = dict(plugin.default_settings)
    raw = get_value(s, _settings_key(plugin.id))
    if raw:
        try:
            stored = json.loads(raw)
        except json.JSONDecodeError:
            stored = None
        if isinstance(stored, dict):
            merged.update(stored)
    return merged


def update_plugin_settings(s: "Session", plugin: PluginConfig, settings: dict[str, Any]) -> dict[str, Any]:
    merged = get_plugin_settings(s, plugin)
    merged.update(settings)
    set_setting(
        s,
        _settings_key(plugin.id),
        json.dumps(merged, sort_keys=True),
        description=f"Plugin {plugin.id} settings",
        category="plugins",
    )
    return merged


def serialize_plugin(s: "Session", plugin: PluginConfig) -> dict[str, Any]:
    return {
        "id": plugin.id,
        "name": plugin.name,
        "description": plugin.description,
        "category": plugin.category,
        "isCore": plugin.is_core,
        "dependencies": list(plugin.dependencies),
        "isEnabled": is_plugin_enabled(s, plugin),
    }
