from __future__ import annotations

from flask import Blueprint, abort, jsonify

from app.petcare.audit import record_event
from app.petcare.db import db_session
from app.petcare.modules.plugins.service import (
    PLUGINS,
    PluginConfig,
    PluginError,
    get_plugin,
    get_plugin_settings,
    serialize_plugin,
    set_plugin_enabled,
    update_plugin_settings,
)
from app.petcare.rbac import current_user, require_admin
from app.petcare.utils import json_body

bp = Blueprint("admin_plugins", __name__)


def _plugin_or_404(plugin_id: str) -> PluginConfig:
    plugin = get_plugin(plugin_id)
    if plugin is None:
        abort(404, description="Plugin not found")
    return plugin


@bp.get("/plugins")
@require_admin
def plugins_list():
    s = db_session()
    return jsonify([serialize_plugin(s, p) for p in PLUGINS])


@bp.get("/plugins/<plugin_id>")
@require_admin
def plugin_status(plugin_id: str):
    s = db_session()
    plugin = _plugin_or_404(plugin_id)
    return jsonify(serialize_plugin(s, plugin))


@bp.patch("/plugins/<plugin_id>")
@require_admin
def plugin_toggle(plugin_id: str):
    s = db_session()
    plugin = _plugin_or_404(plugin_id)
    enabled = json_body().get("isEnabled")
    if not isinstance(enabled, bool):
        return jsonify({"error": "isEnabled must be a boolean"}), 400

    try:
        set_plugin_enabled(s, plugin, enabled)
    except PluginError as e:
        return jsonify({"error": str(e)}), 400

    record_event(
        s,
        actor=current_user(),
        action="plugin.enable" if enabled else "plugin.disable",
        entity_type="Plugin",
        entity_id=plugin.id,
    )
    s.commit()
    return jsonify(
        {
            "id": plugin.id,
            "isEnabled": enabled,
            "message": f"Plugin {'enabled' if enabled else 'disabled'} successfully",
        }
    )


@bp.get("/plugins/<plugin_id>/settings")
@require_admin
def plugin_settings_get(plugin_id: str):
    s = db_session()
    plugin = _plugin_or_404(plugin_id)
    return jsonify({"id": plugin.id, "settings": get_plugin_settings(s, plugin)})


@bp.put("/plugins/<plugin_id>/settings")
@require_admin
def plugin_settings_put(plugin_id: str):
    s = db_session()
    plugin = _plugin_or_404(plugin_id)
    settings = json_body().get("settings")
    if not isinstance(settings, dict):
        return jsonify({"error": "settings must be an object"}), 400

    merged = update_plugin_settings(s, plugin, settings)
    record_event(
        s,
        actor=current_user(),
        action="plugin.settings",
        entity_type="Plugin",
        entity_id=plugin.id,
        metadata={"keys": sorted(settings.keys())},
    )
    s.commit()
    return jsonify({"id": plugin.id, "settings": merged, "message": "Plugin settings updated successfully"})
