from fastapi import APIRouter, HTTPException, status, Depends, Query
from collections import Counter
from pathlib import Path
from typing import Optional
import logging
from lms.schemas.auth import MessageResponse
from lms.schemas.plugin import PluginInstallRequest, PluginSettingsUpdate, PluginSettingsResponse
from lms.dependencies import get_current_user, get_current_admin, get_locale, get_plugin_manager
from lms.core.plugin.manager import PluginManager

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/")
async def list_plugins(
    type: Optional[str] = Query(None, pattern="^(mod|block|theme)$"),
    plugin_status: Optional[str] = Query(None, alias="status", pattern="^(enabled|disabled)$"),
    current_user: dict = Depends(get_current_admin),
    plugins: PluginManager = Depends(get_plugin_manager)
):
    """List installed plugins (Admin only)"""
    available = plugins.get_available_plugins(type)

    if plugin_status:
        enabled = plugin_status == "enabled"
        available = [plugin for plugin in available if plugin["enabled"] == enabled]

    return {
        "plugins": available,
        "summary": {
            "total": len(available),
            "enabled": sum(1 for plugin in available if plugin["enabled"]),
            "disabled": sum(1 for plugin in available if not plugin["enabled"]),
            "types": dict(Counter(plugin["type"] for plugin in available))
        }
    }


@router.get("/status")
async def get_system_status(
    current_user: dict = Depends(get_current_admin),
    plugins: PluginManager = Depends(get_plugin_manager)
):
    """Plugin system status (Admin only)"""
    return plugins.get_system_status()


@router.post("/clear-cache", response_model=MessageResponse)
async def clear_cache(
    current_user: dict = Depends(get_current_admin),
    plugins: PluginManager = Depends(get_plugin_manager)
):
    """Clear plugin and language caches (Admin only)"""
    plugins.clear_cache()
    return {"message": "Plugin cache cleared successfully"}


@router.get("/modules")
async def get_available_modules(
    locale: str = Depends(get_locale),
    current_user: dict = Depends(get_current_user),
    plugins: PluginManager = Depends(get_plugin_manager)
):
    """Enabled activity modules that can be added to courses"""
    modules = []

    for plugin in plugins.get_enabled_plugins("mod"):
        try:
            module = plugins.load_plugin("mod", plugin["name"])
        except Exception as e:
            logger.error(f"Failed to load module {plugin['name']}: {str(e)}")
            continue

        modules.append({
            "name": module.get_name(),
            "title": module.get_string("pluginname", locale=locale),
            "description": module.get_description(),
            "icon": module.get_icon(),
            "features": module.get_supported_features()
        })

    return {"modules": modules}


@router.post("/install", status_code=status.HTTP_201_CREATED)
async def install_plugin(
    request: PluginInstallRequest,
    current_user: dict = Depends(get_current_admin),
    plugins: PluginManager = Depends(get_plugin_manager)
):
    """Install a plugin from a directory on the server (Admin only)"""
    info = plugins.install_plugin(Path(request.source_path), request.type, request.name)
    logger.info(f"Plugin {request.type}/{request.name} installed by {current_user['id']}")

    return {
        "message": f"Plugin {request.name} installed successfully",
        "plugin": {"type": request.type, "name": request.name, "info": info}
    }


@router.get("/theme/{name}/data")
async def get_theme_data(
    name: str,
    plugins: PluginManager = Depends(get_plugin_manager)
):
    """Theme layouts, colours, fonts and breakpoints for the front-end"""
    theme = plugins.get_enabled_plugin("theme", name)
    return theme.get_react_theme_data()


@router.get("/{plugin_type}/{name}")
async def get_plugin(
    plugin_type: str,
    name: str,
    current_user: dict = Depends(get_current_admin),
    plugins: PluginManager = Depends(get_plugin_manager)
):
    """Plugin details (Admin only)"""
    plugin = plugins.load_plugin(plugin_type, name)

    details = {
        "name": plugin.get_name(),
        "type": plugin.get_type(),
        "version": plugin.get_version(),
        "dependencies": plugin.get_dependencies(),
        "settings": plugin.get_settings(),
        "config_schema": plugin.get_config_schema(),
        "compatible": plugin.is_compatible(),
        "enabled": plugins.is_plugin_enabled(plugin_type, name),
        "loaded": plugins.is_plugin_loaded(plugin_type, name)
    }

    if plugin_type == "mod":
        details["features"] = plugin.get_supported_features()
        details["capabilities"] = plugin.get_capabilities()
    elif plugin_type == "block":
        details["page_types"] = plugin.get_supported_page_types()
        details["regions"] = plugin.get_supported_regions()
        details["configurable"] = plugin.has_config()

    return {"plugin": details}


@router.post("/{plugin_type}/{name}/enable", response_model=MessageResponse)
async def enable_plugin(
    plugin_type: str,
    name: str,
    current_user: dict = Depends(get_current_admin),
    plugins: PluginManager = Depends(get_plugin_manager)
):
    """Enable a plugin (Admin only)"""
    plugins.enable_plugin(plugin_type, name)
    plugins.load_plugin(plugin_type, name)
    return {"message": f"Plugin {plugin_type}/{name} enabled"}


@router.post("/{plugin_type}/{name}/disable", response_model=MessageResponse)
async def disable_plugin(
    plugin_type: str,
    name: str,
    current_user: dict = Depends(get_current_admin),
    plugins: PluginManager = Depends(get_plugin_manager)
):
    """Disable a plugin (Admin only)"""
    if not plugins.is_plugin_enabled(plugin_type, name):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Plugin {plugin_type}/{name} is not enabled"
        )

    plugins.disable_plugin(plugin_type, name)
    return {"message": f"Plugin {plugin_type}/{name} disabled"}


@router.get("/{plugin_type}/{name}/settings", response_model=PluginSettingsResponse)
async def get_plugin_settings(
    plugin_type: str,
    name: str,
    current_user: dict = Depends(get_current_admin),
    plugins: PluginManager = Depends(get_plugin_manager)
):
    """Plugin settings with their schema (Admin only)"""
    plugin = plugins.load_plugin(plugin_type, name)

    return {
        "component": plugin.component,
        "schema": plugin.get_config_schema(),
        "settings": plugin.get_settings()
    }


@router.put("/{plugin_type}/{name}/settings", response_model=PluginSettingsResponse)
async def update_plugin_settings(
    plugin_type: str,
    name: str,
    update: PluginSettingsUpdate,
    current_user: dict = Depends(get_current_admin),
    plugins: PluginManager = Depends(get_plugin_manager)
):
    """Validate and store plugin settings (Admin only)"""
    plugin = plugins.load_plugin(plugin_type, name)
    plugin.update_settings(update.settings)

    return {
        "component": plugin.component,
        "schema": plugin.get_config_schema(),
        "settings": plugin.get_settings()
    }
