from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Dict, List, Optional
from lms.schemas.i18n import LocalesResponse, TranslationExport
from lms.dependencies import get_i18n, get_locale
from lms.core.localization.i18n_manager import I18nManager
from lms.core.plugin.manager import PLUGIN_NAME_PATTERN, PLUGIN_TYPES

router = APIRouter()


@router.get("/locales", response_model=LocalesResponse)
async def get_locales(
    locale: str = Depends(get_locale),
    i18n: I18nManager = Depends(get_i18n)
):
    """Installed language packs and the locale resolved for this request"""
    return {
        "current": locale,
        "default": i18n.default_locale,
        "locales": i18n.get_available_locales()
    }


@router.get("/translations", response_model=TranslationExport)
async def get_translations(
    keys: Optional[List[str]] = Query(None),
    locale: str = Depends(get_locale),
    i18n: I18nManager = Depends(get_i18n)
):
    """Strings for the front-end; a common UI set when no keys are given"""
    return i18n.export_for_javascript(keys, locale)


@router.get("/plugins/{plugin_type}/{plugin_name}", response_model=Dict[str, str])
async def get_plugin_translations(
    plugin_type: str,
    plugin_name: str,
    locale: str = Depends(get_locale),
    i18n: I18nManager = Depends(get_i18n)
):
    """A plugin's language strings (English when the locale has none)"""
    if plugin_type not in PLUGIN_TYPES or not PLUGIN_NAME_PATTERN.match(plugin_name):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Plugin not found"
        )

    return i18n.load_plugin_language(plugin_type, plugin_name, locale)
