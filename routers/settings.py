# Settings Router - Manages runtime configuration and the browser profile
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ValidationError
from typing import Optional, List

# Import from config system
from config.settings_loader import reload_settings, save_settings, reset_settings
from core.browser_config import BrowserConfig
from core.platform_utils import (
    get_default_browser_path,
    get_platform_specific_command,
    is_extension_supported,
    is_proxy_supported,
)
from shared.state import AgentServices, get_services

router = APIRouter()


# === SETTINGS API ENDPOINTS ===

@router.get("/settings")
async def get_settings():
    """Get all current settings from config/settings.json"""
    try:
        # Force reload to get latest from disk
        current_settings = reload_settings()
        return {"status": "success", "settings": current_settings}
    except (OSError, ValueError) as e:
        raise HTTPException(status_code=500, detail=f"Failed to load settings: {str(e)}")


class UpdateSettingsRequest(BaseModel):
    settings: dict


def deep_merge(base: dict, update: dict) -> dict:
    for key, value in update.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict) and value:
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


@router.put("/settings")
async def update_settings(request: UpdateSettingsRequest):
    """Update settings and save to config/settings.json

    Note: storage and scheduler settings take effect on the next server start.
    """
    try:
        settings = reload_settings()
        deep_merge(settings, request.settings)
        save_settings()
    except (OSError, ValueError) as e:
        raise HTTPException(status_code=500, detail=f"Failed to save settings: {str(e)}")

    warnings = []
    for section in ("storage", "scheduler", "events", "server"):
        if section in request.settings:
            warnings.append(f"Changed '{section}' - requires a server restart to take effect")

    return {
        "status": "success",
        "message": "Settings saved successfully",
        "warnings": warnings if warnings else None
    }


@router.post("/settings/reset")
async def reset_to_defaults():
    """Reset all settings to default values from config/settings.defaults.json"""
    try:
        reset_settings()
        return {"status": "success", "message": "Settings reset to defaults"}
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Failed to reset settings: {str(e)}")


# === BROWSER PROFILE ===

class BrowserConfigUpdate(BaseModel):
    proxy: Optional[str] = None
    extensions: Optional[List[str]] = None
    user_agent: Optional[str] = None


@router.get("/settings/browser", response_model=BrowserConfig)
async def get_browser_config(services: AgentServices = Depends(get_services)):
    return services.browser_config.get_config()


@router.put("/settings/browser", response_model=BrowserConfig)
async def update_browser_config(request: BrowserConfigUpdate, services: AgentServices = Depends(get_services)):
    """Partial update; send "proxy": "" to switch back to a direct connection."""
    changes = request.model_dump(exclude_unset=True)
    if "proxy" in changes:
        changes["proxy"] = changes["proxy"] or None
    try:
        return services.browser_config.update(changes)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/settings/platform")
async def get_platform(services: AgentServices = Depends(get_services)):
    platform = services.browser_config.platform
    return {
        "platform": platform,
        "browser_path": get_default_browser_path(platform),
        "launch_command": get_platform_specific_command("open browser", platform),
        "proxy_supported": is_proxy_supported(platform),
        "extensions_supported": is_extension_supported(platform),
    }
