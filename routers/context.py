# Context Router - Conversation memory: history, topics, cached data, preferences
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ValidationError

from core.context_store import ConversationContext
from shared.state import AgentServices, get_services

router = APIRouter(prefix="/context", tags=["Context"])


class PreferenceRequest(BaseModel):
    key: str
    value: Any


class FavoriteRequest(BaseModel):
    url: str


@router.get("", response_model=ConversationContext)
async def get_context(services: AgentServices = Depends(get_services)):
    return services.context.get_full_context()


@router.get("/extracted/{key}")
async def get_extracted(key: str, services: AgentServices = Depends(get_services)):
    data = services.context.get_extracted_data(key)
    if data is None:
        raise HTTPException(status_code=404, detail=f"No extracted data under '{key}'")
    return {"key": key, "data": data}


@router.post("/session/reset", response_model=ConversationContext)
async def reset_session(services: AgentServices = Depends(get_services)):
    """Start a new session; history, topics and cached data are kept."""
    services.context.reset_session()
    return services.context.get_full_context()


@router.delete("", response_model=ConversationContext)
async def clear_context(services: AgentServices = Depends(get_services)):
    services.context.clear_all()
    return services.context.get_full_context()


@router.put("/preferences", response_model=ConversationContext)
async def update_preference(request: PreferenceRequest, services: AgentServices = Depends(get_services)):
    try:
        services.context.update_preference(request.key, request.value)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid value for '{request.key}': {e}")
    return services.context.get_full_context()


@router.post("/favorites", response_model=ConversationContext)
async def add_favorite(request: FavoriteRequest, services: AgentServices = Depends(get_services)):
    services.context.add_favorite_website(request.url)
    return services.context.get_full_context()


@router.delete("/favorites", response_model=ConversationContext)
async def remove_favorite(url: str, services: AgentServices = Depends(get_services)):
    services.context.remove_favorite_website(url)
    return services.context.get_full_context()
