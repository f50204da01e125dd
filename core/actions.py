import uuid
from datetime import datetime
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def generate_id() -> str:
    return str(uuid.uuid4())[:8]


class ActionType(str, Enum):
    NAVIGATE = "navigation"
    CLICK = "click"
    INPUT = "input"
    EXTRACT = "extract"


class ActionStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    ERROR = "error"


class BrowserAction(BaseModel):
    """One synthetic browser step. Frozen once emitted."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    type: ActionType
    description: str
    status: ActionStatus = ActionStatus.COMPLETED
    details: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)


def navigate(description: str, details: Optional[str] = None,
             status: ActionStatus = ActionStatus.COMPLETED) -> BrowserAction:
    return BrowserAction(type=ActionType.NAVIGATE, description=description, details=details, status=status)


def click(description: str, details: Optional[str] = None) -> BrowserAction:
    return BrowserAction(type=ActionType.CLICK, description=description, details=details)


def type_text(description: str, details: Optional[str] = None) -> BrowserAction:
    return BrowserAction(type=ActionType.INPUT, description=description, details=details)


def extract(description: str, details: Optional[str] = None) -> BrowserAction:
    return BrowserAction(type=ActionType.EXTRACT, description=description, details=details)


class ExtractedData(BaseModel):
    type: Literal["table", "json", "link", "text", "image"]
    title: str
    content: Any
    source: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class CommandResult(BaseModel):
    """What the presentation layer receives for one command."""
    intent: str
    command: str
    original_command: str
    response: str
    actions: List[BrowserAction] = Field(default_factory=list)
    new_url: Optional[str] = None
    extracted_data: List[ExtractedData] = Field(default_factory=list)
    contextual: bool = False
