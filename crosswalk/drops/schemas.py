# crosswalk/drops/schemas.py
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .range_policy import RangeClass

MAX_MESSAGE_LENGTH = 280


class Effect(str, Enum):
    NONE = "none"
    CONFETTI = "confetti"
    RAINBOW = "rainbow"
    STARS = "stars"
    SPOOKY = "spooky"
    GROSS = "gross"
    UHOH = "uhoh"


def parse_expiry(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into naive UTC. Raises ValueError if unparseable."""
    if value is None or value == "":
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class DropCreate(BaseModel):
    """
    Raw drop payload. Fields are loosely typed on purpose: service.validate_drop
    turns every malformed value into a ValidationError with a readable message.
    """
    message: Optional[str] = None
    latitude: Any = None
    longitude: Any = None
    range: str = "close"
    effect: str = "none"
    expires_at: Optional[str] = Field(default=None, alias="expiresAt")

    model_config = ConfigDict(populate_by_name=True)


class ValidatedDrop(BaseModel):
    message: str
    latitude: float
    longitude: float
    range: RangeClass
    effect: Effect
    expires_at: Optional[datetime] = None


class DropOut(BaseModel):
    id: str
    user_id: str
    message: str
    latitude: float
    longitude: float
    range: str
    effect: str
    expires_at: Optional[datetime] = None
    created_at: datetime
    user_name: Optional[str] = None
    highfive_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class DropViewOut(BaseModel):
    drop_id: str
    visible: bool
    message: str
    distance_meters: Optional[float] = None
    distance_label: Optional[str] = None
    is_owner: bool = False

    model_config = ConfigDict(from_attributes=True)


class HighfiveOut(BaseModel):
    success: bool = True
    highfive_count: int


class HighfiveStatusOut(BaseModel):
    has_highfived: bool
