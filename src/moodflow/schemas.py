"""Wire payloads exchanged between the front ends and the relay server."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .models import MOOD_MAX, MOOD_MIN


class RelayRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mood_value: int = Field(..., alias="moodValue", ge=MOOD_MIN, le=MOOD_MAX, description="Mood rating 1–5")
    note: str = Field(default="", description="Free-form note, may be empty")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class RelayReply(BaseModel):
    reply: str = Field(..., description="Supportive message, or a fallback text")
