"""
rtm.connect response: https://api.slack.com/methods/rtm.connect
"""

from typing import Optional
from pydantic import BaseModel, Field


class TeamInfo(BaseModel):
    id: str = ""
    name: str = ""
    domain: str = ""
    enterprise_id: Optional[str] = None
    enterprise_name: Optional[str] = None


class SelfInfo(BaseModel):
    id: str = ""
    name: str = ""


class ConnectResponse(BaseModel):
    """Handshake result. Consumed once to initialize the bot."""
    ok: bool = False
    error: str = ""
    url: str = ""
    team: TeamInfo = Field(default_factory=TeamInfo)
    self_: SelfInfo = Field(default_factory=SelfInfo, alias="self")

    model_config = {"populate_by_name": True}
