from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional

SortOrder = Literal["asc", "desc"]

class SearchFilter(BaseModel):
    """User-supplied search constraints; empty fields mean no constraint"""
    model_config = ConfigDict(frozen=True)

    content: Optional[str] = None
    author_id: Optional[str] = None
    channel_id: Optional[str] = None
    guild_id: Optional[str] = None
    sort: SortOrder = "desc"
    page: int = Field(default=1, ge=1)

class Message(BaseModel):
    """Archived message as stored in the search index"""
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    message_id: Optional[str] = None
    author_id: Optional[str] = None
    channel_id: Optional[str] = None
    guild_id: Optional[str] = None
    content: Optional[str] = None
    timestamp: Optional[str] = None

class SearchResultPage(BaseModel):
    messages: List[Message]
    total: int
    page: int
    has_more: bool

class Identity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    avatar: Optional[str] = None

class Statistics(BaseModel):
    total_messages: int
    unique_users: int
    unique_guilds: int
