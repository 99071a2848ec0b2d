"""Per-session summary models for ccmeter."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, computed_field


class SessionInfo(BaseModel):
    """Totals and title for one session transcript."""

    session_id: str
    project: str = ""
    summary: Optional[str] = None
    first_user_message: Optional[str] = None
    first_message_at: Optional[datetime] = None
    last_message_at: Optional[datetime] = None
    message_count: int = Field(default=0, ge=0)
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    cache_creation_tokens: int = Field(default=0, ge=0)
    cache_read_tokens: int = Field(default=0, ge=0)
    cost: Decimal = Field(default=Decimal("0"))
    model: Optional[str] = Field(default=None, description="Last model used")

    @computed_field
    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @computed_field
    @property
    def title(self) -> str:
        """Summary, else the first user message, else the session id."""
        return self.summary or self.first_user_message or self.session_id


class SessionSearchResult(BaseModel):
    """First match of a search query within one session."""

    session_id: str
    project: str = ""
    summary: Optional[str] = None
    first_user_message: Optional[str] = None
    matched_text: str
    match_context: str
    message_role: str
