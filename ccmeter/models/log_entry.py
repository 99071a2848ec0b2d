"""Log entry models for Claude Code JSONL transcripts."""

from datetime import datetime
from typing import Any, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    computed_field,
)


class UsageData(BaseModel):
    """Token counters reported on an assistant message."""

    input_tokens: Optional[int] = Field(default=None, ge=0)
    output_tokens: Optional[int] = Field(default=None, ge=0)
    cache_creation_input_tokens: Optional[int] = Field(default=None, ge=0)
    cache_read_input_tokens: Optional[int] = Field(default=None, ge=0)


class TextBlock(BaseModel):
    """Free-text content block."""

    type: Literal["text"]
    text: str


class ThinkingBlock(BaseModel):
    """Extended-thinking content block."""

    type: Literal["thinking"]
    thinking: str
    signature: Optional[str] = None


class ToolUseBlock(BaseModel):
    """Tool invocation content block."""

    type: Literal["tool_use"]
    id: Optional[str] = None
    name: Optional[str] = None


class OtherBlock(BaseModel):
    """Any block whose type is unknown or whose shape did not validate."""

    type: str = "unknown"


ContentBlock = Union[TextBlock, ThinkingBlock, ToolUseBlock, OtherBlock]

# Blocks are dispatched on their "type" field before validation.
_BLOCK_TYPES = {
    "text": TypeAdapter(TextBlock),
    "thinking": TypeAdapter(ThinkingBlock),
    "tool_use": TypeAdapter(ToolUseBlock),
}


def decode_content_block(raw: Any) -> ContentBlock:
    """Decode one raw content block.

    Reads the ``type`` discriminant first and validates against the matching
    variant. Unknown types and blocks that fail validation become
    ``OtherBlock``.
    """
    if not isinstance(raw, dict):
        return OtherBlock()

    block_type = raw.get("type")
    adapter = _BLOCK_TYPES.get(block_type) if isinstance(block_type, str) else None
    if adapter is None:
        return OtherBlock(type=block_type if isinstance(block_type, str) else "unknown")

    try:
        return adapter.validate_python(raw)
    except ValidationError:
        return OtherBlock(type=block_type)


class MessageData(BaseModel):
    """The ``message`` object of a log entry."""

    role: Optional[str] = None
    model: Optional[str] = None
    usage: Optional[UsageData] = None
    # Kept raw so a malformed block never invalidates the usage figures.
    content: Any = None

    def content_blocks(self) -> List[ContentBlock]:
        """Decode the message content into typed blocks."""
        if isinstance(self.content, str):
            return [TextBlock(type="text", text=self.content)]
        if not isinstance(self.content, list):
            return []
        return [decode_content_block(block) for block in self.content]

    def text_parts(self) -> List[str]:
        """Texts of the text blocks, in order."""
        return [b.text for b in self.content_blocks() if isinstance(b, TextBlock)]

    def text(self) -> str:
        """Join the text blocks of this message with single spaces."""
        return " ".join(self.text_parts())


class RawLogEntry(BaseModel):
    """One line of a Claude Code JSONL transcript."""

    model_config = ConfigDict(populate_by_name=True)

    entry_type: Optional[str] = Field(default=None, alias="type")
    timestamp: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    message: Optional[MessageData] = None
    uuid: Optional[str] = None
    cwd: Optional[str] = None
    summary: Optional[str] = None

    @property
    def is_assistant_message(self) -> bool:
        """True for assistant turns carrying an assistant-role message."""
        return (
            self.entry_type == "assistant"
            and self.message is not None
            and self.message.role == "assistant"
        )


class UsageRecord(BaseModel):
    """A validated usage record, one per qualifying assistant log line."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    session_id: str = ""
    model: str
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    cache_creation_tokens: int = Field(default=0, ge=0)
    cache_read_tokens: int = Field(default=0, ge=0)
    unique_id: str = ""
    project: str = ""

    @computed_field
    @property
    def total_tokens(self) -> int:
        """Input plus output tokens (cache traffic is tracked separately)."""
        return self.input_tokens + self.output_tokens
