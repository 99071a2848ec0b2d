"""Analytics data models for ccmeter."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, computed_field


class ModelStats(BaseModel):
    """Model-specific token and cost totals."""

    input_tokens: int = Field(default=0)
    output_tokens: int = Field(default=0)
    cache_creation_tokens: int = Field(default=0)
    cache_read_tokens: int = Field(default=0)
    cost: Decimal = Field(default=Decimal("0"))
    message_count: int = Field(default=0)

    @computed_field
    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class ProjectStats(ModelStats):
    """Project-specific token and cost totals."""

    name: str


class AggregatedStats(BaseModel):
    """Usage statistics computed from one full pass over the logs."""

    # All-time totals
    total_input_tokens: int = Field(default=0)
    total_output_tokens: int = Field(default=0)
    total_cache_creation_tokens: int = Field(default=0)
    total_cache_read_tokens: int = Field(default=0)
    total_messages_count: int = Field(default=0)
    total_cost: Decimal = Field(default=Decimal("0"))

    # Records since UTC midnight
    today_input_tokens: int = Field(default=0)
    today_output_tokens: int = Field(default=0)
    today_cache_creation_tokens: int = Field(default=0)
    today_cache_read_tokens: int = Field(default=0)
    today_messages_count: int = Field(default=0)
    today_cost: Decimal = Field(default=Decimal("0"))

    # 5-hour session blocks
    current_session_tokens: int = Field(default=0)
    current_session_cost: Decimal = Field(default=Decimal("0"))
    total_session_count: int = Field(default=0)
    today_session_count: int = Field(default=0)

    # Burn rate over the trailing 30 minutes
    tokens_per_minute: float = Field(default=0.0)
    cost_per_hour: Decimal = Field(default=Decimal("0"))

    by_model: Dict[str, ModelStats] = Field(default_factory=dict)
    by_project: Dict[str, ProjectStats] = Field(default_factory=dict)

    last_updated: Optional[datetime] = Field(default=None)

    @computed_field
    @property
    def total_tokens(self) -> int:
        """All-time input plus output tokens."""
        return self.total_input_tokens + self.total_output_tokens

    @computed_field
    @property
    def today_tokens(self) -> int:
        """Today's input plus output tokens."""
        return self.today_input_tokens + self.today_output_tokens

    @computed_field
    @property
    def cache_hit_rate(self) -> float:
        """Cache reads as a percentage of all input-side tokens."""
        total_input = self.total_input_tokens + self.total_cache_read_tokens
        if total_input == 0:
            return 0.0
        return (self.total_cache_read_tokens / total_input) * 100.0


class DailyStats(BaseModel):
    """One day of chart data."""

    date: str
    input_tokens: int = Field(default=0)
    output_tokens: int = Field(default=0)
    cost: Decimal = Field(default=Decimal("0"))
    messages: int = Field(default=0)


class HourlyStats(BaseModel):
    """Usage falling into one UTC hour of the day."""

    hour: int = Field(ge=0, le=23)
    tokens: int = Field(default=0)
    messages: int = Field(default=0)


class ModelChartData(BaseModel):
    name: str
    tokens: int = Field(default=0)
    cost: Decimal = Field(default=Decimal("0"))


class ProjectChartData(BaseModel):
    name: str
    tokens: int = Field(default=0)
    cost: Decimal = Field(default=Decimal("0"))


class ChartData(BaseModel):
    """Chart series bundle for the dashboard."""

    daily: List[DailyStats] = Field(default_factory=list)
    hourly: List[HourlyStats] = Field(default_factory=list)
    by_model: List[ModelChartData] = Field(default_factory=list)
    by_project: List[ProjectChartData] = Field(default_factory=list)
