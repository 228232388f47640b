"""AI explanation quota status."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class QuotaStatus(BaseModel):
    """What the quiz screen shows about the remaining AI explanations."""

    model_config = ConfigDict(populate_by_name=True)

    remaining_calls: Optional[int] = Field(
        default=None, alias="remainingCalls", description="None when unlimited."
    )
    reset_in_seconds: Optional[int] = Field(
        default=None,
        alias="resetInSeconds",
        description="Seconds until a window slot frees up; None for the daily regime.",
    )
    unlimited: bool = False
    daily_limit: Optional[int] = Field(default=None, alias="dailyLimit")
    daily_used: Optional[int] = Field(default=None, alias="dailyUsed")
