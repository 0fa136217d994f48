"""Partner report request and acknowledgement."""

from typing import Optional

from pydantic import AliasChoices, Field, field_validator

from ._strict_base import StrictModel, StrictRequestModel


class ReportPartnerRequest(StrictRequestModel):
    """`reportedUserId` is accepted as an alias of `reported_user_id`."""

    reported_user_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        validation_alias=AliasChoices("reported_user_id", "reportedUserId"),
    )
    reason: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=2000)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("reason must not be blank")
        return value


class ReportPartnerResponse(StrictModel):
    success: bool = True
    message: str = "Report submitted successfully"
    report_id: str
