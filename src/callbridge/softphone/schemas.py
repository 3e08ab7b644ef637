"""
Pydantic schemas for softphone endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field


class TokenResponse(BaseModel):
    token: str
    identity: str


class ClickToCallRequest(BaseModel):
    """Start a call from an agent's number to a client."""

    model_config = ConfigDict(populate_by_name=True)

    employee_email: str | None = Field(default=None, alias="employeeEmail")
    client_phone: str | None = Field(default=None, alias="clientPhone")
    contact_id: str | None = Field(default=None, alias="contactId")
    owner_id: str | None = Field(default=None, alias="ownerId")


class ClickToCallResponse(BaseModel):
    call_sid: str = Field(serialization_alias="callSid")
    status: str
