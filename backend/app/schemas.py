from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str


class AuthLoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=200)


class AuthRegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=200)
    password: str = Field(min_length=6, max_length=200)
    name: str | None = Field(default=None, max_length=200)


class AuthUserResponse(BaseModel):
    id: int
    username: str
    name: str
    email: str


class AuthTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: AuthUserResponse


class UserProfileIn(BaseModel):
    age: int | None = Field(default=None, ge=0, le=150)
    sex: Literal["male", "female", "other"] | None = None


class SymptomAnalysisRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Missing or null symptoms reach the engine and are reported as 400, not 422.
    symptoms: str | None = None
    user_profile: UserProfileIn | None = Field(default=None, alias="userProfile")


class ConditionMatchOut(BaseModel):
    condition: str
    probability: float
    description: str
    common_symptoms: list[str]


class ReportSectionOut(BaseModel):
    heading: str
    content: str


class FormattedReportOut(BaseModel):
    title: str
    summary: str
    sections: list[ReportSectionOut]


class SymptomAnalysisResponse(BaseModel):
    request_id: str
    timestamp: str
    primary_diagnosis: str
    urgency_score: int = Field(ge=0, le=10)
    urgency_level: Literal["Low", "Medium", "High", "Emergency"]
    triage_advice: str
    potential_conditions: list[ConditionMatchOut]
    formatted_report: FormattedReportOut
    disclaimer: str


class ErrorResponse(BaseModel):
    detail: str
