from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated, AsyncIterator

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from symptom_triage import (
    InternalError,
    InvalidInputError,
    TriageConfig,
    TriageResult,
    TriageService,
    UserProfile,
    build_service,
)
from symptom_triage.observability import configure_logging

from .auth import AuthManager, AuthUser, get_auth_manager, get_current_user
from .schemas import (
    AuthLoginRequest,
    AuthRegisterRequest,
    AuthTokenResponse,
    AuthUserResponse,
    ConditionMatchOut,
    ErrorResponse,
    FormattedReportOut,
    HealthResponse,
    ReportSectionOut,
    SymptomAnalysisRequest,
    SymptomAnalysisResponse,
)

logger = logging.getLogger(__name__)


def _analysis_out(value: TriageResult) -> SymptomAnalysisResponse:
    return SymptomAnalysisResponse(
        request_id=value.request_id,
        timestamp=value.timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        primary_diagnosis=value.primary_diagnosis,
        urgency_score=value.urgency_score,
        urgency_level=value.urgency_level.value,
        triage_advice=value.triage_advice,
        potential_conditions=[
            ConditionMatchOut(
                condition=item.condition,
                probability=item.probability,
                description=item.description,
                common_symptoms=list(item.common_symptoms),
            )
            for item in value.potential_conditions
        ],
        formatted_report=FormattedReportOut(
            title=value.report.title,
            summary=value.report.summary,
            sections=[
                ReportSectionOut(heading=section.heading, content=section.content)
                for section in value.report.sections
            ],
        ),
        disclaimer=value.disclaimer,
    )


def _auth_user_out(value: AuthUser) -> AuthUserResponse:
    return AuthUserResponse(
        id=value.id,
        username=value.username,
        name=value.name,
        email=value.email,
    )


def _token_out(token: dict) -> AuthTokenResponse:
    return AuthTokenResponse(
        access_token=token["access_token"],
        token_type=token["token_type"],
        expires_in=token["expires_in"],
        user=_auth_user_out(token["user"]),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    app.state.triage_service = build_service(app.state.config)
    app.state.auth_manager = AuthManager.from_env()
    try:
        yield
    finally:
        if hasattr(app.state, "triage_service"):
            delattr(app.state, "triage_service")
        if hasattr(app.state, "auth_manager"):
            delattr(app.state, "auth_manager")


def get_service(request: Request) -> TriageService:
    service = getattr(request.app.state, "triage_service", None)
    if not service:
        raise HTTPException(status_code=503, detail="Service is not initialized.")
    return service


ServiceDep = Annotated[TriageService, Depends(get_service)]
AuthManagerDep = Annotated[AuthManager, Depends(get_auth_manager)]
CurrentUserDep = Annotated[AuthUser, Depends(get_current_user)]

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["health"])
def health() -> HealthResponse:
    return HealthResponse(status="ok", service="symptom-triage-api", version="1.0.0")


@router.post(
    "/api/v1/auth/register",
    response_model=AuthTokenResponse,
    tags=["auth"],
    status_code=status.HTTP_201_CREATED,
)
def register(payload: AuthRegisterRequest, auth_manager: AuthManagerDep) -> AuthTokenResponse:
    user = auth_manager.register(
        username=payload.username,
        password=payload.password,
        email=payload.email,
        name=payload.name,
    )
    return _token_out(auth_manager.issue_token(user))


@router.post("/api/v1/auth/login", response_model=AuthTokenResponse, tags=["auth"])
def login(payload: AuthLoginRequest, auth_manager: AuthManagerDep) -> AuthTokenResponse:
    user = auth_manager.authenticate(payload.username, payload.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password.",
        )
    return _token_out(auth_manager.issue_token(user))


@router.get("/api/v1/auth/me", response_model=AuthUserResponse, tags=["auth"])
def me(current_user: CurrentUserDep) -> AuthUserResponse:
    return _auth_user_out(current_user)


@router.post(
    "/api/v1/symptom-analyzer",
    response_model=SymptomAnalysisResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["triage"],
)
def analyze_symptoms(
    payload: SymptomAnalysisRequest,
    service: ServiceDep,
    current_user: CurrentUserDep,
) -> SymptomAnalysisResponse:
    profile = None
    if payload.user_profile is not None:
        profile = UserProfile(age=payload.user_profile.age, sex=payload.user_profile.sex)
    logger.debug("Symptom analysis requested by user_id=%s", current_user.id)
    result = service.analyze(payload.symptoms, user_profile=profile)
    return _analysis_out(result)


async def _invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


async def _internal_error_handler(request: Request, exc: InternalError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred during symptom analysis."},
    )


def create_app(config: TriageConfig | None = None) -> FastAPI:
    config = config or TriageConfig.from_env()
    configure_logging(config.log_level)
    app = FastAPI(
        title="Symptom Triage API",
        version="1.0.0",
        description=(
            "FastAPI backend for rule-based symptom triage: urgency scoring, "
            "candidate conditions, and a structured advisory report."
        ),
        lifespan=lifespan,
    )
    app.state.config = config
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(InvalidInputError, _invalid_input_handler)
    app.add_exception_handler(InternalError, _internal_error_handler)
    app.include_router(router)
    return app


app = create_app()
