from __future__ import annotations

import base64
import hashlib
import hmac
import json
import os
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWTError


@dataclass(frozen=True)
class AuthUser:
    id: int
    username: str
    name: str
    email: str


@dataclass(frozen=True)
class _SeedUser:
    username: str
    password: str
    name: str
    email: str


@dataclass
class _StoredUser:
    user: AuthUser
    password_hash: str


class AuthManager:
    """In-memory account store that issues and verifies bearer tokens."""

    def __init__(
        self,
        *,
        secret_key: str,
        algorithm: str,
        access_token_exp_minutes: int,
        seed_users: list[_SeedUser],
    ) -> None:
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_exp_minutes = access_token_exp_minutes
        self._lock = threading.Lock()
        self._users: dict[str, _StoredUser] = {}
        self._next_id = 1
        for seed in seed_users:
            self.register(
                username=seed.username,
                password=seed.password,
                email=seed.email,
                name=seed.name,
            )

    @classmethod
    def from_env(cls) -> "AuthManager":
        secret_key = os.getenv("TRIAGE_AUTH_SECRET", "change-me-in-production")
        algorithm = os.getenv("TRIAGE_AUTH_ALGORITHM", "HS256")
        access_exp_minutes = _env_int("TRIAGE_AUTH_EXPIRES_MINUTES", 60 * 24 * 7, min_value=1)
        return cls(
            secret_key=secret_key,
            algorithm=algorithm,
            access_token_exp_minutes=access_exp_minutes,
            seed_users=_load_seed_users(),
        )

    def register(self, *, username: str, password: str, email: str, name: str | None = None) -> AuthUser:
        key = self._username_key(username)
        with self._lock:
            if key in self._users:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Username is already taken.",
                )
            user = AuthUser(
                id=self._next_id,
                username=username.strip(),
                name=(name or "").strip() or username.strip(),
                email=email.strip(),
            )
            self._next_id += 1
            self._users[key] = _StoredUser(user=user, password_hash=hash_password(password))
        return user

    def authenticate(self, username: str, password: str) -> AuthUser | None:
        with self._lock:
            stored = self._users.get(self._username_key(username))
        if not stored:
            return None
        if not verify_password(password, stored.password_hash):
            return None
        return stored.user

    def get_user(self, username: str) -> AuthUser:
        with self._lock:
            stored = self._users.get(self._username_key(username))
        if not stored:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid token subject.",
            )
        return stored.user

    def issue_access_token(self, user: AuthUser) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "typ": "access",
            "sub": user.username,
            "uid": user.id,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=self.access_token_exp_minutes)).timestamp()),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def issue_token(self, user: AuthUser) -> dict[str, Any]:
        return {
            "access_token": self.issue_access_token(user),
            "token_type": "bearer",
            "expires_in": self.access_token_exp_minutes * 60,
            "user": user,
        }

    def parse_access_token(self, token: str) -> AuthUser:
        payload = self._decode_token(token)
        if payload.get("typ") != "access":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid token type.",
            )
        username = payload.get("sub")
        if not isinstance(username, str):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Malformed token payload.",
            )
        return self.get_user(username)

    @staticmethod
    def _username_key(username: str) -> str:
        return username.strip().lower()

    def _decode_token(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except PyJWTError as exc:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid or expired token.",
            ) from exc


def hash_password(password: str) -> str:
    iterations = 390_000
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    salt_b64 = base64.urlsafe_b64encode(salt).decode("ascii")
    digest_b64 = base64.urlsafe_b64encode(digest).decode("ascii")
    return f"pbkdf2_sha256${iterations}${salt_b64}${digest_b64}"


def verify_password(password: str, stored_hash: str) -> bool:
    try:
        scheme, iterations_raw, salt_b64, digest_b64 = stored_hash.split("$", 3)
        if scheme != "pbkdf2_sha256":
            return False
        iterations = int(iterations_raw)
        salt = base64.urlsafe_b64decode(salt_b64.encode("ascii"))
        expected = base64.urlsafe_b64decode(digest_b64.encode("ascii"))
    except ValueError:
        return False

    candidate = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(candidate, expected)


def _env_int(name: str, default: int, *, min_value: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        parsed = int(raw)
    except ValueError:
        return default
    if parsed < min_value:
        return default
    return parsed


def _load_seed_users() -> list[_SeedUser]:
    raw = os.getenv("TRIAGE_AUTH_USERS_JSON", "")
    if not raw.strip():
        return _default_seed_users()

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return _default_seed_users()

    if not isinstance(data, list):
        return _default_seed_users()

    users: list[_SeedUser] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        username = str(item.get("username", "")).strip()
        password = str(item.get("password", "")).strip()
        email = str(item.get("email", "")).strip() or f"{username}@example.com"
        name = str(item.get("name", "")).strip() or username
        if not username or not password:
            continue
        users.append(_SeedUser(username=username, password=password, name=name, email=email))
    return users or _default_seed_users()


def _default_seed_users() -> list[_SeedUser]:
    return [
        _SeedUser(
            username="demo_user",
            password="demo123",
            name="Demo User",
            email="demo@example.com",
        ),
        _SeedUser(
            username="patient_one",
            password="patient123",
            name="Patient One",
            email="patient@example.com",
        ),
        _SeedUser(
            username="health_user",
            password="health123",
            name="Health User",
            email="health@example.com",
        ),
    ]


bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_manager(request: Request) -> AuthManager:
    manager = getattr(request.app.state, "auth_manager", None)
    if not manager:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Auth manager unavailable.",
        )
    return manager


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_manager: AuthManager = Depends(get_auth_manager),
) -> AuthUser:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required.",
        )
    return auth_manager.parse_access_token(credentials.credentials)
