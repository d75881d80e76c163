# rizz/auth.py
"""
Supabase Auth glue.

The access token is read from `Authorization: Bearer <token>` first, then from
the Supabase auth cookie (`sb-<project-ref>-auth-token`, value `base64-<json>`,
possibly split into `.0`, `.1`, ... chunks). Tokens are validated against
Supabase `/auth/v1/user`; the user id is treated as an opaque string.
"""
from __future__ import annotations

import base64
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

import requests
from fastapi import HTTPException, Request

from .settings import settings

AUTH_TIMEOUT_SEC = 15
# @supabase/ssr keeps the session cookie for 400 days
COOKIE_MAX_AGE = 400 * 24 * 60 * 60
COOKIE_PREFIX = "base64-"


class AuthError(Exception):
    pass


@dataclass(frozen=True)
class AuthedUser:
    id: str
    email: Optional[str]
    access_token: str


def normalize_url(raw: Optional[str]) -> str:
    raw = (raw or "").strip()
    if not raw:
        return ""
    if not raw.startswith("http://") and not raw.startswith("https://"):
        raw = "https://" + raw
    return raw.rstrip("/")


def auth_cookie_name(supabase_url: str, override: Optional[str] = None) -> str:
    if override and override.strip():
        return override.strip()
    host = urlparse(supabase_url).hostname or ""
    ref = host.split(".")[0] if host else ""
    return f"sb-{ref}-auth-token" if ref else ""


SUPABASE_URL = normalize_url(settings.SUPABASE_URL)
SUPABASE_ANON_KEY = (settings.SUPABASE_ANON_KEY or "").strip()
AUTH_COOKIE = auth_cookie_name(SUPABASE_URL, settings.SUPABASE_AUTH_COOKIE)


def supabase_configured() -> bool:
    return bool(SUPABASE_URL and SUPABASE_ANON_KEY)


# =========================
# Cookie helpers
# =========================
def _b64decode(s: str) -> bytes:
    s = s.strip().replace("-", "+").replace("_", "/")
    return base64.b64decode(s + "=" * (-len(s) % 4))


def decode_cookie_value(value: Optional[str]) -> Any:
    """
    Decode a Supabase cookie value. Returns the JSON payload (or the raw string
    when it isn't JSON), None on garbage.
    """
    v = (value or "").strip()
    if not v:
        return None
    try:
        if v.startswith(COOKIE_PREFIX):
            v = _b64decode(v[len(COOKIE_PREFIX) :]).decode("utf-8")
        if v[:1] in ("{", "[", '"'):
            return json.loads(v)
        return v
    except ValueError as e:
        print(f"[auth] Error parsing auth cookie: {e}")
        return None


def encode_cookie_value(payload: Any) -> str:
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return COOKIE_PREFIX + base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def read_chunked_cookie(cookies: Mapping[str, str], name: str) -> Optional[str]:
    if not name:
        return None
    if cookies.get(name):
        return cookies[name]
    parts = []
    i = 0
    while cookies.get(f"{name}.{i}"):
        parts.append(cookies[f"{name}.{i}"])
        i += 1
    return "".join(parts) or None


def token_from_cookie_value(value: Optional[str]) -> Optional[str]:
    data = decode_cookie_value(value)
    # legacy auth-helpers format: [access_token, refresh_token, ...]
    if isinstance(data, list) and data and isinstance(data[0], str):
        return data[0] or None
    if isinstance(data, dict):
        token = data.get("access_token")
        return token if isinstance(token, str) and token else None
    return None


def bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization") or ""
    if not auth.lower().startswith("bearer "):
        return None
    token = auth.split(" ", 1)[1].strip()
    return token or None


def access_token_from_request(request: Request) -> Optional[str]:
    return bearer_token(request) or token_from_cookie_value(
        read_chunked_cookie(request.cookies, AUTH_COOKIE)
    )


# =========================
# Supabase Auth REST
# =========================
def _auth_headers(token: Optional[str] = None) -> Dict[str, str]:
    headers = {"apikey": SUPABASE_ANON_KEY, "Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def fetch_user(token: str) -> Optional[AuthedUser]:
    """Resolve a token to a user via Supabase. Any failure => None."""
    if not supabase_configured():
        print("[auth] SUPABASE_URL or SUPABASE_ANON_KEY not configured")
        return None

    try:
        r = requests.get(
            f"{SUPABASE_URL}/auth/v1/user",
            headers=_auth_headers(token),
            timeout=AUTH_TIMEOUT_SEC,
        )
    except requests.RequestException as e:
        print(f"[auth] User lookup failed: {e}")
        return None

    if r.status_code != 200:
        print(f"[auth] Session error: status={r.status_code}")
        return None

    try:
        data = r.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    uid = data.get("id")
    if not uid:
        return None
    return AuthedUser(id=str(uid), email=data.get("email"), access_token=token)


def get_current_user(request: Request) -> Optional[AuthedUser]:
    token = access_token_from_request(request)
    if not token:
        return None
    return fetch_user(token)


def require_user(request: Request) -> AuthedUser:
    if not supabase_configured():
        raise HTTPException(status_code=500, detail="Supabase not configured")

    token = access_token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized - No auth token found")

    user = fetch_user(token)
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized - Invalid session")
    return user


def exchange_code_for_session(code: str, code_verifier: Optional[str]) -> Dict[str, Any]:
    """
    PKCE code exchange (POST /auth/v1/token?grant_type=pkce).
    Returns the session payload; raises AuthError on any failure.
    """
    if not supabase_configured():
        raise AuthError("Supabase not configured")

    print(f"[auth] Auth callback received with code: {code[:5]}...")
    try:
        r = requests.post(
            f"{SUPABASE_URL}/auth/v1/token",
            params={"grant_type": "pkce"},
            headers=_auth_headers(),
            json={"auth_code": code, "code_verifier": code_verifier or ""},
            timeout=AUTH_TIMEOUT_SEC,
        )
    except requests.RequestException as e:
        raise AuthError(str(e)) from e

    try:
        data = r.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    if r.status_code != 200 or not data.get("access_token"):
        message = data.get("error_description") or data.get("msg") or data.get("error")
        raise AuthError(message or f"status {r.status_code}")

    if data.get("expires_in") and not data.get("expires_at"):
        data["expires_at"] = int(time.time()) + int(data["expires_in"])
    print("[auth] Code exchange successful, session created")
    return data
