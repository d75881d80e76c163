# rizz/auth_api.py
from __future__ import annotations

from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse

from . import auth
from .schemas import SessionOutput, SessionUser

router = APIRouter(tags=["auth"])


def _login_redirect(error: str) -> RedirectResponse:
    return RedirectResponse(url="/login?" + urlencode({"error": error}))


@router.get("/api/auth/session", response_model=SessionOutput)
def session(request: Request):
    """Current session status. Always 200; `user` is null when signed out."""
    user = auth.get_current_user(request)
    if not user:
        return SessionOutput(user=None)
    return SessionOutput(user=SessionUser(id=user.id, email=user.email))


@router.get("/auth/callback")
def auth_callback(request: Request, code: Optional[str] = None):
    if not code:
        print("[auth] No code parameter found in callback URL")
        return _login_redirect("No authentication code provided")

    verifier_cookie = f"{auth.AUTH_COOKIE}-code-verifier" if auth.AUTH_COOKIE else ""
    verifier = auth.decode_cookie_value(auth.read_chunked_cookie(request.cookies, verifier_cookie))

    try:
        session = auth.exchange_code_for_session(code, verifier if isinstance(verifier, str) else None)
    except auth.AuthError as e:
        print(f"[auth] Error exchanging code for session: {e}")
        # The account may exist already (PKCE verifier lost between tabs)
        if auth.get_current_user(request):
            print("[auth] Session exists despite exchange error, redirecting to home")
            return RedirectResponse(url="/")
        return _login_redirect(f"Authentication failed: {e}")

    resp = RedirectResponse(url="/")
    if auth.AUTH_COOKIE:
        resp.set_cookie(
            auth.AUTH_COOKIE,
            auth.encode_cookie_value(session),
            max_age=auth.COOKIE_MAX_AGE,
            path="/",
            samesite="lax",
            secure=request.url.scheme == "https",
        )
        if verifier_cookie:
            resp.delete_cookie(verifier_cookie, path="/")
    return resp
