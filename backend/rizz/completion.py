# rizz/completion.py
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .pickup import Category, GenerationRequest, RawCompletion
from .settings import Settings


# =========================
# Errors
# =========================
class ConfigurationError(Exception):
    """Credential missing or malformed. Never masked: the route answers 500."""


class UpstreamFailure(Exception):
    """Base for failures the caller absorbs with fallback content."""


class TransportTimeout(UpstreamFailure):
    pass


class UpstreamError(UpstreamFailure):
    def __init__(self, status_code: int, raw_body: str):
        super().__init__(f"API request failed with status {status_code}")
        self.status_code = status_code
        self.raw_body = raw_body


class MalformedUpstreamResponse(UpstreamFailure):
    pass


# =========================
# Config
# =========================
KEY_PREFIX = "sk-or-"


def _clean_key(raw: Optional[str]) -> str:
    # Env files sometimes carry the key wrapped in quotes
    return (raw or "").strip().strip("\"'").strip()


def _key_hint(key: str) -> str:
    return f"{key[:6]}... (len={len(key)})" if key else "none"


@dataclass(frozen=True)
class CompletionConfig:
    api_key: str
    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "deepseek/deepseek-chat:free"
    timeout_sec: float = 8.0
    referer: str = "http://localhost:3000"
    title: str = "Tagalog Rizz Chat"
    max_tokens: Optional[int] = 800
    temperature: Optional[float] = 0.9

    def __post_init__(self) -> None:
        key = _clean_key(self.api_key)
        if not key:
            raise ConfigurationError("OPENROUTER_API_KEY is not set")
        if not key.startswith(KEY_PREFIX):
            raise ConfigurationError(
                f"Invalid OpenRouter API key format. Key should start with {KEY_PREFIX}"
            )
        object.__setattr__(self, "api_key", key)
        object.__setattr__(self, "base_url", (self.base_url or "").rstrip("/"))

    @classmethod
    def from_settings(cls, s: Settings) -> "CompletionConfig":
        return cls(
            api_key=s.OPENROUTER_API_KEY or "",
            base_url=s.OPENROUTER_BASE_URL,
            model=s.OPENROUTER_MODEL,
            timeout_sec=s.GENERATION_TIMEOUT_SEC,
            referer=s.APP_URL,
            title=s.APP_TITLE,
            max_tokens=s.GENERATION_MAX_TOKENS,
            temperature=s.GENERATION_TEMPERATURE,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def describe(self) -> str:
        return f"model={self.model} key={_key_hint(self.api_key)} timeout={self.timeout_sec}s"


# =========================
# Instruction
# =========================
TONE_DIRECTIVES: Dict[Category, str] = {
    "romantic": "Make them sweet and heartfelt.",
    "funny": "Make them humorous and witty.",
    "naughty": "Make them playful and suggestive, but not explicit.",
    "none": "",
}

JSON_FORMAT = (
    "For each pickup line, also provide an English translation. "
    "Format your response as a JSON array with each item having 'tagalog' and 'translation' fields."
)


def build_instruction(req: GenerationRequest) -> str:
    tone = TONE_DIRECTIVES.get(req.category, "")
    if req.include_translations:
        fmt = JSON_FORMAT
    else:
        fmt = f"Format your response as a numbered list from 1 to {req.requested_count}."

    parts = [f"Generate {req.requested_count} creative tagalog pick-up lines.", tone, fmt]
    body = " ".join(p for p in parts if p)
    return f"Scenario: {req.scenario}\n\n{body}"


def build_single_line_instruction(prompt: str) -> str:
    return (
        f"Generate a creative tagalog pick-up line about: {prompt.strip()}. "
        "Keep it under 2 sentences and use romantic taglish if appropriate."
    )


# =========================
# Request
# =========================
def _extract_content(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0] if isinstance(choices[0], dict) else {}
    message = first.get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, str) and content.strip():
        return content
    return None


async def complete(
    cfg: CompletionConfig,
    instruction: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RawCompletion:
    """
    Single-shot chat completion. No retries: callers substitute fallback content.

    Raises:
        TransportTimeout: no answer within cfg.timeout_sec (or connection failure)
        UpstreamError: non-2xx status
        MalformedUpstreamResponse: 2xx without choices[0].message.content
    """
    headers = {
        "Authorization": f"Bearer {cfg.api_key}",
        "Content-Type": "application/json",
        "HTTP-Referer": cfg.referer,
        "X-Title": cfg.title,
    }
    payload: Dict[str, Any] = {
        "model": cfg.model,
        "messages": [{"role": "user", "content": instruction}],
    }
    if cfg.max_tokens is not None:
        payload["max_tokens"] = cfg.max_tokens
    if cfg.temperature is not None:
        payload["temperature"] = cfg.temperature

    try:
        async with httpx.AsyncClient(timeout=cfg.timeout_sec, transport=transport) as client:
            r = await client.post(cfg.endpoint, headers=headers, json=payload)
    except httpx.TimeoutException as e:
        print(f"[completion] Timed out after {cfg.timeout_sec}s ({cfg.describe()})")
        raise TransportTimeout(f"Completion request timed out after {cfg.timeout_sec}s") from e
    except httpx.HTTPError as e:
        print(f"[completion] Transport error: {e}")
        raise TransportTimeout(f"Completion request failed: {e}") from e

    print(f"[completion] OpenRouter response status: {r.status_code}")

    if not r.is_success:
        raw = r.text
        print(f"[completion] API error {r.status_code} ({cfg.describe()}): {raw[:300]}")
        raise UpstreamError(r.status_code, raw)

    try:
        data = r.json()
    except json.JSONDecodeError as e:
        print(f"[completion] Non-JSON body: {r.text[:300]}")
        raise MalformedUpstreamResponse("Invalid response format from API") from e

    content = _extract_content(data)
    if content is None:
        print(f"[completion] Invalid response format: {json.dumps(data, ensure_ascii=False)[:300]}")
        raise MalformedUpstreamResponse("Invalid response format from API")

    print(f"[completion] Raw content ({len(content)} chars): {content[:300]}")
    return RawCompletion(text=content)


async def request_completion(
    cfg: CompletionConfig,
    req: GenerationRequest,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RawCompletion:
    return await complete(cfg, build_instruction(req), transport=transport)
