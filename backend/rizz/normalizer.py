# rizz/normalizer.py
"""
Turn a free-form completion into at most `count` PickupItems.

Strategies run in a fixed order and each one returns a (possibly empty) list.
An empty list means "did not match" and hands over to the next strategy:

  1. fence stripping (always)
  2. structured JSON array      (translations only; complete objects are
                                 salvaged from a cut-off array)
  3. numbered list with pairing (translations only)
  4. numbered list
  5. newline split
  6. blank-line split           (only while short of count)
  7. equal partition            (only while short of count, long text)
  8. whole text as one item

Nothing here raises on malformed model output.
"""
from __future__ import annotations

import json
import re
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence

from .pickup import PickupItem, clamp_count

Strategy = Callable[[str, int], List[PickupItem]]

# Ordered aliases per logical field. First non-empty value wins.
TEXT_ALIASES = ("tagalog", "text", "content", "line")
TRANSLATION_ALIASES = ("translation", "english", "meaning")

_NOT_JSON = object()

_FENCE_RE = re.compile(r"```[ \t]*(?:json)?[ \t]*\n?(.*?)```", re.S | re.I)
_OPEN_FENCE_RE = re.compile(r"^```[ \t]*(?:json)?[ \t]*\n?", re.I)
_CLOSE_FENCE_RE = re.compile(r"\n?[ \t]*```[ \t]*$")

_MARKER_RE = re.compile(r"^\s*\d{1,3}\s*[.)]\s*")
_NUMBERED_LINE_RE = re.compile(r"^\s*\d{1,3}\s*[.)]")
_BULLET_RE = re.compile(r"^\s*[-•*]\s+")
# Keys may arrive quoted when the model leaks JSON ("tagalog": "...")
_TEXT_ECHO_RE = re.compile(
    r'^\s*\**\s*"?(?:tagalog|text|line|pick-?up line)"?\s*\**\s*:\s*\**\s*', re.I
)
_TRANSLATION_LABEL_RE = re.compile(
    r'^\s*\**\s*"?(?:translation|english|meaning)"?\s*\**\s*:\s*\**\s*', re.I
)
_HEADER_RE = re.compile(r'^\**\s*"?(?:tagalog|translation|english)"?\s*\**\s*:', re.I)
_TAGALOG_HEADER_RE = re.compile(r'^\**\s*"?tagalog"?\s*\**\s*:', re.I)
# Rules and bare JSON punctuation ("[", "{", "},")
_SEPARATOR_RE = re.compile(r"^[\s\-*=_\[\]{},]+$")
# "Here are your pickup lines:"
_INTRO_RE = re.compile(r":\s*\**$")

_MARKER_CANDIDATE_RE = re.compile(r"(?:^|(?<=\s))(\d{1,3})[.)]\s+")
_BLANK_LINE_RE = re.compile(r"\n[ \t]*\n")
_SENTENCE_END_RE = re.compile(r"(?<!\d)[.!?]")

# JSON repair / salvage
_JSON_PAIR_RE = re.compile(r'"([A-Za-z_]+)"\s*:\s*"((?:[^"\\]|\\.)*)"')
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)\s*:")
_SINGLE_KEY_RE = re.compile(r"([{,]\s*)'([^'\\]*)'\s*:")
_SINGLE_VALUE_RE = re.compile(r"(:\s*)'((?:[^'\\]|\\.)*)'(?=\s*[,}\]])")
_SINGLE_ITEM_RE = re.compile(r"([\[,]\s*)'((?:[^'\\]|\\.)*)'(?=\s*[,\]])")
_TRAILING_COMMA_RE = re.compile(r",\s*([\]}])")

_WRAPPERS = (("**", "**"), ("*", "*"), ('"', '"'), ("\u201c", "\u201d"))
_TRANSLATION_WRAPPERS = _WRAPPERS + (("(", ")"),)

# Equal partition only kicks in above this many chars per requested item
PARTITION_CHARS_PER_ITEM = 20


# =========================
# Cleaning
# =========================
def _unwrap(s: str, wrappers: Sequence[tuple] = _WRAPPERS) -> str:
    s = s.strip()
    changed = True
    while changed:
        changed = False
        for left, right in wrappers:
            if len(s) > len(left) + len(right) and s.startswith(left) and s.endswith(right):
                s = s[len(left) : -len(right)].strip()
                changed = True
                break
    return s


def _strip_json_tail(s: str) -> str:
    # "Ikaw ba ay kape?",  (a value line from leaked JSON)
    if s.startswith('"'):
        return s.rstrip(",").rstrip()
    return s


def clean_text(raw: str) -> str:
    """Strip enumeration markers, bullets, field-name echoes and wrapping emphasis."""
    s = (raw or "").strip()
    s = _MARKER_RE.sub("", s, count=1)
    s = _BULLET_RE.sub("", s, count=1)
    s = _TEXT_ECHO_RE.sub("", s, count=1)
    return _unwrap(_strip_json_tail(s))


def clean_translation(raw: str) -> str:
    s = (raw or "").strip()
    s = _BULLET_RE.sub("", s, count=1)
    s = _TRANSLATION_LABEL_RE.sub("", s, count=1)
    return _unwrap(_strip_json_tail(s), _TRANSLATION_WRAPPERS)


def _squash(s: str) -> str:
    return " ".join(s.split())


def strip_fences(text: str) -> str:
    s = (text or "").strip()
    m = _FENCE_RE.search(s)
    if m:
        return m.group(1).strip()
    s = _OPEN_FENCE_RE.sub("", s)
    s = _CLOSE_FENCE_RE.sub("", s)
    return s.strip()


def resolve_alias(obj: Dict[str, Any], aliases: Iterable[str]) -> str:
    lowered: Dict[str, Any] = {}
    for k, v in obj.items():
        if isinstance(k, str):
            lowered.setdefault(k.strip().lower(), v)
    for name in aliases:
        v = lowered.get(name)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return ""


# =========================
# JSON helpers
# =========================
def _loads(s: str) -> Any:
    try:
        return json.loads(s)
    except ValueError:
        return _NOT_JSON


def find_bracketed(s: str, open_ch: str = "[", close_ch: str = "]") -> Optional[str]:
    """First balanced open_ch...close_ch substring, ignoring brackets inside strings."""
    start = s.find(open_ch)
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape = False
    for i, ch in enumerate(s[start:], start):
        if escape:
            escape = False
            continue
        if ch == "\\" and in_string:
            escape = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return s[start : i + 1]
    return None


def repair_json(s: str) -> str:
    """Quote bare/single-quoted keys, double-quote single-quoted strings, drop trailing commas."""
    s = _SINGLE_KEY_RE.sub(lambda m: f'{m.group(1)}"{m.group(2)}":', s)
    s = _BARE_KEY_RE.sub(lambda m: f'{m.group(1)}"{m.group(2)}":', s)
    s = _SINGLE_VALUE_RE.sub(
        lambda m: m.group(1) + json.dumps(m.group(2).replace("\\'", "'"), ensure_ascii=False), s
    )
    s = _SINGLE_ITEM_RE.sub(
        lambda m: m.group(1) + json.dumps(m.group(2).replace("\\'", "'"), ensure_ascii=False), s
    )
    return _TRAILING_COMMA_RE.sub(r"\1", s)


def _iter_bracketed(text: str, open_ch: str, close_ch: str) -> Iterator[str]:
    """Balanced open_ch...close_ch substrings, trying every opening position in turn."""
    pos = 0
    while True:
        start = text.find(open_ch, pos)
        if start == -1:
            return
        found = find_bracketed(text[start:], open_ch, close_ch)
        if found:
            yield found
        pos = start + 1


def _parse_candidates(text: str) -> Iterator[Any]:
    candidates = [text]
    for arr in _iter_bracketed(text, "[", "]"):
        if arr != text:
            candidates.append(arr)

    for c in candidates:
        v = _loads(c)
        if isinstance(v, (list, dict)):
            yield v
    # one repair pass
    for c in candidates:
        v = _loads(repair_json(c))
        if isinstance(v, (list, dict)):
            yield v


def _json_string(raw: str) -> str:
    v = _loads(f'"{raw}"')
    return v if isinstance(v, str) else raw


def _elements(parsed: Any) -> List[Any]:
    if isinstance(parsed, list):
        return parsed
    if not isinstance(parsed, dict):
        return []
    # {"lines": [...]} / {"pickup_lines": [...]}
    for v in parsed.values():
        if isinstance(v, list):
            return v
    if resolve_alias(parsed, TEXT_ALIASES):
        return [parsed]
    # {"1": {...}, "2": {...}}
    return [v for v in parsed.values() if isinstance(v, (dict, str))]


def _item_from_element(el: Any) -> Optional[PickupItem]:
    if isinstance(el, dict):
        text = clean_text(resolve_alias(el, TEXT_ALIASES))
        translation = clean_translation(resolve_alias(el, TRANSLATION_ALIASES))
    elif isinstance(el, str):
        text, translation = clean_text(el), ""
    else:
        return None
    if not text:
        return None
    return PickupItem(text=text, translation=translation)


# =========================
# Strategies
# =========================
def _items_from(parsed: Any, count: int) -> List[PickupItem]:
    items: List[PickupItem] = []
    for el in _elements(parsed):
        item = _item_from_element(el)
        if item:
            items.append(item)
        if len(items) >= count:
            break
    return items


def salvage_objects(text: str, count: int) -> List[PickupItem]:
    """Every complete {...} item of an array that was cut off mid-way."""
    items: List[PickupItem] = []
    pos = 0
    while len(items) < count:
        start = text.find("{", pos)
        if start == -1:
            break
        obj = find_bracketed(text[start:], "{", "}")
        if not obj:
            pos = start + 1
            continue
        pos = start + len(obj)

        v = _loads(obj)
        if v is _NOT_JSON:
            v = _loads(repair_json(obj))
        if isinstance(v, dict):
            item = _item_from_element(v)
            if item:
                items.append(item)
    return items


def salvage_pairs(text: str, count: int) -> List[PickupItem]:
    """Loose `"tagalog": "..."` / `"translation": "..."` pairs, in order."""
    items: List[PickupItem] = []
    current: Optional[List[str]] = None
    for m in _JSON_PAIR_RE.finditer(text):
        key = m.group(1).lower()
        if key in TEXT_ALIASES:
            if current and current[0]:
                items.append(PickupItem(text=current[0], translation=current[1]))
            current = [clean_text(_json_string(m.group(2))), ""]
        elif key in TRANSLATION_ALIASES and current and not current[1]:
            current[1] = clean_translation(_json_string(m.group(2)))
    if current and current[0]:
        items.append(PickupItem(text=current[0], translation=current[1]))
    return items[:count]


def extract_structured(text: str, count: int) -> List[PickupItem]:
    for parsed in _parse_candidates(text):
        items = _items_from(parsed, count)
        if items:
            return items

    # Truncated output (token cap hit mid-array)
    items = salvage_objects(text, count)
    if items:
        print(f"[normalizer] Salvaged {len(items)} complete objects from broken JSON")
        return items
    return salvage_pairs(text, count)


def _is_skippable(line: str) -> bool:
    return bool(_SEPARATOR_RE.match(line) or _HEADER_RE.match(line) or _INTRO_RE.search(line))


def _is_translation_line(line: str) -> bool:
    if _NUMBERED_LINE_RE.match(line) or _SEPARATOR_RE.match(line):
        return False
    return not _TAGALOG_HEADER_RE.match(line)


def extract_paired(text: str, count: int) -> List[PickupItem]:
    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    items: List[PickupItem] = []

    i = 0
    while i < len(lines) and len(items) < count:
        line = lines[i]
        i += 1
        if _is_skippable(line):
            continue

        translation = ""
        if _NUMBERED_LINE_RE.match(line) and i < len(lines) and _is_translation_line(lines[i]):
            translation = clean_translation(lines[i])
            i += 1

        t = clean_text(line)
        if t:
            items.append(PickupItem(text=t, translation=translation))
    return items


def _list_markers(text: str) -> List[re.Match]:
    """
    Markers that open a list item: one at the start of a line, or the next
    number of a running list ("1. a 2. b"). A stray "number 1." mid-sentence
    is not a marker.
    """
    markers: List[re.Match] = []
    prev: Optional[int] = None
    for m in _MARKER_CANDIDATE_RE.finditer(text):
        line_start = text.rfind("\n", 0, m.start()) + 1
        n = int(m.group(1))
        if not text[line_start : m.start()].strip() or (prev is not None and n == prev + 1):
            markers.append(m)
            prev = n
    return markers


def extract_numbered(text: str, count: int) -> List[PickupItem]:
    markers = _list_markers(text)
    items: List[PickupItem] = []
    for i, m in enumerate(markers):
        end = markers[i + 1].start() if i + 1 < len(markers) else len(text)
        t = clean_text(_squash(text[m.end() : end]))
        if t:
            items.append(PickupItem(text=t))
        if len(items) >= count:
            break
    return items


def extract_lines(text: str, count: int) -> List[PickupItem]:
    items: List[PickupItem] = []
    for line in text.split("\n"):
        if _SEPARATOR_RE.match(line) or _INTRO_RE.search(line):
            continue
        t = clean_text(line)
        if t:
            items.append(PickupItem(text=t))
        if len(items) >= count:
            break
    return items


def extract_paragraphs(text: str, count: int) -> List[PickupItem]:
    items: List[PickupItem] = []
    for block in _BLANK_LINE_RE.split(text):
        if _SEPARATOR_RE.match(block):
            continue
        t = clean_text(_squash(block))
        if t:
            items.append(PickupItem(text=t))
        if len(items) >= count:
            break
    return items


def extract_partitioned(text: str, count: int) -> List[PickupItem]:
    s = text.strip()
    if len(s) <= count * PARTITION_CHARS_PER_ITEM:
        return []

    size = -(-len(s) // count)
    items: List[PickupItem] = []
    for start in range(0, len(s), size):
        chunk = s[start : start + size]
        m = _SENTENCE_END_RE.search(chunk)
        if m and m.end() < len(chunk):
            chunk = chunk[: m.end()]
        t = clean_text(_squash(chunk))
        if t:
            items.append(PickupItem(text=t))
    return items[:count]


# =========================
# Orchestration
# =========================
def _text_only(body: str, count: int) -> List[PickupItem]:
    items = extract_numbered(body, count)
    if items:
        return items

    items = extract_lines(body, count)
    for strategy in (extract_paragraphs, extract_partitioned):
        if len(items) >= count:
            break
        candidate = strategy(body, count)
        if len(candidate) > len(items):
            items = candidate
    return items


def normalize(text: str, count: int, include_translations: bool = True) -> List[PickupItem]:
    """
    Extract up to `count` items (count clamped to [1, 20]) from a raw completion.
    Returns [] only for empty/whitespace input.
    """
    n = clamp_count(count)
    raw = (text or "").strip()
    if not raw:
        return []

    body = strip_fences(raw) or raw

    if include_translations:
        structured: Sequence[Strategy] = (extract_structured, extract_paired)
        for strategy in structured:
            items = strategy(body, n)
            if items:
                return items[:n]

    items = _text_only(body, n)
    if items:
        return items[:n]

    print(f"[normalizer] All strategies empty, returning raw text ({len(raw)} chars)")
    return [PickupItem(text=raw)]
