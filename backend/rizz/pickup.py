# rizz/pickup.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

Category = Literal["romantic", "funny", "naughty", "none"]

MIN_COUNT = 1
MAX_COUNT = 20

DEFAULT_SCENARIO = (
    "You as a guy wanting to say a good pick up line on a girl you are talking "
    "for the first time to get her number or social info"
)

CATEGORIES = ("romantic", "funny", "naughty")

# Values the UI sends for "no particular tone"
_NO_CATEGORY = {"", "none", "any", "null"}


def clamp_count(count: Optional[int]) -> int:
    if count is None:
        return MIN_COUNT
    return max(MIN_COUNT, min(MAX_COUNT, int(count)))


def parse_category(raw: Optional[str]) -> Category:
    """
    Map the inbound category to a tone.
    None / "" / "any" => "none". Unknown values raise ValueError.
    """
    c = (raw or "").strip().lower()
    if c in _NO_CATEGORY:
        return "none"
    if c in CATEGORIES:
        return c  # type: ignore
    raise ValueError(f"Invalid category: {raw}")


@dataclass(frozen=True)
class PickupItem:
    text: str
    translation: str = ""

    def to_wire(self) -> dict:
        # "tagalog" is the field name the frontend reads
        return {"tagalog": self.text, "translation": self.translation}


@dataclass(frozen=True)
class GenerationRequest:
    scenario: str = DEFAULT_SCENARIO
    requested_count: int = MIN_COUNT
    category: Category = "none"
    include_translations: bool = True

    def __post_init__(self) -> None:
        scenario = (self.scenario or "").strip() or DEFAULT_SCENARIO
        object.__setattr__(self, "scenario", scenario)
        object.__setattr__(self, "requested_count", clamp_count(self.requested_count))


@dataclass(frozen=True)
class RawCompletion:
    text: str
