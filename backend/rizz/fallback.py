# rizz/fallback.py
from __future__ import annotations

from typing import List

from .pickup import PickupItem, clamp_count

FALLBACK_NOTE = "Using fallback pickup lines due to API issues. Please try again later."

# Served when the completion call fails. Must hold at least MAX_COUNT entries.
FALLBACK_CATALOG: tuple[PickupItem, ...] = (
    PickupItem(
        "Pwede ba kitang tawaging Google? Kasi lagi kang may sagot sa mga hinahanap ko.",
        "Can I call you Google? Because you always have the answer to what I'm looking for.",
    ),
    PickupItem(
        "Ikaw ba ay isang kape? Kasi hindi ako makatulog kakaisip sayo.",
        "Are you coffee? Because I can't sleep thinking about you.",
    ),
    PickupItem(
        "Pwede ba kitang tawaging WiFi? Kasi ramdam ko ang connection natin.",
        "Can I call you WiFi? Because I feel our connection.",
    ),
    PickupItem(
        "Ikaw ba ay isang camera? Kasi sa tuwing nakikita kita, napapangiti ako.",
        "Are you a camera? Because every time I see you, I smile.",
    ),
    PickupItem(
        "Pwede ba kitang tawaging keyboard? Kasi ikaw ang type ko.",
        "Can I call you a keyboard? Because you're just my type.",
    ),
    PickupItem(
        "Exam ka ba? Kasi lagi kitang pinaghahandaan.",
        "Are you an exam? Because I always prepare for you.",
    ),
    PickupItem(
        "Magnanakaw ka ba? Kasi ninakaw mo ang puso ko.",
        "Are you a thief? Because you stole my heart.",
    ),
    PickupItem(
        "Tubig ka ba? Kasi hindi ako mabubuhay nang wala ka.",
        "Are you water? Because I can't live without you.",
    ),
    PickupItem(
        "Pustiso ka ba? Kasi I can't smile without you.",
        "Are you dentures? Because I can't smile without you.",
    ),
    PickupItem(
        "Kalendaryo ka ba? Kasi gusto kitang makasama araw-araw.",
        "Are you a calendar? Because I want to be with you every day.",
    ),
    PickupItem(
        "Traffic ka ba? Kasi hindi na ako makaalis sa tabi mo.",
        "Are you traffic? Because I can't get away from your side.",
    ),
    PickupItem(
        "Alarm clock ka ba? Kasi ginigising mo ang puso ko.",
        "Are you an alarm clock? Because you wake up my heart.",
    ),
    PickupItem(
        "Sinigang ka ba? Kasi ang asim mo pero hinahanap-hanap kita.",
        "Are you sinigang? Because you're sour but I keep craving you.",
    ),
    PickupItem(
        "Load ka ba? Kasi ikaw ang dahilan kung bakit connected ako.",
        "Are you prepaid load? Because you're the reason I stay connected.",
    ),
    PickupItem(
        "Araw ka ba? Kasi ang liwanag ng mundo ko kapag nandiyan ka.",
        "Are you the sun? Because my world is bright when you're around.",
    ),
    PickupItem(
        "Password ka ba? Kasi ikaw lang ang susi sa puso ko.",
        "Are you a password? Because you're the only key to my heart.",
    ),
    PickupItem(
        "Pandesal ka ba? Kasi ikaw ang hinahanap ko tuwing umaga.",
        "Are you pandesal? Because you're what I look for every morning.",
    ),
    PickupItem(
        "Payong ka ba? Kasi gusto kitang kasama sa bawat unos.",
        "Are you an umbrella? Because I want you with me through every storm.",
    ),
    PickupItem(
        "Mapa ka ba? Kasi naliligaw ako sa mga mata mo.",
        "Are you a map? Because I get lost in your eyes.",
    ),
    PickupItem(
        "Kandila ka ba? Kasi pinapaliwanag mo ang pinakamadilim kong gabi.",
        "Are you a candle? Because you light up my darkest nights.",
    ),
    PickupItem(
        "Jeep ka ba? Kasi handa akong sumabit para lang makasama ka.",
        "Are you a jeepney? Because I'm ready to hang on just to be with you.",
    ),
)


def fallback_items(count: int) -> List[PickupItem]:
    """First `count` catalog lines (count clamped to the supported range)."""
    n = clamp_count(count)
    print(f"[fallback] Serving {min(n, len(FALLBACK_CATALOG))} fallback pickup lines")
    return list(FALLBACK_CATALOG[:n])
