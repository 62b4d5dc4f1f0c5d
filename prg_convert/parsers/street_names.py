"""Street name assembly for the 2021 schema."""

from __future__ import annotations

STREET_TYPE_PREFIXES = {
    "1": "",  # ulica, implied
    "2": "aleja",
    "3": "plac",
    "4": "skwer",
    "5": "bulwar",
    "6": "rondo",
    "7": "park",
    "8": "rynek",
    "9": "szosa",
    "10": "droga",
    "11": "osiedle",
    "12": "ogród",
    "13": "wyspa",
    "14": "wybrzeże",
    "15": "",  # other linear
    "16": "",  # other areal
}

STREET_TYPE_SHORT_FORMS = {
    "2": "al.",
    "3": "pl.",
    "6": "rondo",
    "11": "os.",
}


def street_type_prefix(main_name: str, street_type: str | None) -> str:
    prefix = STREET_TYPE_PREFIXES.get(street_type or "", "")
    if not prefix:
        return ""
    lowered = main_name.lower()
    if lowered.startswith(prefix):
        return ""
    short = STREET_TYPE_SHORT_FORMS.get(street_type or "")
    if short and lowered.startswith(short):
        return ""
    return prefix


def build_street_name(main_name: str | None, name_part: str | None, street_type: str | None) -> str | None:
    """Join the type prefix, the secondary part and the main part of a street name.

    The prefix is left out when the main part already carries it, spelled out
    or abbreviated (e.g. ``pl. Grunwaldzki`` for a square).
    """
    if not main_name:
        return name_part or None
    parts = (street_type_prefix(main_name, street_type), name_part or "", main_name)
    return " ".join(part for part in parts if part)
