"""Validate keywords.py structure before the extractor compiles it into patterns."""

from __future__ import annotations

import sys
from typing import Iterable

import keywords

STRING_LISTS = (
    "SOURCE_URLS",
    "AGGREGATOR_DOMAINS",
    "TITLE_KEYWORDS",
    "ROLLING_TERMS",
    "DEADLINE_TERMS",
    "LINK_BLOCKED_PATHS",
    "LINK_BLOCKED_EXTENSIONS",
    "LINK_BLOCKED_DOMAINS",
    "LINK_BLOCKED_SCHEMES",
)


def _validate_string_list(values: Iterable[object], label: str) -> list[str]:
    errors: list[str] = []
    seen = set()
    for value in values:
        if not isinstance(value, str):
            errors.append(f"{label} contains non-string value: {value!r}")
            continue
        if not value.strip():
            errors.append(f"{label} contains empty/blank string.")
            continue
        if value in seen:
            errors.append(f"{label} contains duplicate value: {value!r}")
            continue
        seen.add(value)
    if not seen:
        errors.append(f"{label} is empty.")
    return errors


def _validate_agency_domains(pairs: object) -> list[str]:
    if not isinstance(pairs, list):
        return ["AGENCY_DOMAINS must be a list."]
    errors: list[str] = []
    fragments = []
    for pair in pairs:
        if not (isinstance(pair, tuple) and len(pair) == 2 and all(isinstance(part, str) for part in pair)):
            errors.append(f"AGENCY_DOMAINS contains malformed entry: {pair!r}")
            continue
        fragments.append(pair[0])
    errors.extend(_validate_string_list(fragments, "AGENCY_DOMAINS fragments"))
    # first match wins, so one fragment inside another would shadow it
    for index, fragment in enumerate(fragments):
        for other in fragments[index + 1:]:
            if fragment in other or other in fragment:
                errors.append(f"AGENCY_DOMAINS fragments overlap: {fragment!r} / {other!r}")
    return errors


def validate_keywords() -> list[str]:
    errors: list[str] = []

    for name in STRING_LISTS:
        if not hasattr(keywords, name):
            errors.append(f"Missing {name} in keywords.py.")
            continue
        values = getattr(keywords, name)
        if not isinstance(values, list):
            errors.append(f"{name} must be a list.")
            continue
        errors.extend(_validate_string_list(values, name))

    if not hasattr(keywords, "AGENCY_DOMAINS"):
        errors.append("Missing AGENCY_DOMAINS in keywords.py.")
    else:
        errors.extend(_validate_agency_domains(keywords.AGENCY_DOMAINS))

    return errors


def main() -> int:
    errors = validate_keywords()
    if errors:
        print("Keyword validation failed:")
        for err in errors:
            print(f"- {err}")
        return 1
    print("Keyword validation passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
