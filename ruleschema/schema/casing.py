"""Key case conversion used by `camel_case()` / `constant_case()` objects."""

import re

# Acronyms, capitalised words, lower-case runs, upper-case runs, digit runs
_WORDS = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")


def words(key: str) -> list[str]:
    return _WORDS.findall(key)


def camel_case(key: str) -> str:
    """``CON_STAT`` / ``CaseStatus`` / ``hi john`` -> ``conStat`` / ``caseStatus`` / ``hiJohn``."""
    parts = words(key)
    if not parts:
        return key
    return parts[0].lower() + "".join(part.capitalize() for part in parts[1:])


def constant_case(key: str) -> str:
    """``conStat`` / ``CaseStatus`` / ``hi john`` -> ``CON_STAT`` / ``CASE_STATUS`` / ``HI_JOHN``."""
    parts = words(key)
    if not parts:
        return key
    return "_".join(part.upper() for part in parts)
