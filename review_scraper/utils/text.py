import re

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(value: str) -> str:
    """
    Collapses every run of whitespace (spaces, tabs, newlines) into a single
    space and strips both ends.
        "  Иван\n\t Петров " → "Иван Петров"
    """
    return _WHITESPACE_RE.sub(" ", value).strip()
