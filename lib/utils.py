import posixpath
from typing import Dict, List, Tuple


# a subscription without a name is named after the last path segment of its url
def derive_name(url: str) -> str:
    if not url:
        return ""
    base = url.split("?", 1)[0].split("#", 1)[0]
    return posixpath.basename(base.rstrip("/"))


def parse_header(header: str) -> Tuple[str, str]:
    """Split a `key=value` header spec, a missing value means an empty header."""
    key, _, value = header.partition("=")
    return key.strip(), value


def parse_headers(headers: List[str]) -> Dict[str, str]:
    parsed: Dict[str, str] = {}
    for header in headers or []:
        key, value = parse_header(header)
        if key:
            parsed[key] = value
    return parsed
