"""
Parsing and rendering of `Set-Cookie` header values.

Attributes are kept as received, name casing and order included, so that
everything other than `Path` and `Domain` is rendered back unchanged.
"""
from dataclasses import dataclass, replace
from typing import Optional

_TOKEN_CHARS = frozenset(
    "!#$%&'*+-.^_`|~"
    "0123456789"
    "abcdefghijklmnopqrstuvwxyz"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
)

Attribute = tuple[str, Optional[str]]


class CookieParseError(ValueError):
    pass


def is_token(text: str) -> bool:
    return bool(text) and all(ch in _TOKEN_CHARS for ch in text)


def is_cookie_value(text: str) -> bool:
    if len(text) > 1 and text[0] == '"' and text[-1] == '"':
        text = text[1:-1]
    return all(0x20 <= ord(ch) < 0x7F and ch not in '";\\' for ch in text)


def _is_attribute_text(text: str) -> bool:
    return all(0x20 <= ord(ch) < 0x7F and ch != ";" for ch in text)


@dataclass(frozen=True)
class Cookie:
    name: str
    value: str
    attributes: tuple[Attribute, ...] = ()

    def get(self, attribute: str) -> Optional[str]:
        # the last occurrence wins, as with user agents
        found = None
        for key, value in self.attributes:
            if key.lower() == attribute.lower():
                found = value if value is not None else ""
        return found

    @property
    def path(self) -> Optional[str]:
        return self.get("path")

    @property
    def domain(self) -> Optional[str]:
        return self.get("domain")

    def with_attribute(self, attribute: str, value: Optional[str]) -> "Cookie":
        """Return a copy with every occurrence of `attribute` set to `value`.

        A missing attribute is appended with the canonical name; a value of
        None or "" removes the attribute.
        """
        attributes = []
        seen = False
        for key, current in self.attributes:
            if key.lower() != attribute.lower():
                attributes.append((key, current))
                continue
            seen = True
            if value:
                attributes.append((key, value))
        if not seen and value:
            attributes.append((attribute, value))
        return replace(self, attributes=tuple(attributes))

    def with_path(self, path: Optional[str]) -> "Cookie":
        return self.with_attribute("Path", path)

    def with_domain(self, domain: Optional[str]) -> "Cookie":
        return self.with_attribute("Domain", domain)

    def render(self) -> str:
        parts = [f"{self.name}={self.value}"]
        for key, value in self.attributes:
            parts.append(key if value is None else f"{key}={value}")
        return "; ".join(parts)


def parse_set_cookie(header_value: str) -> Cookie:
    """Parse one Set-Cookie header value.

    Raises CookieParseError when the name/value pair is not a valid cookie.
    Attributes are not interpreted; empty segments are skipped.
    """
    segments = header_value.strip().split(";")
    pair = segments[0].strip()
    if "=" not in pair:
        raise CookieParseError(f"missing '=' in cookie pair {pair!r}")
    name, value = pair.split("=", 1)
    name = name.strip()
    value = value.strip()
    if not is_token(name):
        raise CookieParseError(f"invalid cookie name {name!r}")
    if not is_cookie_value(value):
        raise CookieParseError(f"invalid value for cookie {name!r}")

    attributes = []
    for segment in segments[1:]:
        segment = segment.strip()
        if not segment:
            continue
        if "=" in segment:
            key, attr_value = segment.split("=", 1)
            attributes.append((key.strip(), attr_value.strip()))
        else:
            attributes.append((segment, None))
    return Cookie(name=name, value=value, attributes=tuple(attributes))


def sanitize_path(path: str) -> str:
    return "".join(ch for ch in path if _is_attribute_text(ch))


def is_valid_domain(domain: str) -> bool:
    return bool(domain) and _is_attribute_text(domain) and not any(
        ch in domain for ch in " ,"
    )
