"""Generic URL utilities — parsing, query handling and canonical serialization."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

# Schemes that always carry an authority and a hierarchical path
SPECIAL_SCHEMES = frozenset({"http", "https", "ftp", "ws", "wss"})

_WHITESPACE = re.compile(r"\s")


class InvalidURLError(ValueError):
    """Raised when a string does not parse as an absolute URL."""


@dataclass(frozen=True)
class URLValue:
    scheme: str
    netloc: str
    path: str
    query: tuple[tuple[str, str], ...] = ()
    fragment: str | None = None
    # Query text as written; None once a pair has been removed
    raw_query: str | None = field(default=None, compare=False, repr=False)

    @property
    def hostname(self) -> str:
        return urlsplit(f"//{self.netloc}").hostname or ""

    def get(self, key: str) -> str | None:
        """Return the first value for *key*, like URLSearchParams.get()."""
        for k, v in self.query:
            if k == key:
                return v
        return None

    def keys(self) -> list[str]:
        """Distinct query keys in first-seen order."""
        return list(dict.fromkeys(k for k, _ in self.query))

    def without_keys(self, keys: set[str]) -> URLValue:
        return replace(self, query=tuple((k, v) for k, v in self.query if k not in keys), raw_query=None)

    def with_fragment(self, fragment: str | None) -> URLValue:
        return replace(self, fragment=fragment)

    def __str__(self) -> str:
        return serialize_url(self)


def _lower_netloc(netloc: str) -> str:
    userinfo, sep, hostport = netloc.rpartition("@")
    return f"{userinfo}{sep}{hostport.lower()}"


def _quote_whitespace(text: str) -> str:
    return _WHITESPACE.sub(lambda m: quote(m.group()), text)


def parse_url(raw: str) -> URLValue:
    """Parse *raw* as an absolute URL. Raises InvalidURLError.

    Whitespace inside the path, query or fragment is percent-encoded;
    whitespace in the host is an error.
    """
    if not raw:
        raise InvalidURLError("empty URL")
    text = raw.strip()
    try:
        parts = urlsplit(text)
        # Accessing .port validates it
        parts.port
    except ValueError as exc:
        raise InvalidURLError(str(exc)) from exc

    scheme = parts.scheme.lower()
    if not scheme:
        raise InvalidURLError(f"no scheme: {text!r}")
    if _WHITESPACE.search(parts.netloc):
        raise InvalidURLError(f"whitespace in host: {text!r}")

    netloc = _lower_netloc(parts.netloc)
    path = _quote_whitespace(parts.path)
    if scheme in SPECIAL_SCHEMES:
        if not parts.hostname:
            raise InvalidURLError(f"no host: {text!r}")
        path = path or "/"

    query = _quote_whitespace(parts.query)
    return URLValue(
        scheme=scheme,
        netloc=netloc,
        path=path,
        query=parse_query(query),
        fragment=_quote_whitespace(parts.fragment) if "#" in text else None,
        raw_query=query,
    )


def parse_query(query: str) -> tuple[tuple[str, str], ...]:
    """Parse a query string into ordered (key, value) pairs, keeping blanks."""
    if not query:
        return ()
    return tuple(parse_qsl(query, keep_blank_values=True))


def encode_query(pairs: tuple[tuple[str, str], ...] | list[tuple[str, str]]) -> str:
    """Form-encode pairs in insertion order. Empty input gives an empty string."""
    return urlencode(list(pairs)) if pairs else ""


def serialize_url(url: URLValue) -> str:
    """Canonical string form: form-encoded query, no dangling '?' or '#'."""
    return urlunsplit((url.scheme, url.netloc, url.path, encode_query(url.query), url.fragment or ""))


def href(url: URLValue) -> str:
    """Text form for pattern matching.

    Keeps the query exactly as written until a pair is removed, then falls
    back to the form-encoded query.
    """
    query = url.raw_query if url.raw_query is not None else encode_query(url.query)
    return urlunsplit((url.scheme, url.netloc, url.path, query, url.fragment or ""))


def drop_fragment(raw: str) -> str:
    """Return *raw* without its fragment, or unchanged if it does not parse."""
    try:
        url = parse_url(raw)
    except InvalidURLError:
        return raw
    return serialize_url(url.with_fragment(None))
