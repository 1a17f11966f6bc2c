# (c) Nelen & Schuurmans

import hashlib
import re
from typing import Any
from urllib.parse import parse_qsl
from urllib.parse import urlencode
from urllib.parse import urlsplit
from urllib.parse import urlunsplit

from .base.domain import BadRequest
from .base.domain import Json
from .base.domain import ValueObject

__all__ = [
    "CanonicalHasher",
    "DeduplicationContext",
    "DEFAULT_DEDUPLICATION_FIELDS",
    "MAX_DEDUPLICATION_FIELDS",
    "canonicalize_url",
]


DEFAULT_DEDUPLICATION_FIELDS = ("utm_source", "utm_medium", "utm_campaign", "ref")
MAX_DEDUPLICATION_FIELDS = 10
HASH_VERSION = "v2"

DEFAULT_PORTS = {"http": 80, "https": 443}


class DeduplicationContext(ValueObject):
    url: str
    metadata: Json = {}
    fields: list[str] | None = None
    hash: str


def canonicalize_url(url: str) -> str:
    """Normalize a URL so that trivially different spellings compare equal.

    Lowercases scheme and host, drops the default port and the fragment,
    collapses duplicate slashes in the path, drops a trailing slash (except
    for the root) and sorts the query parameters. Anything that does not
    parse as an absolute URL is returned unchanged.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return url
    if not parts.scheme or not parts.hostname:
        return url

    scheme = parts.scheme.lower()
    host = parts.hostname.lower()
    if ":" in host:
        host = f"[{host}]"
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        host = f"{host}:{port}"
    userinfo = parts.netloc.rpartition("@")[0]
    netloc = f"{userinfo}@{host}" if userinfo else host

    path = re.sub(r"/+", "/", parts.path) or "/"
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]

    query = urlencode(sorted(parse_qsl(parts.query, keep_blank_values=True)))
    return urlunsplit((scheme, netloc, path, query, ""))


def _format_number(value: int | float, precision: int | None = None) -> str:
    if isinstance(value, float):
        if precision is not None:
            value = round(value, precision)
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def serialize_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return _format_number(value)
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(serialize_value(x) for x in value) + "]"
    if isinstance(value, dict):
        return (
            "{"
            + ",".join(f"{k}:{serialize_value(value[k])}" for k in sorted(value))
            + "}"
        )
    return str(value)


def serialize_enhanced_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return " ".join(value.split())
    if isinstance(value, (int, float)):
        return _format_number(value, precision=10)
    if isinstance(value, (list, tuple)):
        items = sorted(serialize_enhanced_value(x) for x in value)
        return "[" + ",".join(items) + "]"
    if isinstance(value, dict):
        return (
            "{"
            + ",".join(
                f"{k}:{serialize_enhanced_value(value[k])}" for k in sorted(value)
            )
            + "}"
        )
    return str(value)


def canonicalize_value(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    if isinstance(value, (list, tuple)):
        return [canonicalize_value(x) for x in value]
    if isinstance(value, dict):
        return {k: canonicalize_value(value[k]) for k in sorted(value)}
    return value


def serialize_metadata(metadata: Json, enhanced: bool = False) -> str:
    serialize = serialize_enhanced_value if enhanced else serialize_value
    return ",".join(f"{k}:{serialize(metadata[k])}" for k in sorted(metadata))


class CanonicalHasher:
    """Deterministic SHA-256 fingerprints of a URL plus selected metadata.

    Two shorten-requests are considered the same when their fingerprints
    are equal. ``hash`` is the legacy (v1) form; ``canonical_hash`` also
    normalizes the URL and the metadata values and prefixes the input with
    a version marker, so the two never produce the same digest.
    """

    def hash(
        self, url: str, metadata: Json | None = None, fields: list[str] | None = None
    ) -> str:
        metadata = metadata or {}
        self._validate(url, metadata, fields)
        selected = self.extract_fields(metadata, fields)
        return self._digest(f"url:{url}|metadata:{serialize_metadata(selected)}")

    def canonical_hash(
        self, url: str, metadata: Json | None = None, fields: list[str] | None = None
    ) -> str:
        metadata = metadata or {}
        self._validate(url, metadata, fields)
        selected = {
            k: canonicalize_value(v)
            for (k, v) in self.extract_fields(metadata, fields).items()
        }
        return self._digest(
            f"{HASH_VERSION}|url:{canonicalize_url(url)}"
            f"|metadata:{serialize_metadata(selected, enhanced=True)}"
        )

    def context(
        self, url: str, metadata: Json | None = None, fields: list[str] | None = None
    ) -> DeduplicationContext:
        return DeduplicationContext(
            url=url,
            metadata=metadata or {},
            fields=fields,
            hash=self.hash(url, metadata, fields),
        )

    @staticmethod
    def compare(a: DeduplicationContext, b: DeduplicationContext) -> bool:
        return a.hash == b.hash

    @staticmethod
    def has_field(metadata: Json, field: str) -> bool:
        return metadata.get(field) is not None

    def has_any_field(self, metadata: Json, fields: list[str]) -> bool:
        return any(self.has_field(metadata, x) for x in fields)

    def extract_fields(self, metadata: Json, fields: list[str] | None = None) -> Json:
        """The subset of ``metadata`` that takes part in the fingerprint.

        Explicit fields win; otherwise the default (utm) fields that are
        present; otherwise every non-null key.
        """
        if fields:
            names = [x for x in fields if self.has_field(metadata, x)]
        else:
            names = [
                x for x in DEFAULT_DEDUPLICATION_FIELDS if self.has_field(metadata, x)
            ] or [x for x in metadata if self.has_field(metadata, x)]
        return {x: metadata[x] for x in names}

    @staticmethod
    def default_fields() -> list[str]:
        return list(DEFAULT_DEDUPLICATION_FIELDS)

    @staticmethod
    def is_within_field_limit(fields: list[str]) -> bool:
        return len(fields) <= MAX_DEDUPLICATION_FIELDS

    def _validate(self, url: str, metadata: Json, fields: list[str] | None) -> None:
        if not url or not isinstance(url, str):
            raise BadRequest("URL must be a non-empty string")
        if not isinstance(metadata, dict):
            raise BadRequest("Metadata must be an object")
        if fields is not None and not (
            0 < len(fields) <= MAX_DEDUPLICATION_FIELDS
            and all(isinstance(x, str) and x for x in fields)
        ):
            raise BadRequest(
                f"Too many deduplication fields. Maximum allowed: "
                f"{MAX_DEDUPLICATION_FIELDS}"
            )

    @staticmethod
    def _digest(value: str) -> str:
        return hashlib.sha256(value.encode("utf-8")).hexdigest()
