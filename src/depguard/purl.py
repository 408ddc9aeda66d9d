"""
Package URL (PURL) parsing for depguard.

A package URL identifies a package by ecosystem, namespace, name and version:

    pkg:type/namespace/name@version#subpath?qualifiers

The parser here is deliberately lenient. Real-world data from dependency
graphs contains PURLs that break the package-url spec (Go module paths with
extra slashes, percent-encoded namespace separators), and we still want to
match those against deny lists and license exceptions. So the parser never
raises: problems are reported through the ``error`` field, and every field
other than ``type`` may be None.

Subpaths and qualifiers are accepted but discarded.
"""

import re
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, Field


PURL_SCHEME = "pkg:"

ERROR_MISSING_SCHEME = 'package-url must start with "pkg:"'
ERROR_MISSING_TYPE = "package-url must contain a type"
ERROR_MISSING_NAME = "package-url must contain a namespace or name"

_TYPE_PATTERN = re.compile(r"pkg:([a-zA-Z0-9._+\-]+)/")


class PackageURL(BaseModel):
    """
    A parsed package URL.

    Other than ``type``, all fields are nullable. ``name`` is None for deny
    groups such as ``pkg:npm/@scope/``.

    Attributes:
        type: Package ecosystem (e.g. "npm", "maven")
        namespace: Percent-decoded namespace, if any
        name: Percent-decoded package name, if any
        version: Percent-decoded version, if any
        original: The raw string that was parsed
        error: Why the string is not a usable PURL, or None
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: str = Field(default="", description="Package ecosystem")
    namespace: str | None = Field(default=None, description="Package namespace")
    name: str | None = Field(default=None, description="Package name")
    version: str | None = Field(default=None, description="Package version")
    original: str = Field(..., description="The raw package URL")
    error: str | None = Field(default=None, description="Parse error, if any")

    @property
    def full_name(self) -> str:
        """Namespace and name joined with "/", or whichever one is present."""
        if self.namespace and self.name:
            return f"{self.namespace}/{self.name}"
        return self.namespace or self.name or ""

    @property
    def is_valid(self) -> bool:
        return self.error is None

    def __str__(self) -> str:
        return self.original


def parse_purl(raw: str) -> PackageURL:
    """
    Parse a package URL string.

    Never raises. If the string is unusable, the returned PackageURL has a
    non-null ``error`` and whatever fields could be extracted before the
    problem was found.

    Args:
        raw: The package URL to parse

    Returns:
        The parsed PackageURL

    Examples:
        >>> parse_purl("pkg:npm/@scope/name@1.0.0").full_name
        '@scope/name'
        >>> parse_purl("pkg:npm/%40scope%2Fname").name
        '@scope/name'
    """
    fields: dict[str, str | None] = {"type": ""}

    if not raw.startswith(PURL_SCHEME):
        return PackageURL(original=raw, error=ERROR_MISSING_SCHEME, **fields)

    type_match = _TYPE_PATTERN.match(raw)
    if type_match is None:
        return PackageURL(original=raw, error=ERROR_MISSING_TYPE, **fields)
    fields["type"] = type_match.group(1)

    segments = raw[type_match.end():].split("/")
    if len(segments) == 1:
        name_and_rest = segments[0]
    else:
        fields["namespace"] = _decode(segments[0]) or None
        # Go module paths put extra "/" inside the name.
        name_and_rest = "/".join(segments[1:])

    name, version = _split_name_version(name_and_rest)
    fields["name"] = name
    fields["version"] = version

    if fields.get("namespace") is None and name is None:
        return PackageURL(original=raw, error=ERROR_MISSING_NAME, **fields)

    return PackageURL(original=raw, **fields)


def purls_match(a: PackageURL, b: PackageURL) -> bool:
    """
    Check whether two package URLs refer to the same package.

    Types and full names are compared case-insensitively and versions are
    ignored. Comparing full names means that ``pkg:npm/%40scope%2Fname``
    (everything in ``name``) matches ``pkg:npm/%40scope/name`` (split into
    namespace and name).
    """
    if a.type.lower() != b.type.lower():
        return False
    return a.full_name.lower() == b.full_name.lower()


def _split_name_version(segment: str) -> tuple[str | None, str | None]:
    """Split ``name@version#subpath?qualifiers`` into decoded name and version."""
    head = re.split(r"[#?]", segment, maxsplit=1)[0]
    name, sep, version = head.partition("@")
    return _decode(name) or None, (_decode(version) or None) if sep else None


def _decode(value: str) -> str:
    return unquote(value)
