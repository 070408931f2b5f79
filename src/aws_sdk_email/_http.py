# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from functools import cached_property
from urllib.parse import urlsplit, urlunsplit

from .exceptions import ConfigurationError

DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}


class Field:
    """A name-value pair representing a single header in an HTTP request or response.

    All field names are case insensitive and case-variance must be treated as
    equivalent. Names are preserved as given for transmission.
    """

    def __init__(self, *, name: str, values: Iterable[str] | None = None):
        self.name = name
        self.values: list[str] = list(values) if values is not None else []

    def add(self, value: str) -> None:
        """Append a value to a field."""
        self.values.append(value)

    def set(self, values: list[str]) -> None:
        """Overwrite existing field values."""
        self.values = values

    def as_string(self, delimiter: str = ",") -> str:
        """Get delimited string of all values.

        If the ``Field`` has zero values, the empty string is returned. If the ``Field``
        has exactly one value, the value is returned unmodified. Otherwise values that
        contain commas or double quotes are quoted and escaped before joining.
        """
        value_count = len(self.values)
        if value_count == 0:
            return ""
        if value_count == 1:
            return self.values[0]
        return delimiter.join(quote_and_escape_field_value(val) for val in self.values)

    def as_tuples(self) -> list[tuple[str, str]]:
        """Get list of ``name``, ``value`` tuples where each tuple represents one
        value."""
        return [(self.name, val) for val in self.values]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Field):
            return False
        return self.name == other.name and self.values == other.values

    def __repr__(self) -> str:
        return f"Field(name={self.name!r}, values={self.values!r})"


class Fields:
    def __init__(self, initial: Iterable[Field] | None = None):
        """Collection of header entries mapped by case-insensitive name.

        :param initial: Initial list of ``Field`` objects. Names must be unique after
            normalization.
        """
        self.entries: OrderedDict[str, Field] = OrderedDict()
        for fld in initial or ():
            key = self._normalize_field_name(fld.name)
            if key in self.entries:
                raise ValueError(
                    "Field names of the initial list of fields must be unique. "
                    f"{fld.name!r} appears more than once."
                )
            self.entries[key] = fld

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str]) -> Fields:
        """Build a collection from a plain header mapping.

        Names that differ only in case are merged into one multi-valued field.
        """
        return tuples_to_fields(headers.items())

    def set_field(self, field: Field) -> None:
        """Set or replace the entry for ``field.name``."""
        self.entries[self._normalize_field_name(field.name)] = field

    def get(self, key: str, default: Field | None = None) -> Field | None:
        return self[key] if key in self else default

    def get_value(self, key: str) -> str | None:
        """The field's values as a single string, or ``None`` if absent."""
        fld = self.get(key)
        return None if fld is None else fld.as_string()

    def to_dict(self) -> dict[str, str]:
        """Flatten into a ``{name: value}`` mapping, preserving name case."""
        return {fld.name: fld.as_string() for fld in self}

    def __getitem__(self, name: str) -> Field:
        return self.entries[self._normalize_field_name(name)]

    def __delitem__(self, name: str) -> None:
        del self.entries[self._normalize_field_name(name)]

    def _normalize_field_name(self, name: str) -> str:
        return name.lower()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fields):
            return False
        return self.entries == other.entries

    def __iter__(self) -> Iterator[Field]:
        yield from self.entries.values()

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"Fields({list(self.entries.values())})"

    def __contains__(self, key: str) -> bool:
        return self._normalize_field_name(key) in self.entries


def tuples_to_fields(tuples: Iterable[tuple[str, str]]) -> Fields:
    """Convert ``(name, value)`` pairs to a :py:class:`Fields` collection.

    Repeated names become multi-valued fields.
    """
    fields = Fields()
    for name, value in tuples:
        if name in fields:
            fields[name].add(value)
        else:
            fields.set_field(Field(name=name, values=[value]))
    return fields


@dataclass(kw_only=True, frozen=True)
class URI:
    """Universal Resource Identifier, target location for an :py:class:`HTTPRequest`."""

    scheme: str = "https"
    """For example ``http`` or ``https``."""

    host: str
    """The hostname, for example ``email.us-east-1.amazonaws.com``."""

    port: int | None = None
    """An explicit port number."""

    path: str | None = None
    """Path component of the URI."""

    query: str | None = None
    """Query component of the URI as string."""

    @classmethod
    def from_string(cls, url: str) -> URI:
        """Parse an absolute ``http`` or ``https`` URL.

        :raises ConfigurationError: If the URL has no host or an unsupported scheme.
        """
        parts = urlsplit(url)
        if parts.scheme not in DEFAULT_PORTS or not parts.hostname:
            raise ConfigurationError(f"Expected an absolute http(s) URL, got {url!r}")
        return cls(
            scheme=parts.scheme,
            host=parts.hostname,
            port=parts.port,
            path=parts.path or None,
            query=parts.query or None,
        )

    @property
    def netloc(self) -> str:
        """``{host}:{port}``, with the port only included if set."""
        return self._netloc

    # cached_property allows setting, so keep it behind a read-only property.
    @cached_property
    def _netloc(self) -> str:
        if self.port is not None:
            return f"{self.host}:{self.port}"
        return self.host

    @property
    def authority(self) -> str:
        """The netloc with a port equal to the scheme's default dropped."""
        if self.port is not None and DEFAULT_PORTS.get(self.scheme) == self.port:
            return self.host
        return self.netloc

    def build(self) -> str:
        """Construct the URI string representation."""
        return urlunsplit(
            (self.scheme, self.netloc, self.path or "", self.query or "", "")
        )


@dataclass(kw_only=True)
class HTTPRequest:
    """An outbound HTTP request with a fully buffered body."""

    method: str
    destination: URI
    fields: Fields = field(default_factory=Fields)
    body: bytes = b""


@dataclass(kw_only=True)
class HTTPResponse:
    """An inbound HTTP response with a fully buffered body."""

    status: int
    fields: Fields = field(default_factory=Fields)
    body: bytes = b""
    reason: str | None = None


def quote_and_escape_field_value(value: str) -> str:
    """Escapes and quotes a single :class:`Field` value if necessary.

    See :func:`Field.as_string` for quoting and escaping logic.
    """
    chars_to_quote = (",", '"')
    if any(char in chars_to_quote for char in value):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    else:
        return value
