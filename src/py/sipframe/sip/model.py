from dataclasses import dataclass
from enum import Enum
from ipaddress import IPv4Address, IPv6Address
from typing import (
	Any,
	Iterable,
	Iterator,
	Mapping,
	NamedTuple,
	TypeAlias,
	TypeVar,
)

from ..utils.io import DEFAULT_ENCODING, EOL, TSink, asBytes, emit, isLine, isToken
from .headers import ContentLength, TypedHeader, typed
from .status import reason

H = TypeVar("H", bound=TypedHeader[Any])

PROTOCOL: str = "SIP"

# -----------------------------------------------------------------------------
#
# DATA MODEL
#
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class Version:
	"""The protocol version, as in `SIP/2.0`. Both numbers fit in a byte."""

	major: int = 2
	minor: int = 0

	def __post_init__(self) -> None:
		for n in (self.major, self.minor):
			if not (0 <= n <= 255):
				raise ValueError(f"Version number out of range 0-255: {n}")

	def __str__(self) -> str:
		return f"{PROTOCOL}/{self.major}.{self.minor}"


THost: TypeAlias = IPv4Address | IPv6Address | str


class SIPURI(NamedTuple):
	"""The structure of a request target. The parser keeps targets opaque, so
	this is only ever built by callers."""

	host: THost
	user: str | None = None
	password: str | None = None
	port: int | None = None

	def __str__(self) -> str:
		host: str = (
			f"[{self.host}]" if isinstance(self.host, IPv6Address) else str(self.host)
		)
		auth: str = (
			""
			if self.user is None
			else (
				f"{self.user}@"
				if self.password is None
				else f"{self.user}:{self.password}@"
			)
		)
		port: str = "" if self.port is None else f":{self.port}"
		return f"sip:{auth}{host}{port}"


class SIPParseStatus(Enum):
	"""Outcome of a parsing attempt."""

	Complete = 0
	Incomplete = 1  # More bytes are needed
	Mismatch = 2  # The grammar backtracked, more bytes won't help
	Malformed = 3  # The bytes can't be a message, the stream is broken


# -----------------------------------------------------------------------------
#
# ERRORS
#
# -----------------------------------------------------------------------------


class SIPError(Exception):
	def __init__(self, message: str):
		super().__init__(message)
		self.message: str = message


class SIPFramingError(SIPError):
	"""The incoming stream can't be framed, the connection must be closed."""

	def __init__(self, message: str, reason: str | None = None, offset: int = 0):
		super().__init__(message)
		self.reason: str | None = reason
		self.offset: int = offset


class SIPOversizedError(SIPFramingError):
	"""The buffer grew past the limit without yielding a complete message."""

	def __init__(self, size: int, limit: int):
		super().__init__(
			f"Buffered {size} bytes without a complete message (limit is {limit})",
			reason="oversized",
			offset=size,
		)
		self.size: int = size
		self.limit: int = limit


class SIPEncodeError(SIPError):
	"""Raised when asked to encode a message kind that isn't supported."""


# -----------------------------------------------------------------------------
#
# HEADERS
#
# -----------------------------------------------------------------------------


class SIPHeaders:
	"""An ordered, case-insensitive, multi-valued mapping of header names to
	text values. Names are stored lower-cased."""

	__slots__ = ["_headers"]

	def __init__(
		self, items: Mapping[str, str] | Iterable[tuple[str, str]] | None = None
	) -> None:
		self._headers: dict[str, list[str]] = {}
		if items is not None:
			for k, v in items.items() if isinstance(items, Mapping) else items:
				self.add(k, v)

	def get(self, name: str, default: str | None = None) -> str | None:
		values = self._headers.get(name.lower())
		return values[0] if values else default

	def getAll(self, name: str) -> list[str]:
		return list(self._headers.get(name.lower(), ()))

	@staticmethod
	def Key(name: str, value: str) -> str:
		"""Returns the key for the header, raising a `ValueError` when the
		name or value can't be written as a single header line."""
		if not isToken(name):
			raise ValueError(f"Invalid header name: {name!r}")
		if not isLine(value):
			raise ValueError(f"Header value contains a line terminator: {value!r}")
		return name.lower()

	def set(self, name: str, value: str) -> "SIPHeaders":
		"""Replaces all the values of the header, keeping its position."""
		self._headers[self.Key(name, value)] = [value]
		return self

	def add(self, name: str, value: str) -> "SIPHeaders":
		self._headers.setdefault(self.Key(name, value), []).append(value)
		return self

	def remove(self, name: str) -> list[str]:
		return self._headers.pop(name.lower(), [])

	def has(self, name: str) -> bool:
		return name.lower() in self._headers

	def typed(self, cls: type[H]) -> H | None:
		return typed(self, cls)

	def items(self) -> Iterator[tuple[str, str]]:
		"""Iterates on `(name, value)` pairs, one per value."""
		for k, values in self._headers.items():
			for v in values:
				yield k, v

	def clear(self) -> None:
		self._headers.clear()

	def __contains__(self, name: object) -> bool:
		return isinstance(name, str) and self.has(name)

	def __getitem__(self, name: str) -> str:
		values = self._headers.get(name.lower())
		if not values:
			raise KeyError(name)
		return values[0]

	def __setitem__(self, name: str, value: str) -> None:
		self.set(name, value)

	def __delitem__(self, name: str) -> None:
		if not self.remove(name):
			raise KeyError(name)

	def __iter__(self) -> Iterator[str]:
		return iter(self._headers)

	def __len__(self) -> int:
		return len(self._headers)

	def __eq__(self, other: object) -> bool:
		if isinstance(other, SIPHeaders):
			return self._headers == other._headers
		elif isinstance(other, Mapping):
			return self._headers == SIPHeaders(other)._headers
		else:
			return NotImplemented

	def __str__(self) -> str:
		return f"SIPHeaders({dict(self.items())})"

	__repr__ = __str__


# -----------------------------------------------------------------------------
#
# REQUEST
#
# -----------------------------------------------------------------------------


class SIPRequest:
	"""A request, as parsed from the wire. The `uri` is the request target
	kept as-is."""

	__slots__ = ["method", "uri", "version", "headers", "body"]

	def __init__(
		self,
		method: str,
		uri: str,
		version: Version | None = None,
		headers: SIPHeaders | Mapping[str, str] | None = None,
		body: bytes = b"",
	):
		self.method: str = method
		self.uri: str = uri
		self.version: Version = Version() if version is None else version
		self.headers: SIPHeaders = (
			headers if isinstance(headers, SIPHeaders) else SIPHeaders(headers)
		)
		self.body: bytes = body

	def header(self, name: str) -> str | None:
		return self.headers.get(name)

	def typed(self, cls: type[H]) -> H | None:
		return typed(self.headers, cls)

	@property
	def contentLength(self) -> int | None:
		h = typed(self.headers, ContentLength)
		return None if h is None else h.value

	def __eq__(self, other: object) -> bool:
		if not isinstance(other, SIPRequest):
			return NotImplemented
		return (
			self.method == other.method
			and self.uri == other.uri
			and self.version == other.version
			and self.headers == other.headers
			and self.body == other.body
		)

	def __str__(self) -> str:
		return f"Request({self.method} {self.uri} {self.version} {self.headers} {len(self.body)}b)"

	__repr__ = __str__


# -----------------------------------------------------------------------------
#
# RESPONSE
#
# -----------------------------------------------------------------------------


class SIPResponse:
	"""A response, built by the caller and rendered with `write`. The
	`content-length` header is always recomputed from the body."""

	__slots__ = ["version", "status", "headers", "body"]

	def __init__(
		self,
		status: int,
		headers: SIPHeaders | Mapping[str, str] | None = None,
		body: bytes | str = b"",
		version: Version | None = None,
	):
		if not (0 <= status <= 0xFFFF):
			raise ValueError(f"Status code out of range 0-65535: {status}")
		self.version: Version = Version() if version is None else version
		self.status: int = status
		self.headers: SIPHeaders = (
			headers if isinstance(headers, SIPHeaders) else SIPHeaders(headers)
		)
		self.body: bytes = asBytes(body)

	@property
	def message(self) -> str | None:
		"""The reason phrase, when the status code is a known one."""
		return reason(self.status)

	def header(self, name: str) -> str | None:
		return self.headers.get(name)

	def typed(self, cls: type[H]) -> H | None:
		return typed(self.headers, cls)

	def statusLine(self) -> str:
		message = self.message
		return (
			f"{self.version} {self.status}"
			if message is None
			else f"{self.version} {self.status} {message}"
		)

	def writeHead(self, out: TSink) -> None:
		emit(out, self.statusLine().encode(DEFAULT_ENCODING) + EOL)
		for k, v in self.headers.items():
			# Any stored length is stale, it's recomputed from the body. The
			# compact `l` form is dropped too, not only `content-length`.
			if k in ContentLength.Names:
				continue
			emit(out, f"{k}: {v}".encode(DEFAULT_ENCODING) + EOL)
		emit(out, f"{ContentLength.Name()}: {len(self.body)}".encode("ascii") + EOL)
		emit(out, EOL)

	def write(self, out: TSink) -> None:
		"""Writes the response to `out`, one write per line and one for the
		body. Errors raised by `out` abort the rendering."""
		self.writeHead(out)
		if self.body:
			emit(out, self.body)

	def head(self) -> bytes:
		"""Serializes the status line and headers, including the blank line."""
		res = bytearray()
		self.writeHead(res)
		return bytes(res)

	def encode(self) -> bytes:
		res = bytearray()
		self.write(res)
		return bytes(res)

	def __eq__(self, other: object) -> bool:
		if not isinstance(other, SIPResponse):
			return NotImplemented
		return (
			self.version == other.version
			and self.status == other.status
			and self.headers == other.headers
			and self.body == other.body
		)

	def __str__(self) -> str:
		return f"Response({self.version} {self.status} {self.message} {self.headers} {len(self.body)}b)"

	__repr__ = __str__


SIPMessage: TypeAlias = SIPRequest | SIPResponse

# EOF
