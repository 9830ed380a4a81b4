from typing import NamedTuple, TypeAlias
from ..utils.io import CR, LF, TOKEN, isNewline, isSpace
from .headers import ContentLength, typed
from .model import SIPHeaders, SIPParseStatus, SIPRequest, Version

TBytes: TypeAlias = bytes | bytearray | memoryview

VERSION_PREFIX: bytes = b"SIP/"
VERSION_SEPARATOR: int = ord(".")
COLON: int = ord(":")
DIGITS: frozenset[int] = frozenset(b"0123456789")


class ParseResult(NamedTuple):
	"""The outcome of parsing a request. When complete, `offset` is the index
	of the first byte that wasn't consumed."""

	status: SIPParseStatus
	request: SIPRequest | None = None
	offset: int = 0
	start: int = 0
	reason: str | None = None

	@property
	def consumed(self) -> int:
		return self.offset - self.start if self.request else 0

	def remaining(self, data: TBytes) -> bytes:
		"""Returns the unconsumed suffix of `data`."""
		return bytes(data[self.offset :]) if self.request else bytes(data[self.start :])


class ParseStop(Exception):
	"""Interrupts the parsing, the status telling why."""

	def __init__(self, status: SIPParseStatus, reason: str, offset: int):
		super().__init__(reason)
		self.status: SIPParseStatus = status
		self.reason: str = reason
		self.offset: int = offset


class RequestParser:
	"""Parses one request out of a byte slice, starting at a given offset.
	The parser is stateless across calls: running out of bytes stops it with
	an `Incomplete` status, and the whole request is parsed again once more
	bytes are available."""

	__slots__ = ["data", "size", "offset"]

	def __init__(self, data: TBytes, start: int = 0) -> None:
		self.data: TBytes = data
		self.size: int = len(data)
		self.offset: int = start

	# =========================================================================
	# SIGNALS
	# =========================================================================

	def incomplete(self, reason: str) -> ParseStop:
		return ParseStop(SIPParseStatus.Incomplete, reason, self.offset)

	def malformed(self, reason: str) -> ParseStop:
		return ParseStop(SIPParseStatus.Malformed, reason, self.offset)

	def mismatch(self, reason: str) -> ParseStop:
		return ParseStop(SIPParseStatus.Mismatch, reason, self.offset)

	# =========================================================================
	# TERMINALS
	# =========================================================================

	def text(self, start: int, end: int, what: str) -> str:
		try:
			return bytes(self.data[start:end]).decode("utf8")
		except UnicodeDecodeError as e:
			raise self.malformed(f"Undecodable {what}") from e

	def eol(self) -> bool:
		"""Consumes one line terminator (CRLF, CR or LF), returning `False`
		when there is none at the current offset."""
		if self.offset >= self.size:
			raise self.incomplete("Expected line terminator")
		ch = self.data[self.offset]
		if ch == CR:
			# A trailing CR may be the first half of a CRLF
			if self.offset + 1 >= self.size:
				raise self.incomplete("Expected line terminator")
			self.offset += 2 if self.data[self.offset + 1] == LF else 1
			return True
		elif ch == LF:
			self.offset += 1
			return True
		else:
			return False

	def spaces(self, required: bool = True) -> int:
		"""Consumes a run of spaces and tabs, returning its length."""
		o = self.offset
		while o < self.size and isSpace(self.data[o]):
			o += 1
		if o >= self.size:
			# There may be more spaces to come
			raise self.incomplete("Expected whitespace")
		n = o - self.offset
		if required and not n:
			raise self.malformed("Expected whitespace")
		self.offset = o
		return n

	def token(self, what: str) -> str:
		"""Reads a non-empty run of bytes up to the next whitespace."""
		o = self.offset
		while o < self.size and not isSpace(self.data[o]):
			if isNewline(self.data[o]):
				self.offset = o
				raise self.malformed(f"Unexpected line terminator in {what}")
			o += 1
		if o >= self.size:
			raise self.incomplete(f"Expected whitespace after {what}")
		if o == self.offset:
			raise self.malformed(f"Empty {what}")
		res = self.text(self.offset, o, what)
		self.offset = o
		return res

	def digits(self, what: str) -> int:
		o = self.offset
		while o < self.size and self.data[o] in DIGITS:
			o += 1
		if o >= self.size:
			raise self.incomplete(f"Expected end of {what}")
		if o == self.offset:
			raise self.malformed(f"Expected digits for {what}")
		value = int(bytes(self.data[self.offset : o]))
		if value > 255:
			raise self.malformed(f"Version {what} is out of range: {value}")
		self.offset = o
		return value

	# =========================================================================
	# RULES
	# =========================================================================

	def skipEmptyLines(self) -> int:
		n = 0
		while True:
			if self.offset >= self.size:
				raise self.incomplete("Expected request line")
			elif isNewline(self.data[self.offset]):
				self.eol()
				n += 1
			else:
				return n

	def version(self) -> Version:
		available = min(len(VERSION_PREFIX), self.size - self.offset)
		prefix = bytes(self.data[self.offset : self.offset + available])
		if prefix != VERSION_PREFIX[:available]:
			raise self.malformed("Expected protocol version")
		elif available < len(VERSION_PREFIX):
			raise self.incomplete("Expected protocol version")
		self.offset += available
		major = self.digits("major")
		if self.data[self.offset] != VERSION_SEPARATOR:
			raise self.malformed("Expected version separator")
		self.offset += 1
		minor = self.digits("minor")
		return Version(major, minor)

	def requestLine(self) -> tuple[str, str, Version]:
		self.skipEmptyLines()
		if isSpace(self.data[self.offset]):
			# NOTE: Here the grammar backtracks rather than fails, so this
			# is not reported as malformed.
			raise self.mismatch("Expected method")
		method = self.token("method")
		self.spaces()
		uri = self.token("target")
		self.spaces()
		version = self.version()
		if not self.eol():
			raise self.malformed("Expected line terminator after version")
		return method, uri, version

	def header(self) -> tuple[str, str]:
		"""Parses a `name [ws] : [ws] value` header line, up to (but not
		including) its line terminator."""
		start = o = self.offset
		while o < self.size and self.data[o] != COLON and not isSpace(self.data[o]):
			if isNewline(self.data[o]):
				self.offset = o
				raise self.malformed("Expected colon in header line")
			o += 1
		if o >= self.size:
			raise self.incomplete("Expected header name")
		if o == start:
			raise self.malformed("Empty header name")
		if any(_ not in TOKEN for _ in self.data[start:o]):
			raise self.malformed("Invalid header name")
		name = bytes(self.data[start:o]).decode("ascii").lower()
		self.offset = o
		self.spaces(False)
		if self.data[self.offset] != COLON:
			raise self.malformed("Expected colon in header line")
		self.offset += 1
		self.spaces(False)
		o = self.offset
		while o < self.size and not isNewline(self.data[o]):
			o += 1
		if o >= self.size:
			raise self.incomplete("Expected end of header value")
		value = self.text(self.offset, o, "header value")
		self.offset = o
		return name, value

	def headers(self) -> SIPHeaders:
		headers = SIPHeaders()
		# An empty line ends the headers, and is consumed
		while not self.eol():
			name, value = self.header()
			self.eol()
			# A repeated header replaces the previous value
			headers.set(name, value)
		return headers

	def body(self, headers: SIPHeaders) -> bytes:
		length = typed(headers, ContentLength)
		if length is None:
			# Without a length, the body is whatever is left
			end = self.size
		else:
			end = self.offset + length.value
			if end > self.size:
				raise self.incomplete("Expected more body bytes")
		res = bytes(self.data[self.offset : end])
		self.offset = end
		return res

	def request(self) -> SIPRequest:
		method, uri, version = self.requestLine()
		headers = self.headers()
		body = self.body(headers)
		return SIPRequest(method, uri, version, headers, body)


def parseRequest(data: TBytes, start: int = 0) -> ParseResult:
	"""Parses a request from `data` starting at `start`. The result status
	tells if the request is complete, needs more bytes, or can't be parsed."""
	parser = RequestParser(data, start)
	try:
		request = parser.request()
	except ParseStop as e:
		return ParseResult(e.status, None, e.offset, start, e.reason)
	return ParseResult(SIPParseStatus.Complete, request, parser.offset, start)


def parseHeader(data: TBytes, start: int = 0) -> tuple[str, str, int] | None:
	"""Parses a single header line, returning the lower-cased name, the value
	and the offset of the line terminator. Returns `None` when the line is
	incomplete, and raises a `ValueError` when malformed."""
	parser = RequestParser(data, start)
	try:
		name, value = parser.header()
	except ParseStop as e:
		if e.status is SIPParseStatus.Incomplete:
			return None
		raise ValueError(e.reason) from e
	return name, value, parser.offset


# EOF
