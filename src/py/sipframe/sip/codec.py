from typing import Iterator
from .. import config
from ..utils.logging import LogLevel, debug, error, event, info, logged, warning
from ..utils.io import TSink
from .model import (
	SIPEncodeError,
	SIPFramingError,
	SIPMessage,
	SIPOversizedError,
	SIPParseStatus,
	SIPRequest,
	SIPResponse,
)
from .parser import parseRequest

# --
# == Framing
#
# The codec turns a growing buffer of bytes into messages. Each call to
# `decode` parses the buffer from its start: when there isn't enough data,
# the buffer is left untouched and `None` is returned, otherwise the bytes
# of the message are removed from the head of the buffer. Bytes following
# the message (pipelined messages) stay in the buffer.


class SIPCodec:
	"""Decodes requests from and encodes responses to byte buffers. A codec
	holds no per-connection state besides its configuration."""

	__slots__ = ["maxSize"]

	def __init__(self, maxSize: int | None = config.MAX_SIZE) -> None:
		if maxSize is not None and maxSize < 0:
			raise ValueError(f"Maximum size must be positive, got: {maxSize}")
		# A zero size disables the bound
		self.maxSize: int | None = maxSize or None

	def decode(self, buffer: bytearray) -> SIPMessage | None:
		"""Decodes one message from the head of `buffer`, returning `None`
		when more bytes are needed. Raises a `SIPFramingError` when the
		buffer can't be framed, after which the connection is unusable."""
		res = parseRequest(buffer)
		if res.status is SIPParseStatus.Complete and res.request is not None:
			del buffer[: res.consumed]
			if logged(LogLevel.Debug):
				debug(
					"Decoded request",
					Method=res.request.method,
					URI=res.request.uri,
					Consumed=res.consumed,
					Remaining=len(buffer),
				)
			return res.request
		elif res.status is SIPParseStatus.Malformed:
			error(
				"Malformed message",
				"SIPFramingError",
				Reason=res.reason,
				Offset=res.offset,
				Data=bytes(buffer[: res.offset + 1]),
			)
			raise SIPFramingError(
				f"Malformed message at offset {res.offset}: {res.reason}",
				reason=res.reason,
				offset=res.offset,
			)
		else:
			# Both incomplete and mismatched data are waiting for more bytes,
			# which the size bound limits.
			if self.maxSize is not None and len(buffer) > self.maxSize:
				warning(
					"Buffer exceeds maximum size",
					Size=len(buffer),
					Limit=self.maxSize,
					Reason=res.reason,
				)
				raise SIPOversizedError(len(buffer), self.maxSize)
			return None

	def encode(self, message: SIPMessage, buffer: TSink) -> None:
		"""Appends the serialized message to `buffer`. Only responses can
		be encoded."""
		if isinstance(message, SIPResponse):
			message.write(buffer)
		elif isinstance(message, SIPRequest):
			raise SIPEncodeError("Encoding requests is not supported")
		else:
			raise ValueError(f"Unsupported message: {message}")


class SIPFramer:
	"""Owns the buffer of a single connection, and yields the messages
	decoded from the chunks fed to it."""

	__slots__ = ["codec", "buffer", "isClosed"]

	def __init__(self, codec: SIPCodec | None = None) -> None:
		self.codec: SIPCodec = SIPCodec() if codec is None else codec
		self.buffer: bytearray = bytearray()
		self.isClosed: bool = False

	@property
	def pending(self) -> int:
		return len(self.buffer)

	def reset(self) -> "SIPFramer":
		if self.buffer or self.isClosed:
			info("Framer reset", Dropped=len(self.buffer), Closed=self.isClosed)
		self.buffer.clear()
		self.isClosed = False
		return self

	def feed(self, chunk: bytes) -> Iterator[SIPMessage]:
		"""Appends the chunk to the buffer and returns an iterator on the
		complete messages."""
		if self.isClosed:
			raise SIPFramingError("Framer is closed after a framing error")
		self.buffer += chunk
		return self.messages()

	def messages(self) -> Iterator[SIPMessage]:
		while self.buffer and not self.isClosed:
			try:
				message = self.codec.decode(self.buffer)
			except SIPFramingError:
				self.isClosed = True
				event("FramerClosed", len(self.buffer), level=LogLevel.Info)
				raise
			if message is None:
				break
			yield message

	def encode(self, message: SIPMessage) -> bytes:
		res = bytearray()
		self.codec.encode(message, res)
		return bytes(res)

	def __str__(self) -> str:
		return f"SIPFramer(pending={self.pending}, closed={self.isClosed})"


# EOF
