from typing import BinaryIO, TypeAlias

DEFAULT_ENCODING: str = "utf8"
EOL: bytes = b"\r\n"
CR: int = 0x0D
LF: int = 0x0A
SP: int = 0x20
HT: int = 0x09
# Characters allowed in a header name (RFC 7230 `tchar`)
TOKEN: frozenset[int] = frozenset(
	b"!#$%&'*+-.^_`|~0123456789"
	b"abcdefghijklmnopqrstuvwxyz"
	b"ABCDEFGHIJKLMNOPQRSTUVWXYZ"
)

# An output sink is either a growable buffer or anything with `write(bytes)`
TSink: TypeAlias = bytearray | BinaryIO


def asBytes(value: str | bytes | bytearray | memoryview | None) -> bytes:
	if isinstance(value, bytes):
		return value
	elif isinstance(value, (bytearray, memoryview)):
		return bytes(value)
	elif isinstance(value, str):
		return bytes(value, DEFAULT_ENCODING)
	elif value is None:
		return b""
	else:
		raise ValueError(f"Expected bytes or str, got: {value}")


def isSpace(ch: int) -> bool:
	return ch == SP or ch == HT


def isNewline(ch: int) -> bool:
	return ch == CR or ch == LF


def isToken(text: str) -> bool:
	return bool(text) and all(ord(_) in TOKEN for _ in text)


def isLine(text: str) -> bool:
	"""Tells if the text fits on a single line."""
	return "\r" not in text and "\n" not in text


def emit(sink: TSink, data: bytes) -> int:
	"""Appends `data` to the given sink, returning the number of bytes
	written. Errors raised by the sink are not caught."""
	if isinstance(sink, bytearray):
		sink += data
		return len(data)
	else:
		n = sink.write(data)
		return len(data) if n is None else n


# EOF
