from abc import ABC, abstractmethod
from typing import (
	TYPE_CHECKING,
	Any,
	ClassVar,
	Generic,
	Iterable,
	TypeVar,
)
from mypy_extensions import mypyc_attr

if TYPE_CHECKING:
	from .model import SIPHeaders

T = TypeVar("T")
H = TypeVar("H", bound="TypedHeader[Any]")

# --
# == Typed headers
#
# A typed header is a projection of the text of one header onto a Python
# value. Each typed header lists the names (aliases) it can be found under,
# and decodes the *first* raw value found under any of them. Decoding never
# fails: text that can't be parsed is reported as absent (`None`).

DIGITS: frozenset[str] = frozenset("0123456789")


def parseUnsigned(text: str, bits: int) -> int | None:
	"""Parses `text` as a base-10 unsigned integer that fits in `bits`."""
	if not text or any(_ not in DIGITS for _ in text):
		return None
	value = int(text)
	return value if value < (1 << bits) else None


# NOTE: Typed headers may be defined outside of the package, so this needs
# to stay subclassable when compiled with mypyc.
@mypyc_attr(allow_interpreted_subclasses=True)
class TypedHeader(ABC, Generic[T]):
	"""Base class for headers that decode to a typed value."""

	Names: ClassVar[tuple[str, ...]] = ()

	__slots__ = ["value"]

	def __init__(self, value: T) -> None:
		self.value: T = value

	@classmethod
	@abstractmethod
	def Parse(cls, text: str) -> T | None:
		"""Parses a single raw header value, returning `None` on failure."""

	@classmethod
	def Decode(cls: type[H], values: Iterable[str]) -> H | None:
		for text in values:
			value = cls.Parse(text)
			return None if value is None else cls(value)
		return None

	@classmethod
	def Name(cls) -> str:
		"""The canonical name of the header, used when writing it."""
		return cls.Names[0]

	def encode(self) -> str:
		return str(self.value)

	def __eq__(self, other: object) -> bool:
		return type(other) is type(self) and self.value == getattr(other, "value")

	def __hash__(self) -> int:
		return hash((type(self), str(self.value)))

	def __str__(self) -> str:
		return self.encode()

	def __repr__(self) -> str:
		return f"{self.__class__.__name__}({self.value!r})"


# -----------------------------------------------------------------------------
#
# REGISTRY
#
# -----------------------------------------------------------------------------

REGISTRY: dict[str, type[TypedHeader[Any]]] = {}


def register(cls: type[H]) -> type[H]:
	"""Class decorator that makes the typed header resolvable from any of its
	names."""
	if not cls.Names:
		raise ValueError(f"Typed header has no names: {cls.__name__}")
	for name in cls.Names:
		key = name.lower()
		existing = REGISTRY.get(key)
		if existing is not None and existing is not cls:
			raise ValueError(
				f"Header name '{name}' already registered by {existing.__name__}"
			)
	for name in cls.Names:
		REGISTRY[name.lower()] = cls
	return cls


def header(name: str) -> type[TypedHeader[Any]] | None:
	"""Returns the typed header registered for the given name or alias."""
	return REGISTRY.get(name.lower())


def typed(headers: "SIPHeaders", cls: type[H]) -> H | None:
	"""Decodes the typed header `cls` from the given headers, looking it up
	under each of its aliases. The headers are left untouched."""
	return cls.Decode(value for name in cls.Names for value in headers.getAll(name))


def setTyped(headers: "SIPHeaders", value: TypedHeader[Any]) -> "SIPHeaders":
	"""Writes the typed value under its canonical name, removing any value
	stored under one of its aliases."""
	for name in value.Names[1:]:
		headers.remove(name)
	headers.set(value.Name(), value.encode())
	return headers


# -----------------------------------------------------------------------------
#
# HEADERS
#
# -----------------------------------------------------------------------------


@register
class Allow(TypedHeader[list[str]]):
	"""The list of methods supported, as in `Allow: INVITE, ACK, BYE`."""

	Names = ("allow",)

	@classmethod
	def Parse(cls, text: str) -> list[str] | None:
		if not text.strip():
			return None
		return [_.strip() for _ in text.split(",")]

	def encode(self) -> str:
		return ", ".join(self.value)


@register
class ContentLength(TypedHeader[int]):
	"""Length of the body in bytes, also found under its compact `l` form."""

	Names = ("content-length", "l")

	@classmethod
	def Parse(cls, text: str) -> int | None:
		return parseUnsigned(text, 64)


@register
class MaxForwards(TypedHeader[int]):
	Names = ("max-forwards",)

	@classmethod
	def Parse(cls, text: str) -> int | None:
		return parseUnsigned(text, 32)


@register
class UserAgent(TypedHeader[str]):
	Names = ("user-agent",)

	@classmethod
	def Parse(cls, text: str) -> str | None:
		return text


# EOF
