from .sip.model import (
	Version,
	SIPHeaders,
	SIPRequest,
	SIPResponse,
	SIPMessage,
	SIPURI,
	SIPParseStatus,
	SIPError,
	SIPFramingError,
	SIPOversizedError,
	SIPEncodeError,
)  # NOQA: F401
from .sip.headers import (
	TypedHeader,
	Allow,
	ContentLength,
	MaxForwards,
	UserAgent,
	register,
	header,
	typed,
	setTyped,
)  # NOQA: F401
from .sip.parser import parseRequest, ParseResult  # NOQA: F401
from .sip.codec import SIPCodec, SIPFramer  # NOQA: F401
from .sip.status import SIP_STATUS  # NOQA: F401

# EOF
