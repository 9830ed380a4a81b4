import pytest
from sipframe import SIPParseStatus, SIPRequest, Version, parseRequest
from sipframe.sip.parser import parseHeader

REQUEST = b"GET sip:a@b SIP/2.0\r\na:b\r\ncontent-length: 3\r\n\r\nabc"


def test_parse_request():
	res = parseRequest(REQUEST)
	assert res.status is SIPParseStatus.Complete
	req = res.request
	assert req.method == "GET"
	assert req.uri == "sip:a@b"
	assert req.version == Version(2, 0)
	assert req.headers == {"a": "b", "content-length": "3"}
	assert req.body == b"abc"
	assert res.consumed == len(REQUEST)
	assert res.remaining(REQUEST) == b""


def test_header_names_are_lowercased():
	data = b"GET sip:user@server:port SIP/2.0\r\na:b\r\nContent-length: 7\r\n\r\nabcdefg"
	res = parseRequest(data)
	assert res.request == SIPRequest(
		"GET",
		"sip:user@server:port",
		Version(),
		{"a": "b", "content-length": "7"},
		b"abcdefg",
	)
	assert res.remaining(data) == b""


def test_compact_content_length():
	data = b"GET sip:user@server:port SIP/2.0\r\na:b\r\nl: 7\r\n\r\nabcdefgh"
	res = parseRequest(data)
	assert res.request.headers == {"a": "b", "l": "7"}
	assert res.request.body == b"abcdefg"
	assert res.remaining(data) == b"h"
	assert res.consumed == len(data) - 1


def test_body_without_length_takes_the_rest():
	data = b"MESSAGE sip:a SIP/2.0\r\nx: y\r\n\r\nhello world"
	res = parseRequest(data)
	assert res.request.body == b"hello world"
	assert res.offset == len(data)


def test_unparsable_length_takes_the_rest():
	data = b"MESSAGE sip:a SIP/2.0\r\ncontent-length: two\r\n\r\nhello"
	assert parseRequest(data).request.body == b"hello"


def test_leading_line_terminators():
	data = b"\r\n\n\rINVITE sip:bob@biloxi.com SIP/2.0\r\nl: 0\r\n\r\n"
	res = parseRequest(data)
	assert res.request.method == "INVITE"
	assert res.consumed == len(data)


def test_lone_terminators():
	res = parseRequest(b"OPTIONS sip:x SIP/2.0\na: b\n\n")
	assert res.request.headers == {"a": "b"}
	assert res.request.body == b""
	# A CR followed by anything but LF is a terminator on its own
	res = parseRequest(b"OPTIONS sip:x SIP/2.0\ra: b\r\rX")
	assert res.request.headers == {"a": "b"}
	assert res.request.body == b"X"


def test_whitespace_runs():
	res = parseRequest(b"REGISTER \t sip:registrar\t\tSIP/2.1\r\nCSeq  :  1 REGISTER\r\n\r\n")
	assert res.request.method == "REGISTER"
	assert res.request.uri == "sip:registrar"
	assert res.request.version == Version(2, 1)
	assert res.request.header("cseq") == "1 REGISTER"


def test_repeated_header_replaces():
	res = parseRequest(b"BYE sip:a SIP/2.0\r\na: 1\r\nb: 2\r\nA: 3\r\nl: 0\r\n\r\n")
	assert list(res.request.headers.items()) == [("a", "3"), ("b", "2"), ("l", "0")]


def test_missing_body_bytes_are_incomplete():
	res = parseRequest(b"GET sip:a SIP/2.0\r\ncontent-length: 10\r\n\r\nabc")
	assert res.status is SIPParseStatus.Incomplete
	assert res.request is None
	assert res.consumed == 0


@pytest.mark.parametrize(
	"data",
	[
		b"",
		b"\r\n",
		b"\r",
		b"GET",
		b"GET sip:a",
		b"GET sip:a SI",
		b"GET sip:a SIP/2",
		b"GET sip:a SIP/2.0",
		b"GET sip:a SIP/2.0\r",
		b"GET sip:a SIP/2.0\r\n",
		b"GET sip:a SIP/2.0\r\ncontent-len",
		b"GET sip:a SIP/2.0\r\ncontent-length ",
		b"GET sip:a SIP/2.0\r\ncontent-length: 3",
		b"GET sip:a SIP/2.0\r\ncontent-length: 3\r\n",
		b"GET sip:a SIP/2.0\r\ncontent-length: 3\r\n\r",
		b"GET sip:a SIP/2.0\r\ncontent-length: 3\r\n\r\nab",
	],
)
def test_incomplete(data):
	assert parseRequest(data).status is SIPParseStatus.Incomplete


@pytest.mark.parametrize(
	"data",
	[
		b"GET sip:a HTTP/1.1\r\n\r\n",
		b"GET sip:a SIP/x.0\r\n\r\n",
		b"GET sip:a SIP/2-0\r\n\r\n",
		b"GET sip:a SIP/256.0\r\n\r\n",
		b"GET sip:a SIP/2.0x\r\n\r\n",
		b"GET\r\nsip:a SIP/2.0\r\n\r\n",
		b"GET sip:a\r\n\r\n",
		b"GET sip:a SIP/2.0\r\nbogus\r\n\r\n",
		b"GET sip:a SIP/2.0\r\n: value\r\n\r\n",
		b"GET sip:a SIP/2.0\r\n folded\r\n\r\n",
		b"GET sip:a SIP/2.0\r\na(b: c\r\n\r\n",
		b"GET sip:a SIP/2.0\r\na = b\r\n\r\n",
		b"GET sip:a SIP/2.0\r\na: \xff\xfe\r\n\r\n",
		b"G\xffT sip:a SIP/2.0\r\n\r\n",
	],
)
def test_malformed(data):
	res = parseRequest(data)
	assert res.status is SIPParseStatus.Malformed
	assert res.reason


def test_leading_whitespace_is_a_mismatch():
	res = parseRequest(b" GET sip:a SIP/2.0\r\n\r\n")
	assert res.status is SIPParseStatus.Mismatch
	res = parseRequest(b"\r\n\tGET sip:a SIP/2.0\r\n\r\n")
	assert res.status is SIPParseStatus.Mismatch


def test_parse_from_offset():
	data = b"junk" + REQUEST
	res = parseRequest(data, 4)
	assert res.request.body == b"abc"
	assert res.start == 4
	assert res.consumed == len(REQUEST)


def test_header_line():
	for line, name, value in (
		(b"Content-Type:application/sdp\r\n", "content-type", "application/sdp"),
		(b"Content-length: 57\r\n", "content-length", "57"),
		(b"CSeq  :  314159 INVITE\r\n", "cseq", "314159 INVITE"),
	):
		assert parseHeader(line) == (name, value, len(line) - 2)


def test_header_line_incomplete_and_malformed():
	assert parseHeader(b"Content-Type: application/sdp") is None
	with pytest.raises(ValueError):
		parseHeader(b"Content-Type application/sdp\r\n")


# EOF
