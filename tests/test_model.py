from io import StringIO
from ipaddress import IPv4Address, IPv6Address
import pytest
from sipframe import SIPFramer, SIPHeaders, SIPRequest, SIPURI, Version
from sipframe.utils import logging
from sipframe.utils.logging import LogLevel, parseLevel


def test_version():
	assert Version() == Version(2, 0)
	assert str(Version()) == "SIP/2.0"
	for major, minor in ((256, 0), (0, 256), (-1, 0)):
		with pytest.raises(ValueError):
			Version(major, minor)


def test_headers_are_case_insensitive():
	headers = SIPHeaders()
	headers.set("Call-ID", "abc@host")
	assert headers.get("call-id") == "abc@host"
	assert headers["CALL-ID"] == "abc@host"
	assert "Call-Id" in headers
	assert list(headers) == ["call-id"]


def test_headers_keep_order_and_values():
	headers = SIPHeaders([("Via", "a"), ("To", "b"), ("via", "c")])
	assert headers.getAll("VIA") == ["a", "c"]
	assert list(headers.items()) == [("via", "a"), ("via", "c"), ("to", "b")]
	assert len(headers) == 2
	headers.set("via", "d")
	assert list(headers.items()) == [("via", "d"), ("to", "b")]
	assert headers.remove("to") == ["b"]
	assert headers.get("to") is None
	assert headers.getAll("to") == []


def test_headers_item_access():
	headers = SIPHeaders()
	headers["From"] = "alice"
	assert headers.get("from") == "alice"
	del headers["FROM"]
	with pytest.raises(KeyError):
		headers["from"]
	with pytest.raises(KeyError):
		del headers["from"]


def test_headers_equality():
	assert SIPHeaders({"A": "b"}) == SIPHeaders({"a": "b"})
	assert SIPHeaders({"A": "b"}) == {"a": "b"}
	assert SIPHeaders({"a": "b"}) != {"a": "c"}


def test_request_defaults():
	req = SIPRequest("OPTIONS", "sip:a")
	assert req.version == Version()
	assert len(req.headers) == 0
	assert req.body == b""
	assert req.contentLength is None
	req.headers.set("l", "4")
	assert req.contentLength == 4


def test_uri_rendering():
	assert str(SIPURI("biloxi.com", "bob")) == "sip:bob@biloxi.com"
	assert str(SIPURI("server", "user", "secret", 5060)) == "sip:user:secret@server:5060"
	assert str(SIPURI(IPv4Address("10.0.0.1"), port=5061)) == "sip:10.0.0.1:5061"
	assert str(SIPURI(IPv6Address("::1"))) == "sip:[::1]"


def test_log_levels():
	assert parseLevel("debug") is LogLevel.Debug
	assert parseLevel("ERROR") is LogLevel.Error
	assert parseLevel("bogus") is LogLevel.Warning
	assert parseLevel(None, LogLevel.Info) is LogLevel.Info


def test_header_names_and_values_are_checked():
	headers = SIPHeaders()
	with pytest.raises(ValueError):
		headers.set("x", "a\nb")
	with pytest.raises(ValueError):
		headers.add("bad name", "v")
	with pytest.raises(ValueError):
		headers.set("", "v")
	with pytest.raises(ValueError):
		SIPHeaders([("via", "a\r\nl: 9")])
	assert len(headers) == 0
	assert headers.set("X-Token_1", "a\tb").get("x-token_1") == "a\tb"


def test_info_and_exception_logging(monkeypatch):
	out = StringIO()
	monkeypatch.setattr(logging, "ERR", out)
	monkeypatch.setattr(logging, "LOG_LEVEL", LogLevel.Debug)
	logging.info("hello", A=1)
	assert "hello" in out.getvalue()
	try:
		raise ValueError("boom")
	except ValueError as e:
		assert logging.exception(e, "ctx") is e
	assert "!!! EXCP ctx: [ValueError] boom" in out.getvalue()
	assert "test_info_and_exception_logging" in out.getvalue()


def test_logging_respects_level(monkeypatch):
	out = StringIO()
	monkeypatch.setattr(logging, "ERR", out)
	monkeypatch.setattr(logging, "LOG_LEVEL", LogLevel.Error)
	logging.info("hidden")
	logging.warning("hidden")
	logging.exception(ValueError("shown"))
	assert out.getvalue() == "!!! EXCP [ValueError] shown\n"


def test_framer_reset_is_logged(monkeypatch):
	out = StringIO()
	monkeypatch.setattr(logging, "ERR", out)
	monkeypatch.setattr(logging, "LOG_LEVEL", LogLevel.Info)
	framer = SIPFramer()
	framer.reset()
	assert out.getvalue() == ""
	assert list(framer.feed(b"INVITE sip:a")) == []
	framer.reset()
	assert "Framer reset" in out.getvalue()
	assert framer.pending == 0


# EOF
