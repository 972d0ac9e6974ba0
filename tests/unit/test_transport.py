"""
Unit tests for the requests-backed HTTP transport.

A fake session stands in for requests.Session; nothing leaves the process.
"""

import pytest
import requests

from market_adapter.exchange.transport import HttpTransport, TransportResponse


class FakeResponse:
    def __init__(self, status_code: int, content: bytes):
        self.status_code = status_code
        self.content = content


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.headers = {}
        self.posts = []
        self.closed = False
        self._response = response or FakeResponse(200, b'{"error":[],"result":{}}')
        self._exc = exc

    def post(self, url, headers=None, data=None, timeout=None):
        self.posts.append({"url": url, "headers": headers, "data": data, "timeout": timeout})
        if self._exc is not None:
            raise self._exc
        return self._response

    def close(self):
        self.closed = True


class TestTransportResponse:

    @pytest.mark.parametrize("status,ok", [(200, True), (204, True), (301, False), (404, False), (500, False)])
    def test_ok_is_2xx(self, status, ok):
        assert TransportResponse(status, b"").ok is ok


class TestHttpTransport:

    def test_post_sends_encoded_body_with_timeout(self):
        session = FakeSession(FakeResponse(200, b"payload"))
        transport = HttpTransport(timeout=7.5, session=session)

        response = transport.post(
            "https://api.kraken.com/0/public/Time",
            {"Content-Type": "application/x-www-form-urlencoded"},
            "pair=XBTUSD",
        )

        assert response == TransportResponse(200, b"payload")
        sent = session.posts[0]
        assert sent["data"] == b"pair=XBTUSD"
        assert sent["timeout"] == 7.5
        assert sent["headers"]["Content-Type"] == "application/x-www-form-urlencoded"

    def test_user_agent_set_on_session(self):
        session = FakeSession()
        HttpTransport(session=session, user_agent="adapter-test/1.0")
        assert session.headers["User-Agent"] == "adapter-test/1.0"

    def test_non_2xx_is_returned_not_raised(self):
        session = FakeSession(FakeResponse(503, b"unavailable"))
        response = HttpTransport(session=session).post("https://x", {}, "")
        assert response.status_code == 503
        assert not response.ok

    def test_requests_exception_propagates(self):
        session = FakeSession(exc=requests.ConnectionError("refused"))
        with pytest.raises(requests.ConnectionError):
            HttpTransport(session=session).post("https://x", {}, "")
        assert len(session.posts) == 1

    def test_context_manager_closes_session(self):
        session = FakeSession()
        with HttpTransport(session=session):
            pass
        assert session.closed
