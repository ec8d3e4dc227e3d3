"""Tests for the httpx-backed transport."""

import gzip

import httpx
import pytest
import respx

from tapwire.errors import TransportError
from tapwire.modules.proxy import HTTPTransport, OutboundRequest, Proxy


class TestOutboundRequest:
    def test_url(self):
        options = OutboundRequest(host="example.com", port=8080, path="/a b", query="x=1")
        assert options.url == "http://example.com:8080/a%20b?x=1"

    def test_ipv6_url(self):
        assert OutboundRequest(host="::1", port=80).url == "http://[::1]:80/"

    def test_content_prefers_form_data(self):
        assert OutboundRequest(host="h", port=80, form_data=b"a=1").content == b"a=1"
        assert OutboundRequest(host="h", port=80, body=b"{}").content == b"{}"
        assert OutboundRequest(host="h", port=80).content is None


class TestHTTPTransport:
    @respx.mock
    def test_request(self):
        route = respx.get("http://upstream.test:8080/api", params={"id": "5"}).mock(
            return_value=httpx.Response(200, text="hello", headers={"X-Upstream": "yes"})
        )
        options = OutboundRequest(
            host="upstream.test",
            port=8080,
            path="/api",
            query="id=5",
            headers={"X-Api-Key": "k"},
        )

        with HTTPTransport() as transport:
            raw = transport.request(options)

        assert route.called
        assert route.calls.last.request.headers["x-api-key"] == "k"
        assert raw.status_code == 200
        assert b"".join(raw.chunks) == b"hello"
        assert ("X-Upstream", "yes") in raw.headers

    @respx.mock
    def test_form_data_and_content_type(self):
        route = respx.post("http://upstream.test:80/login").mock(
            return_value=httpx.Response(302, headers={"Location": "/home"})
        )
        options = OutboundRequest(
            host="upstream.test",
            port=80,
            method="POST",
            path="/login",
            content_type="application/x-www-form-urlencoded",
            form_data=b"user=bob",
        )

        raw = HTTPTransport().request(options)

        request = route.calls.last.request
        assert request.content == b"user=bob"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        # redirects are returned, not followed
        assert raw.status_code == 302

    @respx.mock
    def test_body_is_not_decoded(self):
        compressed = gzip.compress(b"compressed body")
        respx.get("http://upstream.test:80/").mock(
            return_value=httpx.Response(
                200, content=compressed, headers={"Content-Encoding": "gzip"}
            )
        )
        raw = HTTPTransport().request(OutboundRequest(host="upstream.test", port=80))
        assert b"".join(raw.chunks) == compressed

    @respx.mock
    def test_connection_error_becomes_transport_error(self):
        respx.get("http://down.test:80/").mock(side_effect=httpx.ConnectError("refused"))
        options = OutboundRequest(host="down.test", port=80)

        with pytest.raises(TransportError) as excinfo:
            HTTPTransport().request(options)

        assert excinfo.value.request is options
        assert isinstance(excinfo.value.__cause__, httpx.ConnectError)

    def test_invalid_url_becomes_transport_error(self):
        options = OutboundRequest(host="upstream.test", port=80, path="bad:port")

        with pytest.raises(TransportError) as excinfo:
            HTTPTransport().request(options)

        assert excinfo.value.request is options
        assert isinstance(excinfo.value.__cause__, httpx.InvalidURL)

    def test_uses_given_client(self):
        client = httpx.Client()
        transport = HTTPTransport(client=client)
        assert transport.client is client
        transport.close()

    def test_lazy_client_settings(self):
        transport = HTTPTransport(timeout=5.0)
        assert transport.client.timeout == httpx.Timeout(5.0)
        assert transport.client.follow_redirects is False
        transport.close()


class TestProxyOverHTTP:
    @respx.mock
    def test_end_to_end(self, downstream, make_environ, start_response):
        respx.get("http://www.example.com:80/api/users", params={"id": "5"}).mock(
            return_value=httpx.Response(
                200,
                text="[]",
                headers={"Content-Type": "application/json", "Transfer-Encoding": "chunked"},
            )
        )
        seen = []
        proxy = Proxy(downstream, request_path="/api").every_response(seen.append)

        result = proxy(make_environ(path="/api/users", query="id=5"), start_response)

        assert result.content == b"[]"
        assert result.headers["Content-Type"] == "application/json"
        assert "Transfer-Encoding" not in result.headers
        assert start_response.status == "200 OK"
        assert seen == [result]

    @respx.mock
    def test_absolute_form_target(self, downstream, make_environ, start_response):
        route = respx.get("http://upstream.test:8000/v1/items").mock(
            return_value=httpx.Response(204)
        )
        environ = make_environ(
            path="http://upstream.test:8000/v1/items", host="127.0.0.1", port=8080
        )

        result = Proxy(downstream)(environ, start_response)

        assert route.called
        assert result.status == 204
        assert downstream.calls == []
        assert route.calls.last.request.headers["host"] == "upstream.test:8000"
