"""Tests for the request variants, parameters, headers, and responses."""

import io

import pytest

from cureconnect.errors import ResponseAlreadySent
from cureconnect.http import Headers, HttpRequest, Params, Request, Response, SimpleRequest
from cureconnect.http.cookies import SetCookie, parse_cookies


class TestParams:
    def test_parse_keeps_blank_values_and_raw(self) -> None:
        params = Params.parse("a=1&b=&a=2")
        assert params["a"] == "1"
        assert params.get_list("a") == ["1", "2"]
        assert params.get("b") == ""
        assert params.raw == "a=1&b=&a=2"

    def test_get_default(self) -> None:
        params = Params({"x": "y"})
        assert params.get("missing") is None
        assert params.get("missing", "fallback") == "fallback"

    def test_get_int(self) -> None:
        params = Params({"id": "42", "bad": "4x"})
        assert params.get_int("id") == 42
        assert params.get_int("bad") is None
        assert params.get_int("missing", 1) == 1

    def test_is_read_only(self) -> None:
        params = Params({"x": "y"})
        with pytest.raises(TypeError):
            params["x"] = "z"  # type: ignore[index]


class TestHeaders:
    def test_case_insensitive(self) -> None:
        headers = Headers([("Content-Type", "text/plain")])
        assert headers["content-type"] == "text/plain"
        assert "CONTENT-TYPE" in headers

    def test_from_environ(self) -> None:
        headers = Headers.from_environ(
            {"HTTP_ACCEPT_LANGUAGE": "bn", "CONTENT_TYPE": "text/plain", "PATH_INFO": "/"}
        )
        assert headers.get("accept-language") == "bn"
        assert headers.get("content-type") == "text/plain"
        assert "path-info" not in headers

    def test_get_list(self) -> None:
        headers = Headers([("Accept", "a"), ("accept", "b")])
        assert headers.get_list("ACCEPT") == ["a", "b"]
        assert len(headers) == 1


class TestCookies:
    def test_parse(self) -> None:
        assert parse_cookies("a=1; b = 2") == {"a": "1", "b": "2"}
        assert parse_cookies(None) == {}

    def test_parse_unquotes_values(self) -> None:
        assert parse_cookies('lang="bn"; theme=dark') == {"lang": "bn", "theme": "dark"}

    def test_malformed_pair_is_skipped(self) -> None:
        assert parse_cookies("flag; sid=abc") == {"sid": "abc"}

    def test_set_cookie_header(self) -> None:
        value = SetCookie("sid", "abc", max_age=60, secure=True).to_header_value()
        assert value == "sid=abc; HttpOnly; Max-Age=60; Path=/; SameSite=lax; Secure"

    def test_value_needing_quotes_round_trips(self) -> None:
        value = SetCookie("note", "a b;c").to_header_value()
        assert value.startswith('note="a b\\073c";')
        pair = value.split("; HttpOnly")[0]
        assert parse_cookies(pair) == {"note": "a b;c"}

    def test_deletion_cookie(self) -> None:
        value = SetCookie("sid", "", max_age=0).to_header_value()
        assert value == 'sid=""; HttpOnly; Max-Age=0; Path=/; SameSite=lax'


class TestRequest:
    def _scope(self, **overrides):
        scope = {
            "type": "http",
            "method": "post",
            "path": "/contact",
            "query_string": b"lang=bn",
            "headers": [
                (b"host", b"example.org"),
                (b"content-type", b"application/x-www-form-urlencoded; charset=utf-8"),
                (b"cookie", b"a=1"),
            ],
            "client": ("10.0.0.5", 5000),
        }
        scope.update(overrides)
        return scope

    def test_from_asgi(self) -> None:
        request = Request.from_asgi(self._scope(), b"name=Asha&email=a%40b.co")
        assert request.method == "POST"
        assert request.query.get("lang") == "bn"
        assert request.form.get("email") == "a@b.co"
        assert request.cookies == {"a": "1"}
        assert request.uri == "http://example.org/contact?lang=bn"
        assert request.url == "/contact?lang=bn"
        assert request.client_ip == "10.0.0.5"
        assert request.is_method("post")

    def test_non_form_body_yields_empty_form(self) -> None:
        scope = self._scope(headers=[(b"content-type", b"application/json")])
        request = Request.from_asgi(scope, b'{"a": 1}')
        assert len(request.form) == 0
        assert request.json() == {"a": 1}

    def test_is_frozen_but_session_is_mutable(self) -> None:
        request = Request.from_asgi(self._scope())
        with pytest.raises(AttributeError):
            request.path = "/elsewhere"  # type: ignore[misc]
        request.session["language"] = "ar"
        assert request.session == {"language": "ar"}


class TestSimpleRequest:
    def test_keyword_construction(self) -> None:
        request = SimpleRequest("post", "/about?lang=ar", form={"name": "Asha"})
        assert request.method == "POST"
        assert request.path == "/about"
        assert request.query.get("lang") == "ar"
        assert request.form.get("name") == "Asha"
        assert request.uri == "http://localhost/about?lang=ar"

    def test_inline_and_keyword_query_are_merged(self) -> None:
        request = SimpleRequest("GET", "/articles?page=2", query={"q": "heart", "page": "3"})
        assert request.query.get("q") == "heart"
        assert request.query.get("page") == "2"
        assert request.query.get_list("page") == ["2", "3"]
        assert request.uri == "http://localhost/articles?page=2&q=heart&page=3"

    def test_keyword_query_string(self) -> None:
        request = SimpleRequest("GET", "/articles", query="category=cardiology")
        assert request.query.get("category") == "cardiology"

    def test_from_environ(self) -> None:
        environ = {
            "REQUEST_METHOD": "POST",
            "PATH_INFO": "/contact",
            "QUERY_STRING": "lang=bn",
            "CONTENT_TYPE": "application/x-www-form-urlencoded",
            "HTTP_HOST": "cure.example",
            "HTTP_COOKIE": "sid=xyz",
            "REMOTE_ADDR": "203.0.113.9",
            "HTTPS": "on",
        }
        request = SimpleRequest.from_environ(environ, b"name=Asha")
        assert request.form.get("name") == "Asha"
        assert request.cookies == {"sid": "xyz"}
        assert request.client_ip == "203.0.113.9"
        assert request.uri == "https://cure.example/contact?lang=bn"

    def test_both_variants_satisfy_protocol(self) -> None:
        full = Request.from_asgi({"type": "http", "method": "GET", "path": "/"})
        assert isinstance(full, HttpRequest)
        assert isinstance(SimpleRequest(), HttpRequest)


class TestResponse:
    def test_chainable_and_immutable(self) -> None:
        original = Response("hello")
        changed = original.with_status(201).with_header("X-Test", "1")
        assert original.status == 200
        assert changed.status == 201
        assert changed.header("x-test") == "1"
        assert changed.header("content-type") == "text/html; charset=utf-8"

    def test_redirect(self) -> None:
        response = Response.redirect("/appointments")
        assert response.status == 302
        assert response.header("Location") == "/appointments"

    def test_json(self) -> None:
        response = Response.json({"name": "বাংলা"})
        assert response.content_type == "application/json"
        assert "বাংলা" in response.text

    def test_raw_headers_include_cookies_and_length(self) -> None:
        response = Response("abc").with_cookie("sid", "1")
        headers = response.raw_headers()
        assert ("Content-Length", "3") in headers
        assert any(name == "Set-Cookie" and value.startswith("sid=1") for name, value in headers)

    def test_send_writes_cgi_output(self) -> None:
        stream = io.BytesIO()
        Response("<p>hi</p>", status=404).send(stream)
        output = stream.getvalue()
        assert output.startswith(b"Status: 404 Not Found\r\n")
        assert output.endswith(b"\r\n\r\n<p>hi</p>")

    def test_send_exactly_once(self) -> None:
        response = Response("once")
        response.send(io.BytesIO())
        assert response.sent
        with pytest.raises(ResponseAlreadySent):
            response.send(io.BytesIO())

    def test_derived_response_has_its_own_send_state(self) -> None:
        response = Response("once")
        response.mark_sent()
        derived = response.with_status(201)
        assert not derived.sent
        derived.mark_sent()

    def test_no_body_for_304(self) -> None:
        stream = io.BytesIO()
        Response("ignored", status=304).send(stream)
        assert not stream.getvalue().endswith(b"ignored")
