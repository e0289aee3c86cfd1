"""
Unit tests for URL router.
"""

import json

import pytest

from reqinfo.http.request import HTTPRequest
from reqinfo.http.response import HTTPResponse, ResponseBuilder
from reqinfo.http.router import Router


def make_request(method: str, path: str) -> HTTPRequest:
    """Helper to create a request for testing."""
    return HTTPRequest(method=method, path=path)


def dummy_handler(request: HTTPRequest) -> HTTPResponse:
    """Dummy handler for testing."""
    return ResponseBuilder().json({"path": request.path}).build()


class TestRouter:
    """Tests for Router class."""

    def test_add_route(self):
        router = Router()
        route = router.add_route("/ua", dummy_handler, method="get", name="ua")

        assert router.routes() == [route]
        assert route.path == "/ua"
        assert route.method == "GET"
        assert route.name == "ua"

    def test_match_static_path(self):
        router = Router()
        router.add_route("/ip", dummy_handler, method="GET")
        router.add_route("/all.json", dummy_handler, method="GET")

        assert router.match("GET", "/ip").path == "/ip"
        assert router.match("GET", "/all.json").path == "/all.json"
        assert router.match("GET", "/all") is None

    def test_head_served_by_get_route(self):
        router = Router()
        router.add_route("/lang", dummy_handler, method="GET")

        assert router.match("HEAD", "/lang") is not None
        assert router.match("POST", "/lang") is None

    def test_exact_path_only(self):
        router = Router()
        router.add_route("/mime", dummy_handler, method="GET")

        assert router.match("GET", "/mime/") is None
        assert router.match("GET", "//mime") is None
        assert router.match("GET", "/MIME") is None

    def test_trailing_slash_not_found(self):
        router = Router()
        router.add_route("/ua", dummy_handler, method="GET")

        response = router.handle(make_request("GET", "/ua/"))

        assert response.status == 404

    def test_relative_path_rejected(self):
        with pytest.raises(ValueError):
            Router().add_route("ua", dummy_handler, method="GET")

    def test_root(self):
        router = Router()
        router.add_route("/", dummy_handler, method="GET")

        assert router.match("GET", "/") is not None

    def test_any_method_route(self):
        router = Router()
        router.add_route("/echo", dummy_handler)

        assert router.match("DELETE", "/echo") is not None

    def test_decorator(self):
        router = Router()

        @router.get("/ping", name="ping")
        def ping(request):
            return ResponseBuilder().text("pong\n").build()

        response = router.handle(make_request("GET", "/ping"))
        assert response.text == "pong\n"

    def test_allowed_methods(self):
        router = Router()
        router.add_route("/ua", dummy_handler, method="GET")

        assert router.get_allowed_methods("/ua") == ["GET", "HEAD"]
        assert router.get_allowed_methods("/nope") == []

    def test_handle_not_found(self):
        router = Router()
        router.add_route("/ip", dummy_handler, method="GET")

        response = router.handle(make_request("GET", "/nope"))

        assert response.status == 404
        assert json.loads(response.body) == {"error": "No route matches /nope"}

    def test_handle_method_not_allowed(self):
        router = Router()
        router.add_route("/ip", dummy_handler, method="GET")

        response = router.handle(make_request("POST", "/ip"))

        assert response.status == 405
        assert response.headers["Allow"] == "GET, HEAD"

    def test_first_registered_wins(self):
        router = Router()
        router.add_route("/x", lambda r: ResponseBuilder().text("first").build(), method="GET")
        router.add_route("/x", lambda r: ResponseBuilder().text("second").build(), method="GET")

        assert router.handle(make_request("GET", "/x")).text == "first"

    def test_describe_routes(self):
        router = Router()
        router.add_route("/ip", dummy_handler, method="GET")

        assert "GET" in router.describe_routes()
        assert "/ip" in router.describe_routes()

