import pytest
import requests

from conftest import DST_API, make_response

from wp_migrator.migrators.wordpress_api import api_fetch, final_url, send
from wp_migrator.models.wp_content import SiteConnection
from wp_migrator.utils.errors import ConnectivityError, ErrorKind, HttpStatusError, InvalidUrlError


def test_final_url_without_proxy_is_unchanged():
    assert final_url("https://a.test/wp-json/") == "https://a.test/wp-json/"


def test_final_url_prefixes_proxy_and_trims_trailing_slashes():
    assert final_url("https://a.test/x", "https://proxy.test///") == "https://proxy.test/https://a.test/x"


def test_empty_proxy_string_means_direct():
    conn = SiteConnection(base_url="https://a.test/", token="t", proxy_url="  ")
    assert conn.proxy_url is None
    assert conn.base_url == "https://a.test"


def test_api_fetch_sends_basic_auth_and_returns_json(fake_wp, dest):
    fake_wp.add("GET", f"{DST_API}/tags", make_response(200, [{"id": 3}]))
    assert api_fetch("GET", f"{DST_API}/tags", dest) == [{"id": 3}]
    assert fake_wp.calls[0].headers["Authorization"] == f"Basic {dest.token}"


def test_api_fetch_routes_through_proxy(fake_wp):
    conn = SiteConnection(base_url="https://dest.test", token="t", proxy_url="https://proxy.test/")
    fake_wp.add("GET", f"https://proxy.test/{DST_API}/tags", make_response(200, []))
    assert api_fetch("GET", f"{DST_API}/tags", conn) == []
    assert fake_wp.calls[0].url == f"https://proxy.test/{DST_API}/tags"


def test_error_uses_server_message(fake_wp, dest):
    fake_wp.add("POST", f"{DST_API}/posts", make_response(400, {"code": "rest_invalid", "message": "Invalid title."}))
    with pytest.raises(HttpStatusError) as info:
        api_fetch("POST", f"{DST_API}/posts", dest, json={})
    assert info.value.message == "Invalid title."
    assert info.value.status_code == 400
    assert info.value.server_message == "Invalid title."
    assert info.value.kind is ErrorKind.HTTP_STATUS


def test_error_falls_back_when_body_is_not_json(fake_wp, dest):
    fake_wp.add("GET", f"{DST_API}/posts", make_response(502, content=b"<html>Bad gateway</html>"))
    with pytest.raises(HttpStatusError) as info:
        api_fetch("GET", f"{DST_API}/posts", dest)
    assert str(info.value) == "HTTP error! status: 502"
    assert info.value.server_message is None


def test_error_falls_back_when_json_has_no_message(fake_wp, dest):
    fake_wp.add("GET", f"{DST_API}/posts", make_response(500, {"code": "oops"}))
    with pytest.raises(HttpStatusError, match=r"HTTP error! status: 500"):
        api_fetch("GET", f"{DST_API}/posts", dest)


def test_no_response_is_a_connectivity_error(fake_wp):
    fake_wp.add("GET", f"{DST_API}/posts", requests.ConnectionError("refused"))
    with pytest.raises(ConnectivityError) as info:
        send("GET", f"{DST_API}/posts")
    assert info.value.kind is ErrorKind.CONNECTIVITY
    assert "CORS" in info.value.message
    assert isinstance(info.value.__cause__, requests.ConnectionError)


def test_url_without_scheme_is_reported_as_invalid_url():
    # requests rejects the URL while preparing it, before any network access
    with pytest.raises(InvalidUrlError) as info:
        send("GET", "source.test/wp-json/")
    assert info.value.kind is ErrorKind.INVALID_URL
    assert "http:// or https://" in info.value.message
    assert "CORS" not in info.value.message


def test_malformed_host_is_not_a_connectivity_error(fake_wp):
    fake_wp.add("GET", f"{DST_API}/posts", requests.exceptions.InvalidURL("Invalid URL: No host supplied"))
    with pytest.raises(InvalidUrlError, match="No host supplied"):
        send("GET", f"{DST_API}/posts")


def test_http_error_prefix_names_the_operation(fake_wp, dest):
    fake_wp.add("GET", f"{DST_API}/posts", make_response(404, {}))
    resp = send("GET", f"{DST_API}/posts")
    error = HttpStatusError.from_response(resp, "Loading posts failed")
    assert error.message == "Loading posts failed: HTTP error! status: 404"
    assert error.server_message is None
