"""End-to-end injection through the WSGI middleware around the Flask demo app."""
import pytest
from werkzeug.test import Client

from ga_code import ConfigurationError
from ga_middleware import GoogleAnalyticsMiddleware, request_format, override, ENVIRON_KEY


def _html(resp):
    return resp.get_data(as_text=True)


# -------------------- request_format --------------------
@pytest.mark.parametrize("environ,expected", [
    ({"PATH_INFO": "/"}, "html"),
    ({"PATH_INFO": "/", "HTTP_ACCEPT": "*/*"}, "all"),
    ({"PATH_INFO": "/", "HTTP_ACCEPT": "text/html,application/xhtml+xml,*/*;q=0.8"}, "html"),
    ({"PATH_INFO": "/", "HTTP_ACCEPT": "application/json"}, "json"),
    ({"PATH_INFO": "/", "HTTP_ACCEPT": "text/xml"}, "xml"),
    ({"PATH_INFO": "/", "HTTP_ACCEPT": "image/png"}, "png"),
    ({"PATH_INFO": "/feed.rss", "HTTP_ACCEPT": "text/html"}, "rss"),
    ({"PATH_INFO": "/index.htm"}, "html"),
])
def test_request_format(environ, expected):
    assert request_format(environ) == expected


def test_override_stores_per_request_overrides():
    environ = {}
    override(environ, trackpageview="/x")
    assert environ[ENVIRON_KEY].trackpageview == "/x"
    assert environ[ENVIRON_KEY].tracker_id is None


# -------------------- injection --------------------
def test_html_page_gets_synchronous_snippet_before_closing_body(client):
    html = _html(client.get("/"))
    assert "_gat._getTracker('UA-123456-7')" in html
    assert html.index("pageTracker._trackPageview();") < html.index("</body>")
    assert html.rstrip().endswith("</script>\n</body></html>")


def test_content_length_is_updated(client):
    resp = client.get("/")
    assert int(resp.headers["Content-Length"]) == len(resp.get_data())


def test_load_at_top_goes_after_opening_body(client, config):
    config.defer_load = False
    html = _html(client.get("/"))
    assert '<body class="home"><script type="text/javascript">' in html


def test_asynchronous_needs_a_bare_body_tag(client, config):
    config.asynchronous_mode = True
    html = _html(client.get("/"))
    assert "_gaq" not in html


def test_asynchronous_snippet_after_bare_body(config):
    def bare(environ, start_response):
        start_response("200 OK", [("Content-Type", "text/html; charset=utf-8")])
        return [b"<html><body><p>x</p></body></html>"]
    config.asynchronous_mode = True
    html = _html(Client(GoogleAnalyticsMiddleware(bare, config, environment="test")).get("/"))
    assert html.startswith("<html><body><script type=\"text/javascript\">\n  var _gaq = _gaq || [];")


def test_legacy_mode_uses_request_scheme(client, config):
    config.legacy_mode = True
    assert "http://www.google-analytics.com/urchin.js" in _html(client.get("/"))
    secure = _html(client.get("/", base_url="https://localhost"))
    assert "https://ssl.google-analytics.com/urchin.js" in secure


def test_local_javascript_uses_host_asset_path(client, config):
    config.legacy_mode = True
    config.local_javascript = True
    assert '<script src="/assets/urchin.js"' in _html(client.get("/"))


def test_custom_vars_reach_the_page(client, config):
    config.set_custom_var("x", "v", 2, 1)
    assert 'pageTracker._setCustomVar(2, "x", "v", 1);' in _html(client.get("/"))


def test_view_overrides_apply_only_to_that_request(client):
    about = _html(client.get("/about?tracker=UA-42-1"))
    assert "_gat._getTracker('UA-42-1')" in about
    assert "pageTracker._trackPageview('/virtual/about');" in about
    home = _html(client.get("/"))
    assert "_gat._getTracker('UA-123456-7')" in home
    assert "pageTracker._trackPageview();" in home


# -------------------- skipped --------------------
def test_json_responses_pass_through(client):
    resp = client.get("/analytics/config")
    assert resp.mimetype == "application/json"
    assert resp.get_json()["tracker_id"] == "UA-123456-7"
    assert "_gat" not in resp.get_data(as_text=True)


def test_other_environment_is_not_tracked(app, config):
    c = Client(GoogleAnalyticsMiddleware(app, config, environment="development"))
    assert "_gat" not in _html(c.get("/"))


def test_unlisted_format_is_not_tracked(client):
    assert "_gat" not in _html(client.get("/", headers={"Accept": "application/json"}))


def test_accept_all_is_tracked(client):
    assert "_gat" in _html(client.get("/", headers={"Accept": "*/*"}))


def test_disabled_middleware_is_transparent(app, config):
    c = Client(GoogleAnalyticsMiddleware(app, config, environment="test", enabled=False))
    assert "_gat" not in _html(c.get("/"))


def test_compressed_body_passes_through(config):
    def gz(environ, start_response):
        start_response("200 OK", [("Content-Type", "text/html"), ("Content-Encoding", "gzip")])
        return [b"\x1f\x8b..."]
    resp = Client(GoogleAnalyticsMiddleware(gz, config, environment="test")).get("/")
    assert resp.get_data() == b"\x1f\x8b..."


def test_undecodable_body_passes_through(config):
    def latin(environ, start_response):
        start_response("200 OK", [("Content-Type", "text/html; charset=utf-8")])
        return [b"<body>\xff</body>"]
    resp = Client(GoogleAnalyticsMiddleware(latin, config, environment="test")).get("/")
    assert resp.get_data() == b"<body>\xff</body>"


def test_generator_app_that_starts_response_lazily(config):
    def lazy(environ, start_response):
        start_response("200 OK", [("Content-Type", "text/html")])
        yield b"<html><body>"
        yield b"</body></html>"
    html = _html(Client(GoogleAnalyticsMiddleware(lazy, config, environment="test")).get("/"))
    assert html == "<html><body></body></html>"


def test_streamed_html_is_sent_without_reading_ahead(config):
    pulled = []
    def stream(environ, start_response):
        start_response("200 OK", [("Content-Type", "text/html; charset=utf-8")])
        for i in range(1000):
            pulled.append(i)
            yield b"<p>%d</p>" % i
    sent = []
    mw = GoogleAnalyticsMiddleware(stream, config, environment="test")
    first = next(iter(mw({"PATH_INFO": "/", "REQUEST_METHOD": "GET"}, lambda s, h, e=None: sent.append(s))))
    assert first == b"<p>0</p>"
    assert sent == ["200 OK"]
    assert len(pulled) <= 1


def test_sized_iterable_html_is_still_injected(config):
    def sized(environ, start_response):
        data = b"<html><body></body></html>"
        start_response("200 OK", [("Content-Type", "text/html"), ("Content-Length", str(len(data)))])
        return iter([data])
    html = _html(Client(GoogleAnalyticsMiddleware(sized, config, environment="test")).get("/"))
    assert "_gat._getTracker" in html


def test_head_reports_same_length_as_get(client):
    get = client.get("/")
    head = client.head("/")
    assert head.get_data() == b""
    assert head.headers["Content-Length"] == get.headers["Content-Length"]


def test_head_untracked_format_keeps_length(client, app):
    plain = app.test_client().head("/")
    head = client.head("/", headers={"Accept": "application/json"})
    assert head.headers["Content-Length"] == plain.headers["Content-Length"]


def test_missing_tracker_id_raises(client, config):
    config.tracker_id = None
    with pytest.raises(ConfigurationError):
        client.get("/")


def test_google_analytics_code_helper(wrapped):
    environ = {"PATH_INFO": "/", "wsgi.url_scheme": "http"}
    assert "_gat._getTracker" in wrapped.google_analytics_code(environ)
    environ["HTTP_ACCEPT"] = "application/json"
    assert wrapped.google_analytics_code(environ) is None


def test_healthz_and_version(app, config):
    c = app.test_client()
    assert c.get("/healthz").get_json() == {"ok": True, "warnings": []}
    config.tracker_id = None
    assert c.get("/healthz").get_json()["warnings"] == ["GA_TRACKER_ID missing"]
    assert c.get("/version").get_json() == {"version": "1.0.0"}
