# ga_middleware.py — WSGI middleware that adds the GA snippet to HTML responses.
# Wrap any WSGI app (see wsgi.py); the wrapped app stays untouched.
import logging
import posixpath
from itertools import chain

from werkzeug.datastructures import MIMEAccept
from werkzeug.http import parse_accept_header, parse_options_header
from werkzeug.wsgi import ClosingIterator

from ga_code import Overrides, enabled, generate_code, default_asset_path
from ga_inject import inject_code

log = logging.getLogger(__name__)

ENVIRON_KEY = "ga.overrides"

MIME_FORMATS = {
    "text/html": "html",
    "application/xhtml+xml": "html",
    "*/*": "all",
    "application/json": "json",
    "application/xml": "xml",
    "text/xml": "xml",
    "text/javascript": "js",
    "application/javascript": "js",
    "text/plain": "text",
    "text/csv": "csv",
}
EXT_FORMATS = {"htm": "html", "xhtml": "html"}


def override(environ, domain_name=None, tracker_id=None, trackpageview=None):
    """Per-request overrides; call from a view with request.environ."""
    environ[ENVIRON_KEY] = Overrides(domain_name, tracker_id, trackpageview)

def request_format(environ) -> str:
    ext = posixpath.splitext(environ.get("PATH_INFO") or "")[1].lstrip(".").lower()
    if ext:
        return EXT_FORMATS.get(ext, ext)
    accept = environ.get("HTTP_ACCEPT")
    if not accept:
        return "html"
    best = parse_accept_header(accept, MIMEAccept).best
    if not best:
        return "html"
    best = best.lower()
    return MIME_FORMATS.get(best, best.rsplit("/", 1)[-1])

def _header(headers, name):
    name = name.lower()
    for k, v in headers:
        if k.lower() == name:
            return v
    return None

def _with_length(headers, n):
    out = [(k, v) for k, v in headers if k.lower() != "content-length"]
    out.append(("Content-Length", str(n)))
    return out


class GoogleAnalyticsMiddleware:
    def __init__(self, app, config, environment="development", asset_path=None, enabled=True):
        self.app = app
        self.config = config
        self.environment = environment
        self.asset_path = asset_path or default_asset_path
        self.enabled = enabled

    def google_analytics_code(self, environ):
        """Snippet for this request, or None when tracking is off for it."""
        if not enabled(self.config, self.environment, request_format(environ)):
            return None
        return generate_code(
            self.config,
            ssl=environ.get("wsgi.url_scheme") == "https",
            overrides=environ.get(ENVIRON_KEY),
            asset_path=self.asset_path,
        )

    def __call__(self, environ, start_response):
        if not self.enabled:
            return self.app(environ, start_response)

        captured = {}
        body = []
        def _start_response(status, headers, exc_info=None):
            captured.update(status=status, headers=headers, exc_info=exc_info)
            return body.append

        result = self.app(environ, _start_response)
        iterator = iter(result)
        if not captured:
            # start_response is due before the first chunk
            for chunk in iterator:
                body.append(chunk)
                break

        path = environ.get("PATH_INFO")
        status, headers = captured["status"], captured["headers"]
        charset = self._html_charset(headers)
        length = _header(headers, "Content-Length")
        skip = None
        if charset is None:
            skip = "not plain html"
        elif length is None and not isinstance(result, (list, tuple)):
            skip = "streamed"
        if skip:
            log.debug("ga: skip %s (%s)", path, skip)
            start_response(status, headers, captured["exc_info"])
            return ClosingIterator(chain(body, iterator), getattr(result, "close", None))

        try:
            body.extend(iterator)
        finally:
            if hasattr(result, "close"):
                result.close()
        data = b"".join(body)

        if environ.get("REQUEST_METHOD") == "HEAD" and not data:
            # no body to rewrite; report the length the GET would have
            code = self.google_analytics_code(environ)
            if code and length and length.strip().isdigit():
                headers = _with_length(headers, int(length) + len(code.encode(charset)))
            start_response(status, headers, captured["exc_info"])
            return [data]

        try:
            text = data.decode(charset)
        except (UnicodeDecodeError, LookupError):
            log.debug("ga: skip %s (body not %s)", path, charset)
            text = None

        if text is not None:
            code = self.google_analytics_code(environ)
            if code:
                injected = inject_code(self.config, text, code)
                if injected is not text:
                    data = injected.encode(charset)
                    headers = _with_length(headers, len(data))
                    log.debug("ga: injected %s snippet into %s", self.config.mode, path)

        start_response(status, headers, captured["exc_info"])
        return [data]

    @staticmethod
    def _html_charset(headers):
        ctype = _header(headers, "Content-Type")
        if not ctype or _header(headers, "Content-Encoding"):
            return None
        mimetype, options = parse_options_header(ctype)
        if mimetype.lower() != "text/html":
            return None
        return options.get("charset") or "utf-8"
