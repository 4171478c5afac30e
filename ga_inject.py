# ga_inject.py — splice a snippet into rendered HTML (text substitution, no parsing)
import re

from ga_config import AnalyticsConfig

BODY_OPEN_EXACT = re.compile(r"<body>", re.IGNORECASE)
BODY_OPEN_ANY   = re.compile(r"<body[^>]*>", re.IGNORECASE)
BODY_CLOSE      = re.compile(r"</body>", re.IGNORECASE)


def insertion_point(config: AnalyticsConfig, body: str):
    """Index where the snippet goes, or None when the page has no matching tag.

    async: right after a bare <body>; deferred: right before </body>;
    otherwise right after the opening <body ...> tag.
    """
    if config.asynchronous_mode:
        m = BODY_OPEN_EXACT.search(body)
        return m.end() if m else None
    if config.defer_load:
        m = BODY_CLOSE.search(body)
        return m.start() if m else None
    m = BODY_OPEN_ANY.search(body)
    return m.end() if m else None


def inject_code(config: AnalyticsConfig, body, code: str):
    if not isinstance(body, str) or not code:
        return body
    pos = insertion_point(config, body)
    if pos is None:
        return body
    return body[:pos] + code + body[pos:]
