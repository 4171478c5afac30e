# ga_code.py — Google Analytics snippet builders (legacy urchin.js, ga.js sync, ga.js async)
from collections import namedtuple
from typing import Callable, List, Optional

from ga_config import AnalyticsConfig, is_blank


class ConfigurationError(Exception):
    """tracker_id or analytics_url is missing."""


Overrides = namedtuple("Overrides", "domain_name tracker_id trackpageview",
                       defaults=(None, None, None))
NO_OVERRIDES = Overrides()


def default_asset_path(filename: str) -> str:
    return "/static/" + filename


# -------------------- Enabled check --------------------
def enabled(config: AnalyticsConfig, environment: str, request_format: str) -> bool:
    if is_blank(config.tracker_id) or is_blank(config.analytics_url):
        raise ConfigurationError(
            "Google Analytics needs a tracker_id and an analytics_url "
            "(tracker_id=%r, analytics_url=%r)" % (config.tracker_id, config.analytics_url))
    return environment in config.environments and str(request_format) in config.formats


# -------------------- Helpers --------------------
_JS_ESCAPES = {
    "\\": "\\\\", "'": "\\'", '"': '\\"',
    "<": "\\x3C", ">": "\\x3E",
    "\n": "\\n", "\r": "\\r",
    "\u2028": "\\u2028", "\u2029": "\\u2029",
}

def escape_js(value) -> str:
    """Make value safe inside a quoted JS string that itself sits in HTML."""
    return "".join(_JS_ESCAPES.get(c, c) for c in str(value))

def resolve_domain(config, overrides) -> Optional[str]:
    if not is_blank(overrides.domain_name):
        return overrides.domain_name
    if not is_blank(config.domain_name):
        return config.domain_name
    return None

def resolve_tracker_id(config, overrides) -> str:
    return config.tracker_id if is_blank(overrides.tracker_id) else overrides.tracker_id

def resolve_tracked_path(overrides) -> str:
    if is_blank(overrides.trackpageview):
        return ""
    return "'%s'" % escape_js(overrides.trackpageview)

def _lines(*parts) -> str:
    return "\n".join(p for p in parts if p)


# -------------------- Legacy (urchin.js) --------------------
def legacy_js_url(config, ssl=False, asset_path: Callable[[str], str] = default_asset_path) -> str:
    if config.local_javascript:
        return asset_path("urchin.js")
    return config.analytics_ssl_url if ssl else config.analytics_url

def legacy_code(config: AnalyticsConfig, ssl: bool = False,
                overrides: Overrides = NO_OVERRIDES,
                asset_path: Callable[[str], str] = default_asset_path) -> str:
    domain = resolve_domain(config, overrides)
    domain_code = '_udn = "%s";' % escape_js(domain) if domain else None
    url = legacy_js_url(config, ssl, asset_path)
    return _lines(
        '<script src="%s" type="text/javascript">' % url,
        '</script>',
        '<script type="text/javascript">',
        '_uacct = "%s";' % escape_js(resolve_tracker_id(config, overrides)),
        domain_code,
        'urchinTracker(%s);' % resolve_tracked_path(overrides),
        '</script>',
    ) + "\n"


# -------------------- Synchronous (ga.js) --------------------
GA_JS_LOADER = """<script type="text/javascript">
  var gaJsHost = (("https:" == document.location.protocol) ? "https://ssl." : "http://www.");
  document.write(unescape("%3Cscript src='" + gaJsHost + "google-analytics.com/ga.js' type='text/javascript'%3E%3C/script%3E"));
</script>
"""

def synchronous_custom_vars(config) -> List[str]:
    return ['    pageTracker._setCustomVar(%s, "%s", "%s", %s);'
            % (var.slot, escape_js(name), escape_js(var.value), var.scope)
            for name, var in config.custom_vars.items()]

def synchronous_code(config: AnalyticsConfig,
                     overrides: Overrides = NO_OVERRIDES,
                     asset_path: Callable[[str], str] = default_asset_path) -> str:
    domain = resolve_domain(config, overrides)
    if config.local_javascript:
        loader = '<script src="%s" type="text/javascript">\n</script>\n' % asset_path("ga.js")
    else:
        loader = GA_JS_LOADER
    tracker = _lines(
        '<script type="text/javascript">',
        '<!--//--><![CDATA[//><!--',
        '  try {',
        "    var pageTracker = _gat._getTracker('%s');" % escape_js(resolve_tracker_id(config, overrides)),
        '    pageTracker._setDomainName("%s");' % escape_js(domain) if domain else None,
        '    pageTracker._initData();',
        *synchronous_custom_vars(config),
        '    pageTracker._trackPageview(%s);' % resolve_tracked_path(overrides),
        '  } catch(err) {}',
        '//--><!]]>',
        '</script>',
    )
    return loader + tracker + "\n"


# -------------------- Asynchronous (ga.js, _gaq) --------------------
ASYNC_LOADER = """  (function() {
    var ga = document.createElement('script'); ga.type = 'text/javascript'; ga.async = true;
    ga.src = ('https:' == document.location.protocol ? 'https://ssl' : 'http://www') + '.google-analytics.com/ga.js';
    (document.getElementsByTagName('head')[0] || document.getElementsByTagName('body')[0]).appendChild(ga);
  })();"""

def asynchronous_custom_vars(config) -> List[str]:
    return ["  _gaq.push(['_setCustomVar', %s, '%s', '%s', %s]);"
            % (var.slot, escape_js(name), escape_js(var.value), var.scope)
            for name, var in config.custom_vars.items()]

def asynchronous_code(config: AnalyticsConfig, overrides: Overrides = NO_OVERRIDES) -> str:
    domain = resolve_domain(config, overrides)
    path = resolve_tracked_path(overrides)
    return _lines(
        '<script type="text/javascript">',
        '  var _gaq = _gaq || [];',
        "  _gaq.push(['_setAccount', '%s']);" % escape_js(resolve_tracker_id(config, overrides)),
        "  _gaq.push(['_setDomainName','%s']);" % escape_js(domain) if domain else None,
        *asynchronous_custom_vars(config),
        "  _gaq.push(['_trackPageview', %s]);" % path if path else "  _gaq.push(['_trackPageview']);",
        ASYNC_LOADER,
        '</script>',
    ) + "\n"


# -------------------- Dispatch --------------------
def generate_code(config: AnalyticsConfig, ssl: bool = False,
                  overrides: Optional[Overrides] = None,
                  asset_path: Optional[Callable[[str], str]] = None) -> str:
    """Snippet for the configured mode. ssl only matters in legacy mode;
    the ga.js loaders pick the protocol in the browser."""
    overrides = overrides or NO_OVERRIDES
    asset_path = asset_path or default_asset_path
    if config.asynchronous_mode:
        return asynchronous_code(config, overrides)
    if config.legacy_mode:
        return legacy_code(config, ssl, overrides, asset_path)
    return synchronous_code(config, overrides, asset_path)
