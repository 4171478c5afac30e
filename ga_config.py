# ga_config.py — analytics configuration object, loaded from env/.env
import copy
import os
from collections import OrderedDict, namedtuple
from types import MappingProxyType
from typing import Any, Dict, Iterable, Optional

from dotenv import load_dotenv

# -------------------- Defaults --------------------
ANALYTICS_URL     = "http://www.google-analytics.com/urchin.js"
ANALYTICS_SSL_URL = "https://ssl.google-analytics.com/urchin.js"
ENVIRONMENTS      = ("production",)
FORMATS           = ("html", "all")   # "all" is what GA's site verification requests

SCOPE_VISITOR = 1
SCOPE_SESSION = 2
SCOPE_PAGE    = 3

CustomVar = namedtuple("CustomVar", "value slot scope")


def truthy(v: str) -> bool:
    return str(v or "").strip().lower() in ("1", "true", "t", "yes", "on")

def _split(v: str):
    return {p.strip().lower() for p in (v or "").split(",") if p.strip()}

def _names(v):
    return (v,) if isinstance(v, str) else v

def is_blank(v) -> bool:
    return v is None or not str(v).strip()


class AnalyticsConfig:
    """Everything needed to render and place the tracking snippet.

    Plain attributes, no validation on assignment; ``ga_code.enabled``
    checks the required fields before any code is generated.
    """

    def __init__(self,
                 tracker_id: Optional[str] = None,
                 domain_name: Optional[str] = None,
                 legacy_mode: bool = False,
                 asynchronous_mode: bool = False,
                 analytics_url: str = ANALYTICS_URL,
                 analytics_ssl_url: str = ANALYTICS_SSL_URL,
                 environments: Iterable[str] = ENVIRONMENTS,
                 formats: Iterable[str] = FORMATS,
                 defer_load: bool = True,
                 local_javascript: bool = False):
        self.tracker_id = tracker_id
        self.domain_name = domain_name
        self.legacy_mode = legacy_mode
        self.asynchronous_mode = asynchronous_mode
        self.analytics_url = analytics_url
        self.analytics_ssl_url = analytics_ssl_url
        self.environments = set(_names(environments))
        self.formats = {str(f) for f in _names(formats)}
        self.defer_load = defer_load
        self.local_javascript = local_javascript
        self._custom_vars: "OrderedDict[str, CustomVar]" = OrderedDict()

    # -------------------- Custom variables --------------------
    def set_custom_var(self, name: str, value, slot: int = 1, scope: int = SCOPE_PAGE):
        """slot is 1..5; scope is visitor (1), session (2) or page (3)."""
        self._custom_vars[name] = CustomVar(value, slot, scope)

    def clear_custom_var(self, name: str):
        self._custom_vars.pop(name, None)

    def clear_all_custom_vars(self):
        self._custom_vars.clear()

    @property
    def custom_vars(self):
        return MappingProxyType(self._custom_vars)

    # -------------------- Snapshot / env --------------------
    def snapshot(self) -> Dict[str, Any]:
        out = {
            "tracker_id": self.tracker_id,
            "domain_name": self.domain_name,
            "legacy_mode": self.legacy_mode,
            "asynchronous_mode": self.asynchronous_mode,
            "analytics_url": self.analytics_url,
            "analytics_ssl_url": self.analytics_ssl_url,
            "environments": sorted(self.environments),
            "formats": sorted(self.formats),
            "defer_load": self.defer_load,
            "local_javascript": self.local_javascript,
            "custom_vars": {k: v._asdict() for k, v in self._custom_vars.items()},
        }
        return copy.deepcopy(out)

    @classmethod
    def from_env(cls, prefix: str = "GA_", dotenv: bool = True) -> "AnalyticsConfig":
        if dotenv:
            load_dotenv()

        def env(name, default=None):
            v = os.getenv(prefix + name)
            return default if v is None else v

        cfg = cls(
            tracker_id        = env("TRACKER_ID") or None,
            domain_name       = env("DOMAIN_NAME") or None,
            legacy_mode       = truthy(env("LEGACY_MODE", "false")),
            asynchronous_mode = truthy(env("ASYNCHRONOUS_MODE", "false")),
            analytics_url     = env("ANALYTICS_URL", ANALYTICS_URL),
            analytics_ssl_url = env("ANALYTICS_SSL_URL", ANALYTICS_SSL_URL),
            defer_load        = truthy(env("DEFER_LOAD", "true")),
            local_javascript  = truthy(env("LOCAL_JAVASCRIPT", "false")),
        )
        if env("ENVIRONMENTS") is not None:
            cfg.environments = _split(env("ENVIRONMENTS"))
        if env("FORMATS") is not None:
            cfg.formats = _split(env("FORMATS"))
        return cfg

    def __repr__(self):
        return "AnalyticsConfig(tracker_id=%r, mode=%s)" % (self.tracker_id, self.mode)

    @property
    def mode(self) -> str:
        if self.asynchronous_mode:
            return "asynchronous"
        return "legacy" if self.legacy_mode else "synchronous"
