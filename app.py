#!/usr/bin/env python3
# Demo site for the GA injector: plain HTML pages, per-view overrides,
# config/health/version endpoints. Tracking itself is added by wsgi.py.
import os
from flask import Flask, Response, jsonify, request
from dotenv import load_dotenv

from ga_config import AnalyticsConfig
from ga_middleware import override

# -------------------- Config & constants --------------------
load_dotenv()

APP_VERSION = "1.0.0"
APP_ENV     = os.getenv("APP_ENV", "development")

app = Flask(__name__)
app.config["GA"] = AnalyticsConfig.from_env(dotenv=False)

PAGE_HTML = """<!doctype html>
<html><head><meta charset="utf-8"/><title>__TITLE__</title></head>
<body class="__CLASS__">
<h1>__TITLE__</h1>
<p>__TEXT__</p>
<p><small>v__APP_VERSION__ · __APP_ENV__</small></p>
</body></html>
"""

def page(title, text, css="page"):
    html = (PAGE_HTML
            .replace("__TITLE__", title)
            .replace("__TEXT__", text)
            .replace("__CLASS__", css)
            .replace("__APP_VERSION__", APP_VERSION)
            .replace("__APP_ENV__", APP_ENV))
    return Response(html, mimetype="text/html")

# -------------------- Routes: HTML --------------------
@app.route("/")
def home():
    return page("Home", "Tracked with the configured account.", css="home")

@app.route("/about")
def about():
    """Reported under a fixed path, optionally to another account (?tracker=UA-...)."""
    override(request.environ,
             tracker_id=request.args.get("tracker"),
             trackpageview="/virtual/about")
    return page("About", "Reported as /virtual/about.", css="about")

# -------------------- Config endpoints --------------------
@app.get("/analytics/config")
def analytics_config():
    return jsonify(app.config["GA"].snapshot())

# -------------------- Health & version --------------------
@app.get("/healthz")
def healthz():
    msg = []
    if not app.config["GA"].tracker_id: msg.append("GA_TRACKER_ID missing")
    return jsonify({"ok": True, "warnings": msg})

@app.get("/version")
def version():
    return jsonify({"version": APP_VERSION})

# -------------------- Entry --------------------
if __name__ == "__main__":
    from wsgi import app as wrapped
    from werkzeug.serving import run_simple
    port = int(os.getenv("PORT","5000"))
    run_simple("0.0.0.0", port, wrapped, use_reloader=True, use_debugger=True)
