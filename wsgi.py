# wsgi.py — wraps the Flask app with GoogleAnalyticsMiddleware; app.py remains untouched.
import os
from app import app as flask_app
from ga_config import truthy
from ga_middleware import GoogleAnalyticsMiddleware

ENABLED    = truthy(os.getenv("GA_ENABLED", "true"))
APP_ENV    = os.getenv("APP_ENV", "development")
ASSET_PATH = os.getenv("GA_ASSET_URL_PATH", "/static").rstrip("/")

app = GoogleAnalyticsMiddleware(
    flask_app,
    flask_app.config["GA"],
    environment=APP_ENV,
    asset_path=lambda name: f"{ASSET_PATH}/{name}",
    enabled=ENABLED,
)
