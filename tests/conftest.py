import pytest
from werkzeug.test import Client

from app import app as flask_app
from ga_config import AnalyticsConfig
from ga_middleware import GoogleAnalyticsMiddleware

HTML = "<html><body><h1>hi</h1></body></html>"


@pytest.fixture
def config():
    return AnalyticsConfig(tracker_id="UA-123456-7", environments={"test"})


@pytest.fixture
def app(config):
    flask_app.config.update(TESTING=True, GA=config)
    return flask_app


@pytest.fixture
def wrapped(app, config):
    return GoogleAnalyticsMiddleware(app, config, environment="test",
                                     asset_path=lambda name: "/assets/" + name)


@pytest.fixture
def client(wrapped):
    return Client(wrapped)
