import os
import pytest

from token_deployer import create_app
from token_deployer.models import db as _db

from fakes import FakeApi, FakeConnector

@pytest.fixture(scope="session")
def app():
    os.environ["FLASK_ENV"] = "testing"
    app = create_app("testing")
    with app.app_context():
        _db.create_all()
        yield app
        _db.drop_all()

@pytest.fixture()
def client(app):
    return app.test_client()

@pytest.fixture()
def fake_api():
    return FakeApi()

@pytest.fixture()
def fake_connector():
    return FakeConnector()
