import os
import tempfile

#env ustawiane przed importem shopcore (settings czytane przy imporcie)
_DB_DIR = tempfile.mkdtemp(prefix="shopcore-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["QUANTITY_CAPS"] = "Keyboard:5"
os.environ["FAULT_PRODUCTS"] = ""

import pytest
import requests
from fastapi.testclient import TestClient

from shopcore.celery_worker import celery_app
from shopcore.data.database import Base, SessionLocal, engine
from shopcore.domain.errors import ConcurrencyExhausted, NotFound
from shopcore.main import create_app
from shopcore.services import cart_client
from shopcore.services.cart_service import CartService

import shopcore.data.models  # noqa: F401


class FakeResponse:
    def __init__(self, status_code: int):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeCartHttp:
    """
    Podmienia requests.delete w CartClient.
    Domyslnie przekazuje DELETE /carts/{user_id} prosto do CartService,
    scripted - kolejka odpowiedzi / wyjatkow zwracanych po kolei.
    """

    def __init__(self):
        self.calls = []
        self.scripted = []

    def delete(self, url, timeout=None):
        self.calls.append({"url": url, "timeout": timeout})
        if self.scripted:
            outcome = self.scripted.pop(0) if len(self.scripted) > 1 else self.scripted[0]
            if isinstance(outcome, Exception):
                raise outcome
            return FakeResponse(outcome)

        user_id = url.rsplit("/", 1)[-1]
        session = SessionLocal()
        try:
            CartService(session).clear(user_id)
            return FakeResponse(200)
        except NotFound:
            return FakeResponse(404)
        except ConcurrencyExhausted:
            return FakeResponse(409)
        finally:
            session.close()


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def eager_celery():
    celery_app.conf.task_always_eager = True
    yield
    celery_app.conf.task_always_eager = False


@pytest.fixture(autouse=True)
def cart_http(monkeypatch):
    fake = FakeCartHttp()
    monkeypatch.setattr(cart_client.requests, "delete", fake.delete)
    return fake


@pytest.fixture()
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def other_db():
    #druga niezalezna sesja - konkurencyjny zapis
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client():
    return TestClient(create_app("all"))
