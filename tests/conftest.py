import pytest
from fastapi.testclient import TestClient

from phone_shop.cart import CartStore
from phone_shop.catalog import CatalogStore
from phone_shop.config import Settings
from phone_shop.database import Storage
from phone_shop.main import create_app
from phone_shop.reservations import ReservationEngine


@pytest.fixture()
def storage():
    storage = Storage("sqlite://")
    storage.create_all()
    yield storage
    storage.dispose()


@pytest.fixture()
def db(storage):
    with storage.session() as session:
        yield session


@pytest.fixture()
def catalog(db):
    catalog = CatalogStore(db)
    catalog.seed()
    return catalog


@pytest.fixture()
def cart(db):
    return CartStore(db)


@pytest.fixture()
def engine(catalog, cart):
    return ReservationEngine(catalog, cart)


@pytest.fixture()
def app():
    return create_app(Settings(database_url="sqlite://", seed_catalog=True))


@pytest.fixture()
def client(app):
    return TestClient(app)
