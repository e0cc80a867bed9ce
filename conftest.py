import httpx
import pytest

from fake_backend import create_app
from plano.client import LayoutClient, Session
from plano.editor import LayoutEditor
from plano.floorplan import FloorPlan


@pytest.fixture
def backend():
    return create_app({"Bistro": "secret"})


@pytest.fixture
def client(backend):
    http = httpx.Client(transport=httpx.WSGITransport(app=backend), base_url="http://testserver")
    with LayoutClient(http=http) as layout_client:
        yield layout_client


@pytest.fixture
def session(backend):
    account = backend.config["ACCOUNTS"]["Bistro"]
    return Session(account["access_token"], account["id"])


@pytest.fixture
def floorplan():
    return FloorPlan(width=800, height=600)


@pytest.fixture
def editor(client, floorplan):
    return LayoutEditor(client=client, floorplan=floorplan)


@pytest.fixture
def stored_table(backend, session):
    """Put one table straight into the backend's storage and return it."""
    def add(**fields):
        record = {
            "id": f"{len(backend.config['TABLES']) + 100:024x}",
            "id_restaurante": session.restaurant_id,
            "tipo": "mesa",
            "nombre": "Mesa 1",
            "pos_x": 100.0,
            "pos_y": 100.0,
            "size_x": 80.0,
            "size_y": 80.0,
            "forma": "cuadrado",
            "reservable": True,
            "min_personas": 2,
            "max_personas": 4,
        }
        record.update(fields)
        backend.config["TABLES"].append(record)
        return record
    return add
