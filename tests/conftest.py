import pytest
from fastapi.testclient import TestClient

from backend.app import config
from backend.app.main import app
from workflow.client import BackendClient, TOKEN_HEADER
from workflow.session import ItemSession

TOKEN = "test-token"


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DATA_DIR", tmp_path)
    monkeypatch.setattr(config, "API_TOKENS", {TOKEN})
    return tmp_path


@pytest.fixture
def api(data_dir):
    client = TestClient(app)
    client.headers.update({TOKEN_HEADER: TOKEN})
    return client


@pytest.fixture
def backend_client(data_dir):
    return BackendClient(api_url="http://testserver", token=TOKEN, session=TestClient(app))


@pytest.fixture
def session(backend_client):
    return ItemSession(backend_client)


class Flow:
    """Drives the backend through the supplier/operator side of a scenario."""

    def __init__(self, api):
        self.api = api

    def item(self, **fields):
        body = {
            "category": "Indoor Furniture",
            "description": "Walnut lounge chair",
            "quantity": 5,
            "dims": {"w": 24, "d": 18, "h": 30, "unit": "in"},
            "keywords": [{"id": "kw-frame", "label": "Frame"}, {"id": "kw-fabric", "label": "Fabric"}],
        }
        body.update(fields)
        r = self.api.post("/api/v1/items", json=body)
        assert r.status_code == 200, r.text
        return r.json()["id"]

    def rfq(self, item_id, **fields):
        body = {
            "quantity": 5,
            "dims": {"w": 24, "d": 18, "h": 30, "unit": "in"},
            "delivery_country": "US",
            "delivery_postal_code": "10001",
            "invited_suppliers": ["sales@acmefurniture.com"],
            "auto_invite": False,
        }
        body.update(fields)
        r = self.api.post(f"/api/v1/items/{item_id}/rfq", json=body)
        assert r.status_code == 200, r.text

    def bid(self, item_id, supplier="sup-1", prototype_cost=140.0, **fields):
        body = {
            "supplier_id": supplier,
            "unit_price": 400.0,
            "total_price": 2000.0,
            "quantity": 5,
            "production_lead_time": "6 weeks",
            "prototype_commitment": True,
            "prototype_cost": prototype_cost,
        }
        body.update(fields)
        r = self.api.post(f"/api/v1/items/{item_id}/bids", json=body)
        assert r.status_code == 200, r.text
        return r.json()["bid_id"]

    def state(self, item_id):
        return self.api.get(f"/api/v1/items/{item_id}/state").json()

    def award(self, item_id, bid_id):
        return self.api.post(f"/api/v1/items/{item_id}/award", json={"bid_id": bid_id})

    def paid(self, item_id, bid_id):
        """Request CAD + prototype on the bid and mark the payment received."""
        r = self.api.post(f"/api/v1/items/{item_id}/cad-prototype", json={"bid_id": bid_id})
        assert r.status_code == 200, r.text
        payment_id = r.json()["payment"]["id"]
        r = self.api.post(f"/api/v1/payments/{payment_id}/mark-received")
        assert r.status_code == 200, r.text
        return payment_id

    def upload_cad(self, item_id, name="chair_v.dwg"):
        r = self.api.post(f"/api/v1/items/{item_id}/cad/upload", json={"files": [{"name": name}]})
        assert r.status_code == 200, r.text

    def submit_prototype(self, item_id):
        links = [{"provider": "youtube", "url": "https://youtu.be/abc123"}]
        r = self.api.post(f"/api/v1/items/{item_id}/prototype/submit", json={"links": links})
        assert r.status_code == 200, r.text
        return r.json()["version"]


@pytest.fixture
def flow(api):
    return Flow(api)
