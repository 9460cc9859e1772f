import pytest
import requests

from backend.config import settings
from backend.storage import FirebaseDataStore, SqlDataStore, open_store


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


class FakeFirebase:
    """In-memory stand-in for the Realtime Database REST endpoint."""

    def __init__(self, base_url):
        self.base_url = base_url
        self.tree: dict = {}
        self.calls: list[tuple[str, str, dict]] = []
        self.offline = False

    def request(self, method, url, params=None, timeout=None, json=None):
        self.calls.append((method, url, params or {}))
        if self.offline:
            raise requests.ConnectionError("offline")
        parts = url[len(self.base_url) + 1 : -len(".json")].split("/")
        if parts == [".info", "connected"]:
            return FakeResponse(True)
        namespace, key = parts[0], (parts[1] if len(parts) > 1 else None)
        bucket = self.tree.setdefault(namespace, {})
        if method == "GET":
            return FakeResponse(bucket.get(key) if key else (bucket or None))
        if method == "PUT":
            bucket[key] = json
            return FakeResponse(json)
        if method == "DELETE":
            if key:
                bucket.pop(key, None)
            else:
                self.tree.pop(namespace, None)
            return FakeResponse(None)
        return FakeResponse(status_code=405)


@pytest.fixture()
def firebase():
    http = FakeFirebase("https://lab-demo.firebaseio.com")
    store = FirebaseDataStore("https://lab-demo.firebaseio.com/", auth_token="secret", http=http)
    return store, http


def test_sql_store_crud_and_ordering(store):
    assert store.get("patients", "P-2") is None
    assert store.set("patients", "P-2", {"id": "P-2", "name": "B"})
    assert store.set("patients", "P-1", {"id": "P-1", "name": "A"})
    assert store.set("patients", "P-2", {"id": "P-2", "name": "B2"})

    assert [doc["name"] for doc in store.list("patients")] == ["A", "B2"]
    assert store.remove("patients", "P-1")
    assert store.get("patients", "P-1") is None
    assert store.clear("patients")
    assert store.list("patients") == []
    assert store.ping() is True


def test_namespaces_are_isolated(store):
    store.set("patients", "X", {"id": "X"})
    store.set("services", "X", {"id": "X", "kind": "service"})
    store.clear("services")
    assert store.get("patients", "X") == {"id": "X"}


def test_listeners_see_successful_writes(store):
    events = []
    unsubscribe = store.subscribe("results", lambda ns, key, value: events.append((ns, key, value)))

    store.set("results", "R-1", {"id": "R-1"})
    store.set("invoices", "I-1", {"id": "I-1"})
    store.remove("results", "R-1")
    store.clear("results")
    unsubscribe()
    store.set("results", "R-2", {"id": "R-2"})

    assert events == [
        ("results", "R-1", {"id": "R-1"}),
        ("results", "R-1", None),
        ("results", None, None),
    ]


def test_failing_listener_does_not_fail_the_write(store):
    def boom(*_):
        raise RuntimeError("listener bug")

    store.subscribe("results", boom)
    assert store.set("results", "R-1", {"id": "R-1"}) is True
    assert store.get("results", "R-1") == {"id": "R-1"}


def test_firebase_store_maps_documents_to_rest_paths(firebase):
    store, http = firebase
    assert store.set("services", "SRV-2", {"id": "SRV-2"})
    assert store.set("services", "SRV-1", {"id": "SRV-1"})

    assert http.calls[0] == ("PUT", "https://lab-demo.firebaseio.com/services/SRV-2.json", {"auth": "secret"})
    assert store.get("services", "SRV-1") == {"id": "SRV-1"}
    assert [doc["id"] for doc in store.list("services")] == ["SRV-1", "SRV-2"]
    assert store.list("patients") == []

    assert store.remove("services", "SRV-1")
    assert store.get("services", "SRV-1") is None
    assert store.clear("services")
    assert store.list("services") == []
    assert store.ping() is True


def test_firebase_store_reports_network_failures(firebase):
    store, http = firebase
    events = []
    store.subscribe("results", lambda *args: events.append(args))
    http.offline = True

    assert store.set("results", "R-1", {"id": "R-1"}) is False
    assert store.get("results", "R-1") is None
    assert store.list("results") == []
    assert store.ping() is False
    assert events == []


def test_open_store_follows_data_source(db_session, monkeypatch):
    assert isinstance(open_store(db_session), SqlDataStore)

    monkeypatch.setattr(settings, "data_source", "firebase")
    monkeypatch.setattr(settings, "firebase_database_url", None)
    with pytest.raises(RuntimeError):
        open_store(db_session)

    monkeypatch.setattr(settings, "firebase_database_url", "https://lab-demo.firebaseio.com")
    remote = open_store(db_session)
    assert isinstance(remote, FirebaseDataStore)
    assert remote.database_url == "https://lab-demo.firebaseio.com"
