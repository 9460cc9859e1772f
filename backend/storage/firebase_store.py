import logging
from typing import Any

import requests

from backend.storage.base import DataStore

logger = logging.getLogger(__name__)


class FirebaseDataStore(DataStore):
    """Remote backend: Firebase Realtime Database through its REST API.

    Every document lives at ``{database_url}/{namespace}/{key}.json``. Network
    and HTTP errors are logged and reported as ``None`` / ``False``.
    """

    def __init__(
        self,
        database_url: str,
        auth_token: str | None = None,
        timeout: int = 10,
        http: requests.Session | None = None,
    ):
        super().__init__()
        self.database_url = database_url.rstrip("/")
        self.auth_token = auth_token
        self.timeout = timeout
        self.http = http or requests.Session()

    def _url(self, namespace: str, key: str | None = None) -> str:
        path = namespace if key is None else f"{namespace}/{key}"
        return f"{self.database_url}/{path}.json"

    @property
    def _params(self) -> dict[str, str]:
        return {"auth": self.auth_token} if self.auth_token else {}

    def _request(self, method: str, url: str, **kwargs) -> requests.Response | None:
        try:
            response = self.http.request(method, url, params=self._params, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Firebase %s %s failed: %s", method, url, exc)
            return None
        return response

    def get(self, namespace: str, key: str) -> dict[str, Any] | None:
        response = self._request("GET", self._url(namespace, key))
        if response is None:
            return None
        payload = response.json()
        return payload if isinstance(payload, dict) else None

    def list(self, namespace: str) -> list[dict[str, Any]]:
        response = self._request("GET", self._url(namespace))
        if response is None:
            return []
        payload = response.json()
        if not isinstance(payload, dict):
            return []
        return [payload[key] for key in sorted(payload) if isinstance(payload[key], dict)]

    def _write(self, namespace: str, key: str, value: dict[str, Any]) -> bool:
        return self._request("PUT", self._url(namespace, key), json=value) is not None

    def _delete(self, namespace: str, key: str) -> bool:
        return self._request("DELETE", self._url(namespace, key)) is not None

    def _delete_all(self, namespace: str) -> bool:
        return self._request("DELETE", self._url(namespace)) is not None

    def ping(self) -> bool:
        # Firebase answers `.info/connected` for any reachable database.
        return self._request("GET", f"{self.database_url}/.info/connected.json") is not None
