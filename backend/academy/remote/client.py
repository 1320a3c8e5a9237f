"""
Academy Backend: Hosted Backend Client
=======================================

What:  Entry point to the hosted backend: auth, tables and storage behind
       one object sharing one HTTP client and one session.
How:   Table and storage requests are authorized with the signed-in user's
       access token when there is one, otherwise with the public key, so
       row-level policies see the right identity.
Who:   Built per request by `academy.dependencies`; tests build it around
       an `httpx.MockTransport`.
"""

from typing import Dict, Optional

import httpx

from academy.remote.auth import AuthClient
from academy.remote.query import QueryBuilder
from academy.remote.storage import StorageClient
from academy.remote.types import SessionStorage


class BackendClient:
    """
    Args:
        http:            Shared `httpx.AsyncClient`; not closed by this object
        base_url:        Project URL of the hosted backend
        api_key:         Public API key
        session_storage: Where the auth session is persisted, if anywhere
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        session_storage: Optional[SessionStorage] = None,
    ):
        self._http = http
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.auth = AuthClient(http, self.base_url, api_key, storage=session_storage)
        self.storage = StorageClient(http, self.base_url, self._request_headers)

    def _request_headers(self) -> Dict[str, str]:
        token = self.auth.access_token or self._api_key
        return {"apikey": self._api_key, "Authorization": f"Bearer {token}"}

    def table(self, name: str) -> QueryBuilder:
        return QueryBuilder(self._http, f"{self.base_url}/rest/v1/{name}", self._request_headers, name)
