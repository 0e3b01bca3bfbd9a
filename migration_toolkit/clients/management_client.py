"""Management API client built on requests."""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter

from .base import ManagementClientBase
from ..exceptions import TransportError, remote_error
from ..models.migration import EnvironmentConfig
from ..services.retry import RetryPolicy

logger = logging.getLogger(__name__)


class ManagementClient(ManagementClientBase):
    """
    Client of a Kontent.ai style Management API (v2).

    All calls go through the retry policy. Failures are classified once, here,
    into RemoteApiError subclasses; nothing downstream inspects responses.
    """

    def __init__(
        self,
        environment: EnvironmentConfig,
        retry_policy: Optional[RetryPolicy] = None,
        pool_size: int = 10,
        timeout: float = 60.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the client.

        Args:
            environment: Environment id, API key and base URL
            retry_policy: Policy applied to every call
            pool_size: Size of the HTTP connection pool
            timeout: Timeout of a single HTTP request in seconds
            session: Custom requests session
        """
        self.environment = environment
        self.base_url = f"{environment.base_url.rstrip('/')}/projects/{environment.environment_id}"
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout
        self._session = session or self._create_session(pool_size)

    def _create_session(self, pool_size: int) -> requests.Session:
        """Create a requests session with authentication and a sized connection pool."""
        session = requests.Session()

        if self.environment.api_key:
            session.headers["Authorization"] = f"Bearer {self.environment.api_key}"

        adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        return session

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        return self.retry_policy.execute(
            lambda: self._send(method, url, json=json, data=data, headers=headers),
            description=f"{method} {path}",
        )

    def _send(
        self,
        method: str,
        url: str,
        json: Optional[Any] = None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        authenticated: bool = True
    ) -> requests.Response:
        logger.debug(f"{method} {url}")
        send = self._session.request if authenticated else requests.request
        try:
            response = send(
                method, url, json=json, data=data, headers=headers, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if not response.ok:
            raise self._error_from_response(method, url, response)

        return response

    def _error_from_response(self, method: str, url: str, response: requests.Response):
        error_code = None
        message = response.reason or "Request failed"
        details: Dict[str, Any] = {"url": url}
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            if isinstance(body.get("error_code"), int):
                error_code = body["error_code"]
            message = body.get("message") or message
            if body.get("validation_errors"):
                details["validation_errors"] = body["validation_errors"]
            if body.get("request_id"):
                details["request_id"] = body["request_id"]

        return remote_error(
            f"{method} {url}: {message}",
            error_code=error_code,
            status=response.status_code,
            details=details,
        )

    def _get_json(self, path: str) -> Any:
        response = self._request("GET", path)
        return response.json() if response.content else {}

    def _list_paginated(self, path: str, key: str) -> List[Dict[str, Any]]:
        """Fetch all pages of a listing, following continuation tokens."""
        results: List[Dict[str, Any]] = []
        continuation: Optional[str] = None

        while True:
            headers = {"x-continuation": continuation} if continuation else None
            response = self._request("GET", path, headers=headers)
            body = response.json()
            results.extend(body.get(key, []))

            continuation = (body.get("pagination") or {}).get("continuation_token")
            if not continuation:
                break

        return results

    @staticmethod
    def _item_path(codename: Optional[str] = None, item_id: Optional[str] = None) -> str:
        if codename:
            return f"/items/codename/{quote(codename)}"
        if item_id:
            return f"/items/{quote(item_id)}"
        raise ValueError("Either codename or item_id is required")

    def _variant_path(self, item_codename: str, language_codename: str) -> str:
        return f"{self._item_path(codename=item_codename)}/variants/codename/{quote(language_codename)}"

    # Environment structure

    def list_content_types(self) -> List[Dict[str, Any]]:
        return self._list_paginated("/types", "types")

    def list_snippets(self) -> List[Dict[str, Any]]:
        return self._list_paginated("/snippets", "snippets")

    def list_collections(self) -> List[Dict[str, Any]]:
        return self._get_json("/collections").get("collections", [])

    def list_languages(self) -> List[Dict[str, Any]]:
        return self._list_paginated("/languages", "languages")

    def list_workflows(self) -> List[Dict[str, Any]]:
        return self._get_json("/workflows")

    def list_taxonomies(self) -> List[Dict[str, Any]]:
        return self._list_paginated("/taxonomies", "taxonomies")

    def list_asset_folders(self) -> List[Dict[str, Any]]:
        return self._get_json("/folders").get("folders", [])

    # Content items

    def list_items(self) -> List[Dict[str, Any]]:
        return self._list_paginated("/items", "items")

    def get_item(self, codename: Optional[str] = None, item_id: Optional[str] = None) -> Dict[str, Any]:
        return self._get_json(self._item_path(codename, item_id))

    def add_item(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/items", json=data).json()

    def upsert_item(self, codename: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", self._item_path(codename=codename), json=data).json()

    # Language variants

    def get_variant(self, item_codename: str, language_codename: str) -> Dict[str, Any]:
        return self._get_json(self._variant_path(item_codename, language_codename))

    def list_item_variants(self, item_id: str) -> List[Dict[str, Any]]:
        return self._get_json(f"{self._item_path(item_id=item_id)}/variants")

    def upsert_variant(self, item_codename: str, language_codename: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", self._variant_path(item_codename, language_codename), json=data).json()

    def publish_variant(
        self,
        item_codename: str,
        language_codename: str,
        scheduled_to: Optional[str] = None,
        display_timezone: Optional[str] = None
    ) -> None:
        body = _schedule_body(scheduled_to, display_timezone)
        self._request("PUT", f"{self._variant_path(item_codename, language_codename)}/publish", json=body)

    def unpublish_variant(
        self,
        item_codename: str,
        language_codename: str,
        scheduled_to: Optional[str] = None,
        display_timezone: Optional[str] = None
    ) -> None:
        body = _schedule_body(scheduled_to, display_timezone)
        self._request("PUT", f"{self._variant_path(item_codename, language_codename)}/unpublish", json=body)

    def create_new_version(self, item_codename: str, language_codename: str) -> None:
        self._request("PUT", f"{self._variant_path(item_codename, language_codename)}/new-version")

    def cancel_scheduled_publish(self, item_codename: str, language_codename: str) -> None:
        self._request("PUT", f"{self._variant_path(item_codename, language_codename)}/cancel-scheduled-publish")

    def cancel_scheduled_unpublish(self, item_codename: str, language_codename: str) -> None:
        self._request("PUT", f"{self._variant_path(item_codename, language_codename)}/cancel-scheduled-unpublish")

    def change_workflow(
        self,
        item_codename: str,
        language_codename: str,
        workflow_codename: str,
        step_codename: str
    ) -> None:
        self._request(
            "PUT",
            f"{self._variant_path(item_codename, language_codename)}/change-workflow",
            json={
                "workflow_identifier": {"codename": workflow_codename},
                "step_identifier": {"codename": step_codename},
            },
        )

    # Assets

    def list_assets(self) -> List[Dict[str, Any]]:
        return self._list_paginated("/assets", "assets")

    def get_asset(self, codename: Optional[str] = None, asset_id: Optional[str] = None) -> Dict[str, Any]:
        if codename:
            return self._get_json(f"/assets/codename/{quote(codename)}")
        if asset_id:
            return self._get_json(f"/assets/{quote(asset_id)}")
        raise ValueError("Either codename or asset_id is required")

    def upload_binary_file(self, filename: str, data: bytes, content_type: str) -> Dict[str, Any]:
        response = self._request(
            "POST",
            f"/files/{quote(filename)}",
            data=data,
            headers={"Content-Type": content_type, "Content-Length": str(len(data))},
        )
        return response.json()

    def add_asset(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/assets", json=data).json()

    def upsert_asset(self, codename: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/assets/codename/{quote(codename)}", json=data).json()

    def download_asset(self, url: str) -> bytes:
        # Asset URLs point at a public CDN; the API key is not sent there
        response = self.retry_policy.execute(
            lambda: self._send("GET", url, authenticated=False),
            description=f"download {url}",
        )
        return response.content


def _schedule_body(scheduled_to: Optional[str], display_timezone: Optional[str]) -> Optional[Dict[str, Any]]:
    if not scheduled_to:
        return None
    body = {"scheduled_to": scheduled_to}
    if display_timezone:
        body["display_timezone"] = display_timezone
    return body
