"""
REST API client for the Rancher v1 (Cattle) API.
"""

import logging
import random
import time
from typing import Dict, List, Optional

import requests

from errors import RemoteError
from models import ServiceRef, UpgradeStrategy

logger = logging.getLogger(__name__)

ACTION_STATUS_CODES = (200, 201, 202)


class RancherRestClient:
    """REST client for the services, projects and stacks of a Rancher server."""

    RETRYABLE_STATUS_CODES = {409, 429, 500, 502, 503, 504}

    def __init__(
        self,
        base_url: str,
        access_key: str,
        secret_key: str,
        timeout_s: int = 60,
        max_retries: int = 0,
        base_delay: float = 2.0,
    ):
        """
        Initialize the Rancher REST client.

        Args:
            base_url: API endpoint, e.g. http://rancher-server:8080/v1
            access_key: API access key
            secret_key: API secret key
            timeout_s: Request timeout in seconds
            max_retries: Retries for transient errors (0 means fail fast)
            base_delay: Base delay for exponential backoff
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        self.base_delay = base_delay

        self.session = requests.Session()
        self.session.auth = (access_key, secret_key)
        self.session.headers.update({"Accept": "application/json"})

    def _url(self, path: str) -> str:
        """Construct full API URL from path."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request_with_retry(
        self, method: str, url: str, retries: Optional[int] = None, **kwargs
    ) -> requests.Response:
        """
        Execute an HTTP request, retrying transient errors.

        Args:
            method: HTTP method (GET, POST)
            url: Request URL
            retries: Retry limit, defaults to max_retries; 0 sends exactly once
            **kwargs: Additional request parameters

        Returns:
            The final response, which may still carry an error status

        Raises:
            RemoteError: If the request cannot be sent
        """
        if retries is None:
            retries = self.max_retries
        last_error = None

        for attempt in range(retries + 1):
            final = attempt >= retries
            try:
                if method.upper() == "GET":
                    resp = self.session.get(url, timeout=self.timeout_s, **kwargs)
                elif method.upper() == "POST":
                    resp = self.session.post(url, timeout=self.timeout_s, **kwargs)
                else:
                    raise ValueError(f"Unsupported method: {method}")
            except requests.RequestException as e:
                last_error = str(e)
                if final:
                    break
                delay = self._calculate_delay(attempt)
                logger.warning(
                    f"Request error: {e}, attempt {attempt + 1}/{retries + 1}, waiting {delay:.1f}s..."
                )
                time.sleep(delay)
                continue

            logger.debug(f"{method.upper()} {url} -> {resp.status_code}")
            if resp.status_code in self.RETRYABLE_STATUS_CODES and not final:
                delay = self._calculate_delay(attempt, resp)
                logger.warning(
                    f"Retryable error {resp.status_code} ({self._error_message(resp)}), attempt {attempt + 1}/{retries + 1}, waiting {delay:.1f}s..."
                )
                time.sleep(delay)
                continue

            return resp

        raise RemoteError(f"{method.upper()} {url} failed: {last_error}")

    def _calculate_delay(self, attempt: int, resp=None) -> float:
        """
        Calculate delay with exponential backoff and jitter.

        Args:
            attempt: Current attempt number
            resp: Optional response object (to check Retry-After header)

        Returns:
            Delay in seconds
        """
        if resp is not None and "Retry-After" in resp.headers:
            try:
                return float(resp.headers["Retry-After"])
            except ValueError:
                pass

        delay = self.base_delay * (2**attempt)
        jitter = delay * random.uniform(-0.1, 0.1)
        return min(delay + jitter, 60.0)

    @staticmethod
    def _error_message(resp: requests.Response) -> str:
        """Extract the Rancher error message from a response, if any."""
        try:
            data = resp.json()
        except ValueError:
            return resp.text[:200]
        if isinstance(data, dict):
            return str(data.get("message") or data.get("code") or "")
        return ""

    def _json(self, resp: requests.Response, what: str, ok=(200,)) -> Dict:
        """
        Check the response status and decode its JSON body.

        Raises:
            RemoteError: On an unexpected status or a malformed body
        """
        if resp.status_code not in ok:
            raise RemoteError(
                f"{what} failed ({resp.status_code}): {self._error_message(resp)}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteError(
                f"{what} returned a malformed body: {e}",
                status_code=resp.status_code,
            ) from e
        if not isinstance(data, dict):
            raise RemoteError(
                f"{what} returned unexpected response: {data!r}",
                status_code=resp.status_code,
            )
        return data

    def _list(self, path: str, params: Dict[str, str], what: str) -> List[Dict]:
        """GET a collection, following pagination links."""
        url: Optional[str] = self._url(path)
        items: List[Dict] = []

        while url:
            resp = self._request_with_retry("GET", url, params=params)
            data = self._json(resp, what)
            items.extend(data.get("data", []))

            url = (data.get("pagination") or {}).get("next")
            # The next link already carries the filters.
            params = {}

        return items

    def _action(self, service_id: str, action: str, body: Optional[Dict] = None) -> Dict:
        """POST a service action and return the acknowledged resource.

        Actions are not idempotent, so they are sent once and never retried.
        """
        url = self._url(f"services/{service_id}")
        resp = self._request_with_retry(
            "POST", url, retries=0, params={"action": action}, json=body or {}
        )
        return self._json(resp, f"{action} of service {service_id}", ok=ACTION_STATUS_CODES)

    def list_projects(self, name: Optional[str] = None) -> List[Dict]:
        """
        List projects (Rancher environments), optionally filtered by name.

        Args:
            name: Exact project name to keep

        Returns:
            List of project JSON objects
        """
        projects = self._list("projects", {}, "List projects")
        if name is None:
            return projects
        return [p for p in projects if p.get("name") == name]

    def list_stacks(self, project_id: str, name: str) -> List[Dict]:
        """List stacks named `name` inside a project."""
        params = {"name": name, "accountId": project_id}
        return self._list("environments", params, "List stacks")

    def list_services(self, project_id: str, stack_id: str, name: str) -> List[Dict]:
        """List services named `name` inside a stack."""
        params = {"name": name, "accountId": project_id, "environmentId": stack_id}
        return self._list("services", params, "List services")

    def get_service(self, service_id: str) -> ServiceRef:
        """
        Read the current state of a service.

        Args:
            service_id: Service id

        Returns:
            Fresh ServiceRef snapshot

        Raises:
            RemoteError: If the API call fails
        """
        resp = self._request_with_retry("GET", self._url(f"services/{service_id}"))
        data = self._json(resp, f"Get service {service_id}")
        if "id" not in data:
            raise RemoteError(f"Get service {service_id} returned no id: {data!r}")
        return ServiceRef.from_api(data)

    def upgrade(self, service_id: str, strategy: UpgradeStrategy) -> Dict:
        """
        Start an in-service upgrade.

        Args:
            service_id: Service id
            strategy: Rollout policy, with the target launch config set

        Returns:
            Acknowledged service resource

        Raises:
            RemoteError: If the API call fails
        """
        body = {"inServiceStrategy": strategy.to_api()}
        return self._action(service_id, "upgrade", body)

    def finish_upgrade(self, service_id: str) -> Dict:
        """Commit a completed upgrade."""
        return self._action(service_id, "finishupgrade")

    def rollback(self, service_id: str) -> Dict:
        """Revert a service to its pre-upgrade launch config."""
        return self._action(service_id, "rollback")
