"""HTTP client for the Ntando API, used by the CLI."""

from pathlib import Path
from typing import Any

import httpx

DEFAULT_API_URL = "https://ntando-computer.onrender.com/api"


class ApiError(Exception):
    """The API returned an error, or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ApiClient:
    def __init__(self, base_url: str = DEFAULT_API_URL, token: str | None = None, timeout: float = 60.0):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.Client(base_url=base_url, headers=headers, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def login(self, email: str, password: str) -> dict[str, Any]:
        return self._request("POST", "/auth/login", json={"email": email, "password": password})

    def check_domain(self, domain: str) -> bool:
        return self._request("GET", f"/domains/{domain}")["available"]

    def deploy(self, archive: Path, fields: dict[str, str | None]) -> dict[str, Any]:
        data = {k: v for k, v in fields.items() if v}
        with open(archive, "rb") as f:
            return self._request(
                "POST",
                "/deploy",
                data=data,
                files={"files": (archive.name, f, "application/zip")},
            )

    def list_deployments(self, limit: int = 100) -> list[dict[str, Any]]:
        return self._request("GET", "/deployments", params={"limit": limit})

    def get_deployment(self, deployment_id: str) -> dict[str, Any]:
        return self._request("GET", f"/deployments/{deployment_id}")

    def delete_deployment(self, deployment_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/deployments/{deployment_id}")

    def analytics(self, deployment_id: str) -> dict[str, Any]:
        return self._request("GET", f"/analytics/{deployment_id}")

    def find_deployment(self, name: str) -> dict[str, Any] | None:
        """Find a deployment by project name or domain."""
        for deployment in self.list_deployments():
            if name in (deployment["project_name"], deployment["domain"]):
                return deployment
        return None

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(f"Could not reach the API: {e}") from e

        if response.is_error:
            raise ApiError(_error_message(response), response.status_code)
        return response.json()


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.text or response.reason_phrase
