"""Octopod API client: access token, projects and activities to be staffed."""

from typing import Any, Dict, List, Optional

import requests

from .logger import get_logger

logger = get_logger()

DEFAULT_PAGE_SIZE = 50


class OctopodError(Exception):
    """Raised when an Octopod call fails (transport, HTTP or payload error)."""


class OctopodAuthError(OctopodError):
    """Raised when Octopod rejects the client credentials or access token."""


class OctopodClient:
    """
    Thin wrapper over the Octopod REST API.

    Every call either returns parsed JSON or raises OctopodError. Nothing is
    retried here; a failed call fails the synchronization cycle.
    """

    def __init__(
        self,
        api_url: str,
        client_id: str,
        client_secret: str,
        timeout: int = 15,
        page_size: int = DEFAULT_PAGE_SIZE,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self.page_size = page_size
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings) -> "OctopodClient":
        return cls(
            api_url=settings.octopod_api_url,
            client_id=settings.octopod_client_id,
            client_secret=settings.octopod_client_secret,
            timeout=settings.octopod_timeout,
        )

    def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and return its JSON body, raising OctopodError on failure."""
        url = f"{self.api_url}{path}"
        logger.record_api_call()
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
            resp.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "HTTPError"
            if status in (401, 403):
                logger.error("Octopod rejected credentials", url=url, status=status)
                raise OctopodAuthError(f"Octopod authorization failed ({status}): {url}") from e
            logger.error("Octopod request failed", url=url, status=status)
            raise OctopodError(f"Octopod request failed ({status}): {url}") from e
        except requests.exceptions.Timeout as e:
            logger.warning("Octopod request timed out", url=url)
            raise OctopodError(f"Octopod request timed out: {url}") from e
        except requests.exceptions.RequestException as e:
            logger.error("Octopod request error", url=url, error=str(e))
            raise OctopodError(f"Octopod request error: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise OctopodError(f"Octopod returned invalid JSON: {url}") from e

    @staticmethod
    def _auth_headers(access_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}

    def get_access_token(self) -> str:
        """Exchange client credentials for an access token."""
        payload = self._request(
            "POST",
            "/oauth/token",
            data={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
        )
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise OctopodAuthError("Octopod token response has no access_token")
        return token

    def fetch_projects_to_be_staffed(self, access_token: str) -> List[Dict[str, Any]]:
        """Fetch every project flagged as needing staff, across all pages."""
        projects: List[Dict[str, Any]] = []
        page = 1
        while True:
            batch = self._request(
                "GET",
                "/v0/projects",
                headers=self._auth_headers(access_token),
                params={"staffing_needed": "true", "page": page, "per_page": self.page_size},
            )
            if not isinstance(batch, list):
                raise OctopodError("Octopod projects response is not a list")
            projects.extend(batch)
            if len(batch) < self.page_size:
                break
            page += 1
        logger.info(f"Fetched {len(projects)} projects to be staffed")
        return projects

    def fetch_activities_to_be_staffed(
        self, access_token: str, projects: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """
        Fetch the activities of the given projects that still need staff.

        Activities are returned in project order and always carry a
        ``project`` reference with the owning project's id.
        """
        activities: List[Dict[str, Any]] = []
        for project in projects:
            project_id = project.get("id") if isinstance(project, dict) else None
            if project_id is None:
                raise OctopodError(f"Malformed Octopod project record: {project!r}")
            batch = self._request(
                "GET",
                f"/v0/projects/{project_id}/activities",
                headers=self._auth_headers(access_token),
            )
            if not isinstance(batch, list):
                raise OctopodError(f"Octopod activities response for project {project_id} is not a list")
            for activity in batch:
                if not isinstance(activity, dict):
                    raise OctopodError(
                        f"Malformed Octopod activity record for project {project_id}: {activity!r}"
                    )
                if not activity.get("staffing_needed"):
                    continue
                activity = dict(activity)
                activity.setdefault("project", {"id": project_id})
                activities.append(activity)
        logger.info(f"Fetched {len(activities)} activities to be staffed")
        return activities
