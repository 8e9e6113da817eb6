"""
Azure DevOps Work Item Tracking client.

Implements :class:`WorkItemStore` over the Azure DevOps REST API with an
``httpx.AsyncClient``. Authentication is a personal access token sent as
basic auth with an empty user name.
"""

from __future__ import annotations

import urllib.parse
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from ..config import Settings
from ..split.errors import SchemaUnavailableError, StoreError, WorkItemNotFoundError
from .models import (
    FieldDescriptor,
    PatchOperation,
    StateDescriptor,
    TeamIteration,
    WorkItem,
    patch_document,
)
from .store import WorkItemStore

logger = structlog.get_logger()

# workitemsbatch accepts at most 200 ids per call
BATCH_SIZE = 200

JSON_PATCH_CONTENT_TYPE = "application/json-patch+json"

M = TypeVar("M", bound=BaseModel)


class WorkItemTrackingClient(WorkItemStore):
    """
    REST client for work items, type metadata and team iterations.
    """

    def __init__(
        self,
        organization_url: str,
        project: str,
        team: str = "",
        personal_access_token: Optional[str] = None,
        api_version: str = "7.1",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.organization_url = organization_url.rstrip("/")
        self.project = project
        self.team = team
        self.api_version = api_version
        self.client = httpx.AsyncClient(
            timeout=timeout,
            auth=("", personal_access_token) if personal_access_token else None,
            transport=transport,
        )
        self.logger = logger.bind(project=project)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "WorkItemTrackingClient":
        return cls(
            organization_url=settings.organization_url,
            project=settings.project,
            team=settings.team,
            personal_access_token=settings.personal_access_token,
            api_version=settings.api_version,
            timeout=settings.http_timeout_seconds,
            **kwargs,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "WorkItemTrackingClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def project_url(self) -> str:
        return f"{self.organization_url}/{urllib.parse.quote(self.project)}"

    def work_item_web_url(self, work_item_id: int) -> str:
        return f"{self.project_url}/_workitems/edit/{work_item_id}"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        what: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        content_type: Optional[str] = None,
    ) -> Any:
        query = {"api-version": self.api_version}
        query.update(params or {})
        headers = {"Content-Type": content_type} if content_type else None

        try:
            response = await self.client.request(
                method, url, params=query, json=json, headers=headers
            )
        except httpx.RequestError as e:
            self.logger.error("store_request_failed", what=what, error=str(e))
            raise StoreError(f"Request for {what} failed: {e}") from e

        if response.status_code == 404:
            raise WorkItemNotFoundError(f"{what} was not found", status_code=404)
        if response.is_error:
            self.logger.error(
                "store_request_rejected",
                what=what,
                status_code=response.status_code,
                body=response.text[:400],
            )
            raise StoreError(
                f"Request for {what} failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise StoreError(
                f"Response for {what} is not JSON", status_code=response.status_code
            ) from e

    @staticmethod
    def _parse(model: Type[M], data: Any, what: str) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise StoreError(
                f"Malformed response for {what}: {e.error_count()} invalid values"
            ) from e

    @staticmethod
    def _values(data: Any, what: str) -> List[Any]:
        values = data.get("value", []) if isinstance(data, dict) else None
        if not isinstance(values, list):
            raise StoreError(f"Malformed response for {what}: expected a value list")
        return values

    async def get_work_item(
        self, work_item_id: int, expand_relations: bool = True
    ) -> WorkItem:
        data = await self._request(
            "GET",
            f"{self.project_url}/_apis/wit/workitems/{work_item_id}",
            what=f"work item {work_item_id}",
            params={"$expand": "all" if expand_relations else "none"},
        )
        return self._parse(WorkItem, data, f"work item {work_item_id}")

    async def get_work_items(self, work_item_ids: Sequence[int]) -> List[WorkItem]:
        ids = list(work_item_ids)
        fetched: Dict[int, WorkItem] = {}
        for start in range(0, len(ids), BATCH_SIZE):
            chunk = ids[start : start + BATCH_SIZE]
            data = await self._request(
                "POST",
                f"{self.project_url}/_apis/wit/workitemsbatch",
                what=f"work items {chunk}",
                json={"ids": chunk},
            )
            for item in self._values(data, "work items batch"):
                work_item = self._parse(WorkItem, item, "work items batch")
                fetched[work_item.id] = work_item

        missing = [i for i in ids if i not in fetched]
        if missing:
            raise WorkItemNotFoundError(f"work items {missing} were not found")
        return [fetched[i] for i in ids]

    async def update_work_item(
        self, work_item_id: int, patch: Sequence[PatchOperation]
    ) -> WorkItem:
        data = await self._request(
            "PATCH",
            f"{self.project_url}/_apis/wit/workitems/{work_item_id}",
            what=f"work item {work_item_id}",
            json=patch_document(list(patch)),
            content_type=JSON_PATCH_CONTENT_TYPE,
        )
        self.logger.debug("work_item_updated", work_item_id=work_item_id, ops=len(patch))
        return self._parse(WorkItem, data, f"work item {work_item_id}")

    async def create_work_item(
        self, work_item_type: str, patch: Sequence[PatchOperation]
    ) -> WorkItem:
        data = await self._request(
            "POST",
            f"{self.project_url}/_apis/wit/workitems/${urllib.parse.quote(work_item_type)}",
            what=f"new {work_item_type}",
            json=patch_document(list(patch)),
            content_type=JSON_PATCH_CONTENT_TYPE,
        )
        work_item = self._parse(WorkItem, data, f"new {work_item_type}")
        self.logger.info(
            "work_item_created", work_item_id=work_item.id, work_item_type=work_item_type
        )
        return work_item

    async def _get_type_metadata(
        self, work_item_type: str, resource: str, model: Type[M]
    ) -> List[M]:
        what = f"{resource} of type {work_item_type}"
        try:
            data = await self._request(
                "GET",
                f"{self.project_url}/_apis/wit/workitemtypes/"
                f"{urllib.parse.quote(work_item_type)}/{resource}",
                what=what,
            )
            return [self._parse(model, value, what) for value in self._values(data, what)]
        except WorkItemNotFoundError:
            raise
        except StoreError as e:
            raise SchemaUnavailableError(e.message, status_code=e.status_code) from e

    async def get_work_item_type_fields(
        self, work_item_type: str
    ) -> List[FieldDescriptor]:
        return await self._get_type_metadata(work_item_type, "fields", FieldDescriptor)

    async def get_work_item_type_states(
        self, work_item_type: str
    ) -> List[StateDescriptor]:
        return await self._get_type_metadata(work_item_type, "states", StateDescriptor)

    async def get_team_iterations(self) -> List[TeamIteration]:
        what = f"iterations of team {self.team}"
        data = await self._request(
            "GET",
            f"{self.project_url}/{urllib.parse.quote(self.team)}"
            "/_apis/work/teamsettings/iterations",
            what=what,
        )
        return [self._parse(TeamIteration, value, what) for value in self._values(data, what)]
