"""
HTTP implementation of the remote task store.

Talks to a tasks service exposing the REST API of ``todo_tasks.routers``
(so one instance of this service can act as another's remote store).
GET responses are kept in a short-lived cache that every write and every
``refresh_tasks`` call discards.
"""

import logging
from typing import Any, List, Optional
from urllib.parse import quote

import httpx
from cachetools import TTLCache  # type: ignore[import-untyped]

from ..domain.entities import Task
from ..domain.exceptions import ExternalServiceException
from .tasks_data_source import TasksDataSource, check_not_none

logger = logging.getLogger(__name__)

TASKS_PATH = "/api/v1/tasks"
SERVICE_NAME = "remote-tasks"


def _task_path(task_id: str, action: Optional[str] = None) -> str:
    # An id is always exactly one path segment, whatever characters it holds
    path = f"{TASKS_PATH}/{quote(task_id, safe='')}"
    if action:
        path += f"/{action}"
    return path


class HttpTasksRemoteDataSource(TasksDataSource):
    """
    Remote task store reached over HTTP.

    Reads report "not available" on transport errors, non-2xx responses
    and empty task lists. Writes raise ExternalServiceException on failure.

    Attributes:
        base_url: Base URL of the remote tasks service
        timeout: Request timeout in seconds
        response_cache: Cached GET payloads keyed by path, None when disabled
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        cache_ttl_seconds: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize remote store.

        Args:
            base_url: Base URL of the remote tasks service
            timeout: Request timeout in seconds
            cache_ttl_seconds: Lifetime of cached GET responses, 0 disables caching
            client: Preconfigured client (tests inject one with a mock transport)
        """
        self.base_url = check_not_none(base_url, "base_url").rstrip("/")
        self.timeout = timeout
        self.response_cache: Optional[TTLCache] = (
            TTLCache(maxsize=256, ttl=cache_ttl_seconds) if cache_ttl_seconds > 0 else None
        )
        self._client = client

        logger.info(
            f"Initialized HttpTasksRemoteDataSource: base_url={self.base_url}, "
            f"timeout={self.timeout}s, cache_ttl={cache_ttl_seconds}s"
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """
        Get or create the persistent HTTP client.

        Returns:
            Configured httpx.AsyncClient instance
        """
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
            logger.debug("Created new HTTP client for remote task store")
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            logger.debug("Closed remote task store HTTP client")

    async def get_tasks(self) -> Optional[List[Task]]:
        payload = await self._get_json(TASKS_PATH)
        if not payload:
            return None
        try:
            return [Task.from_dict(item) for item in payload]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed task list from remote store: {e}")
            return None

    async def get_task(self, task_id: str) -> Optional[Task]:
        check_not_none(task_id, "task_id")
        payload = await self._get_json(_task_path(task_id))
        if not payload:
            return None
        try:
            task = Task.from_dict(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed task {task_id} from remote store: {e}")
            return None

        if task.id != task_id:
            logger.error(f"Remote store answered task {task.id} for requested {task_id}")
            return None
        return task

    async def save_task(self, task: Task) -> None:
        check_not_none(task, "task")
        await self._send("PUT", _task_path(task.id), json=task.to_dict())

    async def complete_task(self, task: Task) -> None:
        check_not_none(task, "task")
        await self.complete_task_by_id(task.id)

    async def complete_task_by_id(self, task_id: str) -> None:
        check_not_none(task_id, "task_id")
        await self._send("POST", _task_path(task_id, "complete"))

    async def activate_task(self, task: Task) -> None:
        check_not_none(task, "task")
        await self.activate_task_by_id(task.id)

    async def activate_task_by_id(self, task_id: str) -> None:
        check_not_none(task_id, "task_id")
        await self._send("POST", _task_path(task_id, "activate"))

    async def clear_completed_tasks(self) -> None:
        await self._send("POST", f"{TASKS_PATH}/clear-completed")

    async def refresh_tasks(self) -> None:
        self._invalidate_cache()

    async def delete_all_tasks(self) -> None:
        await self._send("DELETE", TASKS_PATH)

    async def delete_task(self, task_id: str) -> None:
        check_not_none(task_id, "task_id")
        await self._send("DELETE", _task_path(task_id))

    async def _get_json(self, path: str) -> Any:
        """
        GET a JSON payload, serving it from the response cache when possible.

        Returns:
            Decoded payload, or None on any failure
        """
        if self.response_cache is not None and path in self.response_cache:
            logger.debug(f"Remote response cache HIT: {path}")
            return self.response_cache[path]

        try:
            client = await self._get_client()
            response = await client.get(path)
        except httpx.HTTPError as e:
            logger.warning(f"Remote task store unreachable for GET {path}: {e}")
            return None

        if response.status_code != 200:
            logger.info(f"Remote task store returned {response.status_code} for GET {path}")
            return None

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from remote task store for GET {path}: {e}")
            return None

        if self.response_cache is not None:
            self.response_cache[path] = payload
        return payload

    async def _send(self, method: str, path: str, json: Optional[dict] = None) -> None:
        """
        Send a write request.

        Raises:
            ExternalServiceException: On transport errors or non-2xx responses
        """
        self._invalidate_cache()
        try:
            client = await self._get_client()
            response = await client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error(f"Remote task store unreachable for {method} {path}: {e}")
            raise ExternalServiceException(SERVICE_NAME, str(e)) from e

        if response.is_error:
            logger.error(
                f"Remote task store rejected {method} {path}: HTTP {response.status_code}"
            )
            raise ExternalServiceException(SERVICE_NAME, f"HTTP {response.status_code}")

    def _invalidate_cache(self) -> None:
        if self.response_cache is not None:
            self.response_cache.clear()
