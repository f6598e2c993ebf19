"""Async HTTP client for the /tasks REST API.

Implements the same list/get/create/update/delete contract as TaskService so
a TaskBoard can run against a remote server or a local service unchanged.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import NotFoundError, StoreUnavailable, ValidationError
from .models import TaskRead
from .api import ORDERING_HEADER
from .store import INSERTION, NEWEST_FIRST

logger = logging.getLogger(__name__)


class TaskApiClient:
    """Client for the tasks REST API.

    `ordering` is where TaskBoard places newly created tasks. It should match
    the server's store; it is replaced by the server's X-Task-Ordering header
    on every list() call, so loading a board first is enough.
    """

    def __init__(self, base_url: str = 'http://127.0.0.1:8000', client: Optional[httpx.AsyncClient] = None,
                 ordering: str = NEWEST_FIRST):
        self.base_url = base_url.rstrip('/')
        self.ordering = ordering
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=self.base_url)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _request(self, method: str, path: str, task_id=None, **kwargs) -> httpx.Response:
        try:
            resp = await self.client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning('%s %s failed: %s', method, path, e)
            raise StoreUnavailable(str(e)) from e
        if resp.status_code == 404:
            raise NotFoundError(task_id)
        if resp.status_code == 400:
            raise ValidationError(_message(resp))
        resp.raise_for_status()
        return resp

    async def list(self) -> List[TaskRead]:
        resp = await self._request('GET', '/tasks')
        ordering = resp.headers.get(ORDERING_HEADER)
        if ordering in (NEWEST_FIRST, INSERTION):
            self.ordering = ordering
        return [TaskRead.from_json(item) for item in resp.json()]

    async def get(self, task_id) -> TaskRead:
        resp = await self._request('GET', f'/tasks/{task_id}', task_id)
        return TaskRead.from_json(resp.json())

    async def create(self, text: str) -> TaskRead:
        resp = await self._request('POST', '/tasks', json={'text': text})
        return TaskRead.from_json(resp.json())

    async def update(self, task_id, fields: Dict[str, Any]) -> TaskRead:
        resp = await self._request('PATCH', f'/tasks/{task_id}', task_id, json=fields)
        return TaskRead.from_json(resp.json())

    async def delete(self, task_id) -> None:
        await self._request('DELETE', f'/tasks/{task_id}', task_id)


def _message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text
    if isinstance(data, dict) and data.get('message'):
        return str(data['message'])
    return resp.text
