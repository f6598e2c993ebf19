"""Single entry point over a task store.

Callers (the REST API, or a TaskBoard running against local storage) never
touch the store directly; validation happens here before anything is
forwarded.
"""
import logging
from typing import Any, Dict, List

from .errors import NotFoundError, ValidationError
from .models import TaskRead
from .store import TaskStore, normalize_fields, require_text

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(self, store: TaskStore):
        self.store = store

    @property
    def ordering(self) -> str:
        return self.store.ordering

    async def list(self) -> List[TaskRead]:
        return await self.store.list()

    async def get(self, task_id) -> TaskRead:
        try:
            return await self.store.get(task_id)
        except NotFoundError:
            logger.debug('get: task %s not found', task_id)
            raise

    async def create(self, text: str) -> TaskRead:
        cleaned = require_text(text)
        task = await self.store.create(cleaned)
        logger.info('created task id=%s', task.id)
        return task

    async def update(self, task_id, fields: Dict[str, Any]) -> TaskRead:
        if fields is not None and not isinstance(fields, dict):
            raise ValidationError('update fields must be an object')
        changes = normalize_fields(fields)
        try:
            task = await self.store.update(task_id, changes)
        except NotFoundError:
            logger.debug('update: task %s not found', task_id)
            raise
        if changes:
            logger.info('updated task id=%s fields=%s', task.id, sorted(changes))
        return task

    async def delete(self, task_id) -> None:
        try:
            await self.store.delete(task_id)
        except NotFoundError:
            logger.debug('delete: task %s not found', task_id)
            raise
        logger.info('deleted task id=%s', task_id)
