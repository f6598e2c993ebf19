"""Client-side view state for the task list.

TaskBoard holds the last known task collection plus transient interaction
state (filter, pending input, the one task being edited). None of that
transient state is persisted. Each intent makes at most one backend call and
only changes state once that call has succeeded.
"""
import logging
from typing import Iterable, List, Optional

from .models import TaskRead
from .store import NEWEST_FIRST
from .utils import is_blank

logger = logging.getLogger(__name__)

FILTER_ALL = 'all'
FILTER_ACTIVE = 'active'
FILTER_COMPLETED = 'completed'
FILTERS = (FILTER_ALL, FILTER_ACTIVE, FILTER_COMPLETED)

EMPTY_MESSAGES = {
    FILTER_ALL: 'No tasks yet. Add one above!',
    FILTER_ACTIVE: 'No active tasks. Nice work!',
    FILTER_COMPLETED: 'No completed tasks yet.',
}


def filter_tasks(tasks: Iterable[TaskRead], filter_value: str) -> List[TaskRead]:
    """Return the tasks visible under a filter; does not mutate the input."""
    if filter_value == FILTER_ACTIVE:
        return [t for t in tasks if not t.completed]
    if filter_value == FILTER_COMPLETED:
        return [t for t in tasks if t.completed]
    if filter_value == FILTER_ALL:
        return list(tasks)
    raise ValueError(f'unknown filter: {filter_value!r}')


class TaskBoard:
    """State machine behind a task list view.

    `backend` is anything with async list/create/update/delete, typically a
    TaskService over a local store or a TaskApiClient.
    """

    def __init__(self, backend, tasks: Optional[List[TaskRead]] = None):
        self.backend = backend
        self.tasks: List[TaskRead] = list(tasks or [])
        self.filter = FILTER_ALL
        self.input_text = ''
        self.editing_id: Optional[str] = None
        self.editing_text = ''

    @property
    def filtered_tasks(self) -> List[TaskRead]:
        return filter_tasks(self.tasks, self.filter)

    @property
    def empty_message(self) -> Optional[str]:
        """Message to show when the filtered view is empty, else None."""
        if self.filtered_tasks:
            return None
        return EMPTY_MESSAGES[self.filter]

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None

    def find(self, task_id) -> Optional[TaskRead]:
        key = str(task_id)
        for t in self.tasks:
            if t.id == key:
                return t
        return None

    def _replace(self, task: TaskRead) -> None:
        self.tasks = [task if t.id == task.id else t for t in self.tasks]

    async def load(self) -> List[TaskRead]:
        self.tasks = list(await self.backend.list())
        return self.tasks

    async def add(self, text: Optional[str] = None) -> Optional[TaskRead]:
        """Create a task from `text` (or the pending input); blank is a no-op."""
        if text is not None:
            self.input_text = text
        if is_blank(self.input_text):
            return None
        task = await self.backend.create(self.input_text)
        if getattr(self.backend, 'ordering', None) == NEWEST_FIRST:
            self.tasks = [task] + self.tasks
        else:
            self.tasks = self.tasks + [task]
        self.input_text = ''
        return task

    async def toggle(self, task_id) -> Optional[TaskRead]:
        current = self.find(task_id)
        if current is None:
            logger.debug('toggle: task %s not on board', task_id)
            return None
        updated = await self.backend.update(current.id, {'completed': not current.completed})
        self._replace(updated)
        return updated

    def start_editing(self, task_id) -> bool:
        current = self.find(task_id)
        if current is None:
            return False
        self.editing_id = current.id
        self.editing_text = current.text
        return True

    async def save_edit(self) -> Optional[TaskRead]:
        """Persist the edit; blank text leaves the edit session open."""
        if self.editing_id is None or is_blank(self.editing_text):
            return None
        updated = await self.backend.update(self.editing_id, {'text': self.editing_text})
        self._replace(updated)
        self.cancel_edit()
        return updated

    def cancel_edit(self) -> None:
        self.editing_id = None
        self.editing_text = ''

    async def delete(self, task_id) -> None:
        key = str(task_id)
        await self.backend.delete(key)
        self.tasks = [t for t in self.tasks if t.id != key]
        if self.editing_id == key:
            self.cancel_edit()

    def set_filter(self, value: str) -> None:
        if value not in FILTERS:
            raise ValueError(f'unknown filter: {value!r}')
        self.filter = value
