"""Domain errors raised by task stores and the task service."""


class TaskError(Exception):
    """Base class for task domain errors."""


class ValidationError(TaskError):
    """Task text (or another field) failed validation; nothing was stored."""


class NotFoundError(TaskError):
    """No task exists with the requested identifier."""

    def __init__(self, task_id=None):
        self.task_id = task_id
        super().__init__(f'task not found: {task_id}')


class StoreUnavailable(TaskError):
    """The backing store could not be reached."""
