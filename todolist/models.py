from typing import Optional
from datetime import datetime
from .utils import now_utc, as_utc
from pydantic import BaseModel
from sqlmodel import SQLModel, Field


class Task(SQLModel, table=True):
    """Database row for a task.

    AUTOINCREMENT keeps SQLite from handing a deleted task's id to a new row.
    """
    __table_args__ = {'sqlite_autoincrement': True}

    id: Optional[int] = Field(default=None, primary_key=True)
    text: str
    completed: bool = Field(default=False)
    created_at: datetime | None = Field(default_factory=now_utc, index=True)
    updated_at: datetime | None = Field(default_factory=now_utc)


class TaskRead(BaseModel):
    """Store-independent view of a task handed to the service and clients.

    `id` is always a string: database ids are stringified, local ids are
    UUID hex.
    """
    id: str
    text: str
    completed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Task) -> 'TaskRead':
        return cls(
            id=str(row.id),
            text=row.text,
            completed=bool(row.completed),
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
        )

    @classmethod
    def from_json(cls, data: dict) -> 'TaskRead':
        return cls(
            id=str(data['id']),
            text=data['text'],
            completed=bool(data.get('completed', False)),
            created_at=data.get('createdAt'),
            updated_at=data.get('updatedAt'),
        )

    def to_json(self) -> dict:
        """Wire shape: {id, text, completed, createdAt?, updatedAt?}."""
        out = {'id': self.id, 'text': self.text, 'completed': self.completed}
        if self.created_at is not None:
            out['createdAt'] = self.created_at.isoformat()
        if self.updated_at is not None:
            out['updatedAt'] = self.updated_at.isoformat()
        return out

    def to_local(self) -> dict:
        """Shape stored in the local store's serialized list."""
        return {'id': self.id, 'text': self.text, 'completed': self.completed}
