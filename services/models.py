from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict


FILTER_ALL = "all"
FILTER_COMPLETED = "completed"
FILTER_PENDING = "pending"


def format_timestamp(moment: datetime) -> str:
    """
    ISO-8601 в UTC с миллисекундами и суффиксом Z: 2026-10-19T08:54:00.123Z
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


@dataclass
class Task:
    id: int
    title: str
    completed: bool
    created_at: str  # ISO-8601, см. format_timestamp

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "createdAt": self.created_at,
        }

    def matches(self, filter_name: object) -> bool:
        if filter_name == FILTER_COMPLETED:
            return self.completed
        if filter_name == FILTER_PENDING:
            return not self.completed
        return True
