from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from services.action_log import ActionLogger
from services.models import Task, format_timestamp


Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TaskStore:
    """
    Хранит задачи только в памяти процесса: после перезапуска список пуст.
    Все операции выполняются под одной блокировкой, так что выдача id
    и изменение коллекции атомарны относительно друг друга.
    """

    def __init__(self, logger: Optional[ActionLogger] = None, clock: Optional[Clock] = None) -> None:
        self._lock = threading.Lock()
        # dict сохраняет порядок вставки, а id растут монотонно
        self._tasks: Dict[int, Task] = {}
        self._next_id: int = 1
        self._logger = logger
        self._clock = clock or _utc_now

    def _log(self, action: str, task_id: Optional[int], status: str, origin: Optional[str], details: Optional[dict] = None) -> None:
        if self._logger:
            self._logger.log(action=action, task_id=task_id, status=status, origin=origin, details=details)

    def list_tasks(self, filter_name: Optional[str] = None) -> List[dict]:
        """
        filter_name: "completed", "pending"; любое другое значение — все задачи.
        """
        with self._lock:
            return [t.to_dict() for t in self._tasks.values() if t.matches(filter_name)]

    def find_task(self, task_id: int) -> Optional[dict]:
        with self._lock:
            task = self._tasks.get(task_id)
            return task.to_dict() if task else None

    def _counts_locked(self) -> Dict[str, int]:
        total = len(self._tasks)
        completed = sum(1 for t in self._tasks.values() if t.completed)
        return {"total": total, "completed": completed, "pending": total - completed}

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return self._counts_locked()

    def list_with_counts(self, filter_name: Optional[str] = None) -> Tuple[List[dict], Dict[str, int]]:
        """
        Список и счётчики из одного снимка, под одной блокировкой.
        """
        with self._lock:
            tasks = [t.to_dict() for t in self._tasks.values() if t.matches(filter_name)]
            return tasks, self._counts_locked()

    def get_logs(self, limit: int = 100) -> List[dict]:
        if not self._logger:
            return []
        return self._logger.tail(limit)

    def add_task(self, title: str, origin: Optional[str] = None) -> dict:
        """
        Заголовок проверяет вызывающая сторона; здесь он только обрезается.
        """
        title = title.strip()

        with self._lock:
            task_id = self._next_id
            self._next_id += 1
            task = Task(id=task_id, title=title, completed=False, created_at=format_timestamp(self._clock()))
            self._tasks[task_id] = task
            created = task.to_dict()

        self._log("create", task_id, "success", origin, {"title": title})
        return created

    def toggle_task(self, task_id: int, origin: Optional[str] = None) -> Optional[dict]:
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                updated = None
            else:
                task.completed = not task.completed
                updated = task.to_dict()

        if updated is None:
            self._log("toggle", task_id, "not_found", origin)
            return None

        self._log("toggle", task_id, "success", origin, {"completed": updated["completed"]})
        return updated

    def delete_task(self, task_id: int, origin: Optional[str] = None) -> Optional[dict]:
        with self._lock:
            task = self._tasks.pop(task_id, None)

        if task is None:
            self._log("delete", task_id, "not_found", origin)
            return None

        self._log("delete", task_id, "success", origin, {"title": task.title})
        return task.to_dict()
