from __future__ import annotations

import json
import os
import threading
from collections import deque
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from services.models import format_timestamp


DEFAULT_BUFFER_SIZE = 1000


@dataclass
class ActionRecord:
    timestamp: str
    action: str
    task_id: Optional[int]
    status: str
    origin: Optional[str]
    details: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ActionLogger:
    """
    Потокобезопасный журнал действий над задачами.
    Если задан path — каждое событие дописывается одной строкой JSON (JSONL).
    Без path события держатся только в памяти, в кольцевом буфере.
    """

    def __init__(self, path: Optional[str] = None, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._buffer: Deque[ActionRecord] = deque(maxlen=max(buffer_size, 1))

    @property
    def path(self) -> Optional[str]:
        return self._path

    def log(
        self,
        action: str,
        task_id: Optional[int],
        status: str,
        origin: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> ActionRecord:
        record = ActionRecord(
            timestamp=format_timestamp(datetime.now(timezone.utc)),
            action=action,
            task_id=task_id,
            status=status,
            origin=origin,
            details=details or {},
        )

        with self._lock:
            if self._path is None:
                self._buffer.append(record)
            else:
                line = json.dumps(record.to_dict(), ensure_ascii=False)
                os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)
                with open(self._path, "a", encoding="utf-8") as f:
                    f.write(line + "\n")

        return record

    def tail(self, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Возвращает последние limit записей, старые первыми.
        """
        if limit <= 0:
            return []

        if self._path is None:
            with self._lock:
                records = list(self._buffer)
            return [r.to_dict() for r in records[-limit:]]

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                lines = f.readlines()
        except FileNotFoundError:
            return []

        result: List[Dict[str, Any]] = []
        for line in lines[-limit:]:
            line = line.strip()
            if not line:
                continue
            try:
                result.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        return result
