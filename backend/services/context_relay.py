"""
Host-to-UI relays: latest Writer context and the add-to-chat queue

The host pushes, the UI pulls. Neither side keeps a connection open.
"""

from __future__ import annotations

import threading
import time
from collections import deque

from models.context import AddToChatItem, WriterContext

ADD_TO_CHAT_LIMIT = 10


class WriterContextStore:
    """Holds the most recent context the host reported"""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._context = WriterContext()

    def update(self, context: WriterContext) -> bool:
        """Store a new context; returns False when the push was skipped"""
        with self._lock:
            # A push without a document name (host lost focus) keeps the last one
            if not context.document_name and self._context.document_name:
                return False
            self._context = context.model_copy(update={"timestamp": int(time.time() * 1000)})
            return True

    def latest(self) -> WriterContext:
        with self._lock:
            return self._context

    def current(self) -> WriterContext | None:
        """The latest context, or None if the host never reported a document"""
        context = self.latest()
        if not context.document_name and context.selection is None:
            return None
        return context


class AddToChatQueue:
    """Bounded FIFO of selections sent from the host context menu"""

    def __init__(self, limit: int = ADD_TO_CHAT_LIMIT) -> None:
        self._lock = threading.Lock()
        self._items: deque[AddToChatItem] = deque(maxlen=limit)

    def push(self, item: AddToChatItem) -> None:
        with self._lock:
            self._items.append(item.model_copy(update={"received_at": int(time.time() * 1000)}))

    def poll(self) -> AddToChatItem | None:
        with self._lock:
            return self._items.popleft() if self._items else None
