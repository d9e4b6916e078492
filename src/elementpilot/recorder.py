from __future__ import annotations

import logging
import time
from typing import Any, Mapping

from .models import RecordedAction, RecordedElement, RecordingStatus

logger = logging.getLogger("elementpilot.recorder")


class ActionRecorder:
    """Append-only action log gated by an Idle/Recording flag."""

    def __init__(self) -> None:
        self._enabled = False
        self._actions: list[RecordedAction] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def actions(self) -> tuple[RecordedAction, ...]:
        return tuple(self._actions)

    def start(self) -> None:
        self._enabled = True
        self._actions = []
        logger.info("Recording started")

    def stop(self) -> list[RecordedAction]:
        self._enabled = False
        logger.info("Recording stopped with %s actions", len(self._actions))
        return list(self._actions)

    def clear(self) -> None:
        self._actions = []

    def status(self) -> RecordingStatus:
        return RecordingStatus(enabled=self._enabled, count=len(self._actions))

    def record(self, action: RecordedAction) -> bool:
        if not self._enabled:
            return False
        self._actions.append(action)
        return True

    def record_tool(
        self,
        tool: str,
        params: Mapping[str, Any] | None = None,
        element_info: RecordedElement | None = None,
    ) -> bool:
        if not self._enabled:
            return False
        action = RecordedAction(
            tool=tool,
            params=dict(params or {}),
            timestamp=time.time(),
            element_info=element_info,
        )
        return self.record(action)
