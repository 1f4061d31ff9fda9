"""Export progress reporting.

Progress is an integer percentage written only by the export orchestrator
and observed by the UI. It never decreases within one run.
"""

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

STARTED = 5
FETCH_END = 85
ASSEMBLING = 85
COMPLETE = 100

ProgressListener = Callable[[int], None]


class ExportProgress:
    """Monotonic percentage with optional listeners.

    Listeners are called with the new value every time it increases.
    """

    def __init__(self):
        self._value = 0
        self._listeners: List[ProgressListener] = []

    @property
    def value(self) -> int:
        return self._value

    def subscribe(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def advance_to(self, percent: int) -> int:
        """Raise progress to ``percent``; lower values are ignored.

        :param percent: Target percentage, clamped to [0, 100]
        :type percent: int
        :return: Current value after the update
        :rtype: int
        """
        percent = max(0, min(COMPLETE, int(percent)))
        if percent <= self._value:
            return self._value
        self._value = percent
        for listener in self._listeners:
            try:
                listener(percent)
            except Exception as e:
                logger.warning("Progress listener failed: %s", e)
        return self._value

    def fetched(self, completed: int, total: int) -> int:
        """Report ``completed`` of ``total`` analytics fetches as settled."""
        if total <= 0:
            return self.advance_to(FETCH_END)
        span = FETCH_END - STARTED
        return self.advance_to(STARTED + round(completed / total * span))
