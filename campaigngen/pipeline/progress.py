"""
Progress reporting and cancellation for a single pipeline run.
"""
import logging
import threading
from typing import Callable, List, Optional

from .models import PipelinePhase

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[PipelinePhase], None]


class ProgressReporter:
    """
    Forwards phase transitions to the caller's sink.

    Each phase is emitted at most once and only in increasing order;
    FAILED may follow any non-terminal phase. Out-of-order or repeated
    transitions are dropped. Sink exceptions are logged and do not
    affect the run.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback
        self._emitted: List[PipelinePhase] = []

    @property
    def current(self) -> Optional[PipelinePhase]:
        return self._emitted[-1] if self._emitted else None

    @property
    def history(self) -> List[PipelinePhase]:
        return list(self._emitted)

    def advance(self, phase: PipelinePhase) -> bool:
        current = self.current
        if current is not None:
            if current.is_terminal:
                return False
            if phase is not PipelinePhase.FAILED and phase.rank <= current.rank:
                logger.debug(f"[ORCHESTRATOR] Ignoring transition {current.value} -> {phase.value}")
                return False

        self._emitted.append(phase)
        logger.info(f"[ORCHESTRATOR] Phase: {phase.value}")

        if self._callback is not None:
            try:
                self._callback(phase)
            except Exception as e:
                logger.warning(f"[ORCHESTRATOR] Progress callback failed on {phase.value}: {e}")
        return True


class CancellationToken:
    """Set by the caller; checked by the orchestrator at stage boundaries."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
