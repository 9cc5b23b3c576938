from collections import Counter
from typing import Any, Dict, Protocol

from utils.logger_utils import get_logger

logger = get_logger("Error Sink")


class ErrorSink(Protocol):
    """
    Receives failures that are deliberately not surfaced to callers
    (cache writes, enrichment, indexer and RPC degradations).
    """

    def report(self, stage: str, error: BaseException, **context: Any) -> None:
        ...


class LoggingErrorSink(object):
    """
    Default sink: one structured warning per swallowed failure plus per-stage counters,
    so operators can spot systemic failure without it reaching end users.
    """

    def __init__(self, log_traceback: bool = False):
        self._log_traceback = log_traceback
        self._counts: Counter = Counter()

    def report(self, stage: str, error: BaseException, **context: Any) -> None:
        self._counts[stage] += 1
        details = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        logger.warning(
            f"Swallowed failure at stage={stage} error={type(error).__name__}: {error} {details}".rstrip(),
            exc_info=error if self._log_traceback else None,
            extra={"stage": stage, "context": context},
        )

    @property
    def counts(self) -> Dict[str, int]:
        return dict(self._counts)
