"""Progress and step reporting, kept out of the pipeline logic."""

import json
import logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Iterator, Optional, TextIO

from tqdm import tqdm

logger = logging.getLogger(__name__)


class _NullProgress:
    def update(self, n: int = 1) -> None:
        pass


class Reporter:
    """
    Observability sink for a triage run. The base class ignores everything,
    so it doubles as the null reporter.
    """

    def on_step(self, message: str) -> None:
        pass

    def on_info(self, message: str) -> None:
        pass

    def on_success(self, message: str) -> None:
        pass

    def on_error(self, message: str, details: Optional[str] = None) -> None:
        pass

    def on_data(self, obj: Any, title: Optional[str] = None) -> None:
        pass

    @contextmanager
    def progress(self, total: int) -> Iterator[Any]:
        """Context yielding an object with update(n=1), advanced once per case."""
        yield _NullProgress()


NullReporter = Reporter


class TqdmLoggingHandler(logging.Handler):
    """Writes log records through tqdm so an active progress bar isn't torn."""

    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream or sys.stderr)
        except Exception:
            self.handleError(record)


class ConsoleReporter(Reporter):
    """Human-readable console output via logging, with a tqdm progress bar."""

    def __init__(self, step_delay: float = 0.0, stream: Optional[TextIO] = None):
        self.step_delay = step_delay
        self.stream = stream

    def _pause(self) -> None:
        if self.step_delay > 0:
            time.sleep(self.step_delay)

    def on_step(self, message: str) -> None:
        self._pause()
        logger.info("▶ %s", message)

    def on_info(self, message: str) -> None:
        logger.info("  %s", message)

    def on_success(self, message: str) -> None:
        logger.info("  ✔ %s", message)

    def on_error(self, message: str, details: Optional[str] = None) -> None:
        logger.error("  ✖ ERROR: %s", message)
        if details:
            logger.error("    Details: %s", details.replace("\n", "\n    "))

    def on_data(self, obj: Any, title: Optional[str] = None) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        text = json.dumps(obj, indent=2, default=str)
        if title:
            text = f"{title}:\n{text}"
        logger.debug("\n".join(f"    {line}" for line in text.splitlines()))

    @contextmanager
    def progress(self, total: int) -> Iterator[Any]:
        bar = tqdm(
            total=total,
            desc="Progress",
            unit="case",
            file=self.stream or sys.stderr,
            leave=True,
        )
        try:
            yield bar
        finally:
            bar.close()
