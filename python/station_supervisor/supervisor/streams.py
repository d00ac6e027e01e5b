"""Background readers for the station's stdout and stderr pipes."""

import codecs
import threading
from typing import IO, Callable, List, Optional

from ..logging_config import get_logger
from .severity import NEWLINE_REGEX

logger = get_logger(__name__)

CHUNK_SIZE = 4096

# Called with (text, partial). ``partial`` is True for output still waiting
# for its newline, such as an interactive prompt.
OutputListener = Callable[[str, bool], None]


class OutputStream:
    """Drains one output pipe on a daemon thread and fans lines out to listeners.

    Lines are delivered in the order the station wrote them. Each stream has
    its own thread so a slow listener on one stream never stops the other
    from being drained.
    """

    def __init__(self, pipe: IO[bytes], name: str) -> None:
        self.name = name
        self._pipe = pipe
        self._listeners: List[OutputListener] = []
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    def add_listener(self, listener: OutputListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: OutputListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._drain, name=f"station-{self.name}-reader", daemon=True
        )
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _drain(self) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending = ""
        try:
            while True:
                chunk = self._pipe.read1(CHUNK_SIZE)  # type: ignore[attr-defined]
                if not chunk:
                    break
                pending += decoder.decode(chunk)
                *lines, pending = NEWLINE_REGEX.split(pending)
                for line in lines:
                    if line:
                        self._dispatch(line, False)
                if pending:
                    self._dispatch(pending.rstrip("\r"), True)

            pending += decoder.decode(b"", final=True)
            if pending.rstrip("\r"):
                self._dispatch(pending.rstrip("\r"), False)
        except (OSError, ValueError) as e:
            logger.debug(f"Reader for station {self.name} exited: {e}")
        finally:
            self._pipe.close()

    def _dispatch(self, text: str, partial: bool) -> None:
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(text, partial)
            except Exception:
                logger.error(
                    f"Listener on station {self.name} failed for output {text!r}",
                    exc_info=True,
                )
