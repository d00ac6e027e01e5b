"""
Supervision of a single station process.

A Station spawns the station executable, drains and filters its output,
notices when it has finished starting, sends it console commands, and shuts
it down, politely with ``quit`` or with ``kill`` escalating to a hard kill.
"""

import subprocess
import threading
from concurrent.futures import Future
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Union

from .. import bog
from ..exceptions import (
    ImpoliteTerminationError,
    ProcessSpawnError,
    StartupAbortedError,
    StationError,
    StationNotRunningError,
)
from ..logging_config import get_logger
from .config import StationConfig, build_launch_command
from .overrides import apply_bog_overrides
from .severity import classify_line, should_forward
from .streams import OutputStream

logger = get_logger(__name__)

VERSION_BANNER = "Niagara Runtime Environment"
SAVED_MARKER = "Saved"
DEFAULT_KILL_TIMEOUT = 5.0

# Time allowed for readers to flush remaining output after the process exits
READER_JOIN_TIMEOUT = 1.0


class StationState(str, Enum):
    """Lifecycle of a station process."""

    NOT_STARTED = "not_started"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    EXITED = "exited"


class Station:
    """A supervised station process.

    Args:
        config: A StationConfig, or a mapping of config values
        **overrides: Config values overlaid on ``config``

    Raises:
        ConfigurationError: If the configuration is invalid
    """

    def __init__(
        self,
        config: Union[StationConfig, Mapping[str, Any], None] = None,
        **overrides: Any,
    ) -> None:
        self.config = StationConfig.build(config, **overrides)
        self._log_sink = self.config.resolve_log_sink()

        self._process: Optional[subprocess.Popen] = None
        self._stdout: Optional[OutputStream] = None
        self._stderr: Optional[OutputStream] = None
        self._state = StationState.NOT_STARTED
        self._on_ready: Optional[Callable[[], None]] = None
        self._exit_callbacks: List[Callable[[Optional[int]], None]] = []

        self._lock = threading.Lock()
        self._stdin_lock = threading.Lock()
        self._ready = threading.Event()
        self._exited = threading.Event()

    @property
    def state(self) -> StationState:
        return self._state

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode if self._process else None

    @property
    def is_running(self) -> bool:
        return self._process is not None and not self._exited.is_set()

    @property
    def stdout(self) -> Optional[OutputStream]:
        return self._stdout

    @property
    def stderr(self) -> Optional[OutputStream]:
        return self._stderr

    def start(self, on_ready: Optional[Callable[[], None]] = None) -> None:
        """Start the station process.

        Bog overrides, if configured, are written to the station's config.bog
        first. ``on_ready`` is called once, from a reader thread, the first
        time the station prints its started string.

        Raises:
            StationError: If this station already has a live process
            StartupAbortedError: If the bog overrides could not be applied
            ProcessSpawnError: If the station executable could not be launched
        """
        if self.is_running:
            raise StationError(f"Station '{self.config.station_name}' is already running")

        if self.config.bog_overrides:
            self._apply_bog_overrides()

        self._spawn(on_ready)

    def _apply_bog_overrides(self) -> None:
        bog_file = self.config.bog_file_path
        try:
            document = bog.load(bog_file)
            apply_bog_overrides(document, self.config.bog_overrides or {})
            bog.save(document, bog_file)
        except StationError as e:
            error_msg = f"Station startup aborted, bog overrides not applied to '{bog_file}': {e}"
            logger.error(error_msg)
            raise StartupAbortedError(error_msg) from e

    def _spawn(self, on_ready: Optional[Callable[[], None]]) -> None:
        argv = build_launch_command(self.config)
        logger.info(f"Starting station '{self.config.station_name}': {argv}")

        try:
            process = subprocess.Popen(
                argv,
                cwd=self.config.cwd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            error_msg = f"Failed to launch station executable '{argv[0]}': {e}"
            logger.error(error_msg)
            raise ProcessSpawnError(error_msg) from e

        stdout = OutputStream(process.stdout, "stdout")  # type: ignore[arg-type]
        stderr = OutputStream(process.stderr, "stderr")  # type: ignore[arg-type]
        for stream in (stdout, stderr):
            stream.add_listener(self._handle_output)

        with self._lock:
            self._process = process
            self._stdout = stdout
            self._stderr = stderr
            self._on_ready = on_ready
            self._ready.clear()
            self._exited.clear()
            self._state = StationState.STARTING

        stdout.start()
        stderr.start()
        threading.Thread(
            target=self._watch_exit,
            args=(process, stdout, stderr),
            name="station-exit-watcher",
            daemon=True,
        ).start()
        logger.info(f"Station '{self.config.station_name}' started with PID: {process.pid}")

    def _handle_output(self, text: str, partial: bool) -> None:
        if not partial:
            self._log(text)
        self._check_for_start(text)

    def _strip_prompt(self, line: str) -> str:
        """Remove console prompts left in front of ``line`` by earlier partial output."""
        prompt = self.config.started_string
        while prompt and line.startswith(prompt) and len(line) > len(prompt):
            line = line[len(prompt) :]
        return line

    def _log(self, line: str) -> None:
        line = self._strip_prompt(line)
        info = classify_line(line)
        if should_forward(info.severity, self.config.log_level):
            self._log_sink(line, info.severity, info.module)

    def _check_for_start(self, text: str) -> None:
        if self._ready.is_set() or self.config.started_string not in text:
            return

        with self._lock:
            if self._ready.is_set():
                return
            self._ready.set()
            if self._state is StationState.STARTING:
                self._state = StationState.RUNNING
            on_ready = self._on_ready

        logger.info(f"Station '{self.config.station_name}' is ready")
        if on_ready is not None:
            on_ready()

    def _watch_exit(
        self, process: subprocess.Popen, stdout: OutputStream, stderr: OutputStream
    ) -> None:
        returncode = process.wait()
        stdout.join(READER_JOIN_TIMEOUT)
        stderr.join(READER_JOIN_TIMEOUT)
        self._log(f"exited with code {returncode}")

        with self._lock:
            self._state = StationState.EXITED
            self._exited.set()
            callbacks = list(self._exit_callbacks)

        logger.info(f"Station '{self.config.station_name}' exited with code {returncode}")

        for callback in callbacks:
            try:
                callback(returncode)
            except Exception:
                logger.error("Station exit callback failed", exc_info=True)

    def add_exit_callback(self, callback: Callable[[Optional[int]], None]) -> None:
        """Register ``callback(returncode)`` to run when the process exits."""
        with self._lock:
            self._exit_callbacks.append(callback)

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the station is ready.

        There is no startup deadline of its own: without ``timeout`` this
        waits until the started string appears or the process exits.

        Returns:
            True if the station is ready, False on timeout or early exit
        """
        self._require_process()

        waited = 0.0
        while not self._ready.is_set():
            if self._exited.is_set():
                return self._ready.is_set()
            step = 0.1 if timeout is None else min(0.1, timeout - waited)
            if step <= 0:
                return False
            self._ready.wait(step)
            waited += step
        return True

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """Block until the process exits and return its exit code (None on timeout)."""
        self._require_process()
        if not self._exited.wait(timeout):
            return None
        return self.returncode

    def _require_process(self) -> subprocess.Popen:
        if self._process is None:
            raise StationNotRunningError(
                f"Station '{self.config.station_name}' has not been started"
            )
        return self._process

    def _write(self, command: str) -> None:
        process = self._require_process()
        if self._exited.is_set() or process.stdin is None:
            raise StationNotRunningError(
                f"Station '{self.config.station_name}' is not running"
            )

        with self._stdin_lock:
            try:
                process.stdin.write(f"{command}\n".encode("utf-8"))
                process.stdin.flush()
            except (OSError, ValueError) as e:
                raise StationNotRunningError(
                    f"Cannot send '{command}' to station '{self.config.station_name}': {e}"
                ) from e
        logger.debug(f"Sent command '{command}' to station '{self.config.station_name}'")

    def do_command(
        self,
        command: str,
        await_substring: Optional[str] = None,
        callback: Optional[Callable[[str], None]] = None,
    ) -> Optional["Future[str]"]:
        """Send a console command to the station.

        When ``await_substring`` is given, the first complete stdout line
        containing it resolves the returned future and is passed to
        ``callback``, minus any leading prompt. Output still waiting for its
        newline is never matched, so a response split across reads is not
        truncated. There is no timeout: a response that never arrives leaves
        the listener registered, so only one awaited command per substring
        should be in flight at a time.

        Returns:
            Future resolved with the matching line, or None if nothing is awaited

        Raises:
            StationNotRunningError: If the station has no live process
        """
        self._require_process()
        stdout = self._stdout
        future: Optional["Future[str]"] = None
        listener = None

        if await_substring and stdout is not None:
            future = Future()
            response = future

            def listener(text: str, partial: bool) -> None:
                if partial or await_substring not in text or response.done():
                    return
                stdout.remove_listener(listener)
                text = self._strip_prompt(text)
                try:
                    if callback is not None:
                        callback(text)
                finally:
                    response.set_result(text)

            stdout.add_listener(listener)

        try:
            self._write(command)
        except StationNotRunningError:
            if listener is not None and stdout is not None:
                stdout.remove_listener(listener)
            raise

        return future

    def version(self, callback: Optional[Callable[[str], None]] = None) -> Optional["Future[str]"]:
        """Ask the station for its version banner."""
        return self.do_command("version", VERSION_BANNER, callback)

    def save(self, callback: Optional[Callable[[str], None]] = None) -> Optional["Future[str]"]:
        """Ask the station to save its bog file."""
        return self.do_command("save", SAVED_MARKER, callback)

    def _enter_stopping(self) -> None:
        with self._lock:
            if self._state is not StationState.EXITED:
                self._state = StationState.STOPPING

    def quit(self, timeout: Optional[float] = None) -> Optional[int]:
        """Ask the station to shut down and wait for it to exit.

        Never escalates: if ``timeout`` elapses the process is left running.

        Returns:
            The process exit code

        Raises:
            StationNotRunningError: If the station has no live process
            StationError: If the station did not exit within ``timeout``
        """
        self._require_process()
        if self._exited.is_set():
            return self.returncode

        self._write("quit")
        self._enter_stopping()
        if not self._exited.wait(timeout):
            raise StationError(
                f"Station '{self.config.station_name}' did not quit within {timeout}s"
            )
        return self.returncode

    def kill(self, timeout: float = DEFAULT_KILL_TIMEOUT) -> Optional[int]:
        """Ask the station to die, hard-killing the process after ``timeout`` seconds.

        Returns:
            The process exit code, if the station exited by itself

        Raises:
            StationNotRunningError: If the station was never started
            ImpoliteTerminationError: If the process had to be force-terminated
        """
        process = self._require_process()
        if self._exited.is_set():
            return self.returncode

        try:
            self._write("kill")
        except StationNotRunningError as e:
            logger.debug(f"Could not send kill command, waiting for exit anyway: {e}")
        self._enter_stopping()

        # returncode is set as soon as the watcher reaps the process, before
        # the readers have finished draining
        if self._exited.wait(timeout) or process.returncode is not None:
            return process.returncode

        logger.error(
            f"Station '{self.config.station_name}' failed to shut down within "
            f"{timeout}s. Killing station process {process.pid}..."
        )
        try:
            process.kill()
        except ProcessLookupError:
            logger.debug(f"Station process {process.pid} was already gone")
        returncode = process.wait()
        raise ImpoliteTerminationError(
            f"Station '{self.config.station_name}' was terminated impolitely",
            returncode=returncode,
        )
