"""Service that turns kernel uevents into periodically published diagnostics."""

from __future__ import annotations

import argparse
import contextlib
import logging
import queue
import threading
from collections.abc import Callable, Mapping
from pathlib import Path

from ueventdiag.configurator import parse_yaml, register_interpreter
from ueventdiag.interpreters import DiagnosticStatus, InterpreterBase
from ueventdiag.uevent_socket import UeventSocket, create_env_map
from ueventdiag.value_types import CriteriaMatches

logger = logging.getLogger(__name__)

StatusSink = Callable[[DiagnosticStatus], None]
StatusTask = Callable[[DiagnosticStatus], None]

_STOP = object()


def _print_status(stat: DiagnosticStatus) -> None:
    level = CriteriaMatches(stat.level).name
    details = ", ".join(f"{k}={v}" for k, v in stat.values)
    print(
        f"{stat.name} [{stat.hardware_id}] {level}: {stat.message} {{{details}}}",
        flush=True,
    )


class DiagnosticUpdater:
    """Runs one diagnostic task periodically and on demand, handing results to a sink."""

    def __init__(
        self,
        name: str,
        hardware_id: str,
        task: StatusTask,
        period: float,
        sink: StatusSink,
    ) -> None:
        self.name = name
        self.hardware_id = hardware_id
        self.task = task
        self.period = period
        self.sink = sink
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    def update(self) -> DiagnosticStatus:
        """Run the task once and publish its status."""
        with self._lock:
            stat = DiagnosticStatus(name=self.name, hardware_id=self.hardware_id)
            self.task(stat)
            self.sink(stat)
            return stat

    def force_update(self) -> DiagnosticStatus:
        """Publish the current status immediately."""
        return self.update()

    def start(self) -> None:
        """Start publishing every ``period`` seconds."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stopped.clear()
        self._thread = threading.Thread(
            target=self._run, name=f"{self.name}-updater", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop periodic publishing."""
        self._stopped.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _run(self) -> None:
        while not self._stopped.wait(self.period):
            try:
                self.update()
            except Exception:
                logger.exception("diagnostic update of %s failed", self.name)


class UeventDiagnosticsPublisher:
    """Feeds received uevents to configured interpreters and publishes their status."""

    def __init__(
        self,
        config_yaml_path: str | Path,
        diag_update_period: float = 0.1,
        sink: StatusSink | None = None,
    ) -> None:
        self.sink = sink if sink is not None else _print_status
        self.interpreters: list[InterpreterBase] = []
        self.updaters: list[DiagnosticUpdater] = []
        for description in parse_yaml(config_yaml_path):
            interpreter = register_interpreter(description)
            updater = DiagnosticUpdater(
                f"{interpreter.hardware_id}_uevent_diag",
                interpreter.hardware_id,
                interpreter.get_current_status,
                diag_update_period,
                self.sink,
            )
            self.interpreters.append(interpreter)
            self.updaters.append(updater)

        self.receive_error: BaseException | None = None
        self._queue: queue.Queue[object] = queue.Queue()
        self._stop_requested = threading.Event()
        self._receiver_done = threading.Event()
        self._receiver_thread: threading.Thread | None = None
        self._process_thread: threading.Thread | None = None

    def submit(self, raw: bytes) -> None:
        """Queue one raw uevent datagram for processing."""
        self._queue.put(raw)

    def process_event(self, event: Mapping[str, str]) -> None:
        """Interpret ``event`` with every interpreter it targets and publish at once."""
        for interpreter, updater in zip(self.interpreters, self.updaters):
            if not interpreter.is_target(event):
                continue
            interpreter.interpret(event)
            updater.force_update()

    def start(self, receive: Callable[[], bytes] | None = None) -> None:
        """Start receiving, processing and periodic publishing.

        ``receive`` returns one raw datagram per call; by default a kernel
        uevent socket is opened in the receiving thread.
        """
        if self._process_thread is not None:
            return
        self._stop_requested.clear()
        self._receiver_done.clear()
        for updater in self.updaters:
            updater.start()
        self._process_thread = threading.Thread(
            target=self._process_loop, name="uevent-process", daemon=True
        )
        self._process_thread.start()
        self._receiver_thread = threading.Thread(
            target=self._receive_loop, args=(receive,), name="uevent-receive", daemon=True
        )
        self._receiver_thread.start()

    def stop(self) -> None:
        """Stop processing after draining queued uevents, then stop publishing."""
        self._stop_requested.set()
        if self._process_thread is not None:
            self._queue.put(_STOP)
            self._process_thread.join()
            self._process_thread = None
        for updater in self.updaters:
            updater.stop()

    def __enter__(self) -> UeventDiagnosticsPublisher:
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()

    def _receive_loop(self, receive: Callable[[], bytes] | None) -> None:
        try:
            with contextlib.ExitStack() as stack:
                if receive is None:
                    receive = stack.enter_context(UeventSocket()).receive
                while not self._stop_requested.is_set():
                    self.submit(receive())
        except Exception as exc:
            logger.error("%s", exc)
            self.receive_error = exc
        finally:
            self._receiver_done.set()

    def _process_loop(self) -> None:
        while True:
            raw = self._queue.get()
            if raw is _STOP:
                return
            try:
                self.process_event(create_env_map(raw))
            except Exception:
                logger.exception("failed to process uevent")


def main(argv: list[str] | None = None) -> int:
    """Run the publisher until interrupted or until receiving fails."""
    parser = argparse.ArgumentParser(
        prog="uevent-diagnostics-publisher",
        description="Publish hardware diagnostics derived from kernel uevents.",
    )
    parser.add_argument("--config-yaml-path", default="")
    parser.add_argument("--diag-update-period", type=float, default=0.1)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    try:
        publisher = UeventDiagnosticsPublisher(
            args.config_yaml_path, args.diag_update_period
        )
    except (OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    with publisher:
        publisher.start()
        try:
            while not publisher._receiver_done.wait(0.5):
                pass
        except KeyboardInterrupt:
            return 0
    return 1 if publisher.receive_error is not None else 0