"""Interpreters that turn matching uevents into diagnostic status."""

from __future__ import annotations

import os
import re
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar

from ueventdiag.value_types import CriteriaMatches, ValueTypeBase, get_value_type

DEFAULT_V4L2_SEARCH_PATH = "/sys/class/video4linux"

_I2C_KEY_PATTERN = re.compile(r"[0-9]+-[0-9]+[a-zA-Z]")
_I2C_NAME_PATTERN = re.compile(r"[0-9]+-[0-9]+[a-zA-Z]+")
_V4L2_NODE_PATTERN = re.compile(r"video[0-9]+$")

_ASCII_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)


def _equal_ignore_case(lhs: str, rhs: str) -> bool:
    return lhs.translate(_ASCII_LOWER) == rhs.translate(_ASCII_LOWER)


def _find_ignore_case(event: Mapping[str, str], key: str) -> str | None:
    return next((v for k, v in event.items() if _equal_ignore_case(k, key)), None)


@dataclass
class DiagnosticStatus:
    """A diagnostic report: level, message and key/value details."""

    OK: ClassVar[int] = 0
    WARN: ClassVar[int] = 1
    ERROR: ClassVar[int] = 2
    STALE: ClassVar[int] = 3

    name: str = ""
    hardware_id: str = ""
    level: int = 0
    message: str = ""
    values: list[tuple[str, str]] = field(default_factory=list)

    def summary(self, level: int, message: str) -> None:
        """Set the level and message."""
        self.level = int(level)
        self.message = message

    def add(self, key: str, value: object) -> None:
        """Append a key/value detail."""
        self.values.append((key, str(value)))


class InterpreterBase:
    """Decides whether a uevent concerns a device and reports its status."""

    default_hardware_id = "default_hardware_id"

    def __init__(self) -> None:
        self.dev_path_str = ""
        self.dev_path_regex: re.Pattern[str] | None = None
        self.identifier_key = ""
        self.key_str = ""
        self.key_regex: re.Pattern[str] | None = None
        self._hardware_id = ""
        self.value_key = ""
        self.value_type = ""
        self.criteria_filter: ValueTypeBase = ValueTypeBase()
        self.criteria_match = CriteriaMatches.OK
        self._stat_lock = threading.Lock()

    def setup(
        self,
        dev_path_regex: str,
        identifier_key: str,
        key_regex: str,
        hardware_id: str,
        value_key: str,
        value_type: str,
    ) -> None:
        """Configure matching patterns, identifiers and the value type."""
        self.dev_path_str = dev_path_regex
        self.dev_path_regex = re.compile(dev_path_regex)
        self.identifier_key = identifier_key
        self.key_str = key_regex
        self.key_regex = re.compile(key_regex)
        self._hardware_id = hardware_id
        self.value_key = value_key
        self.value_type = value_type
        self.criteria_filter = get_value_type(value_type)
        # uevents arrive only on status changes, so start from OK.
        self.criteria_match = CriteriaMatches.OK

    def install_criteria_to_filter(self, criteria: Mapping[str, str]) -> None:
        """Pass criteria on to the value type."""
        self.criteria_filter.set_criteria(criteria)

    @property
    def hardware_id(self) -> str:
        """Configured hardware id, or the interpreter's default when empty."""
        return self._hardware_id or self.default_hardware_id

    def is_target(self, event: Mapping[str, str]) -> bool:
        """Whether ``event`` concerns the device this interpreter watches."""
        dev_path = _find_ignore_case(event, "devpath")
        if dev_path is None:
            return False

        identifier = _find_ignore_case(event, self.identifier_key)
        if identifier is None and self.identifier_key:
            return False

        if self.dev_path_regex is None or self.key_regex is None:
            return False

        if self.dev_path_regex.fullmatch(dev_path) is None:
            return False
        if self.identifier_key:
            return self.key_regex.fullmatch(identifier) is not None
        return True

    def get_current_status(self, stat: DiagnosticStatus) -> None:
        """Write the current level and message into ``stat``."""
        with self._stat_lock:
            if self.criteria_match == CriteriaMatches.OK:
                stat.summary(DiagnosticStatus.OK, "")
            elif self.criteria_match == CriteriaMatches.ERROR:
                stat.summary(DiagnosticStatus.ERROR, "error detected")
            else:
                stat.summary(DiagnosticStatus.WARN, "undefined thing may be input")

    def interpret(self, event: Mapping[str, str]) -> None:
        """Update the status from ``event``; the base interpreter ignores it."""


class ProFrameCameraInterpreter(InterpreterBase):
    """Watches a single uevent field of a ProFrame camera."""

    default_hardware_id = "proframe_camera"

    def __init__(self) -> None:
        super().__init__()
        self.observation = ""

    def interpret(self, event: Mapping[str, str]) -> None:
        """Judge the configured value field of ``event``."""
        with self._stat_lock:
            self.observation = event[self.value_key]
            self.criteria_match = self.criteria_filter.apply_criteria(
                [self.observation]
            )

    def get_current_status(self, stat: DiagnosticStatus) -> None:
        """Report level, status name and the last observation."""
        super().get_current_status(stat)
        with self._stat_lock:
            stat.add("status", str(self.criteria_match))
            stat.add("obseravation", self.observation)


class ViCameraInterpreter(InterpreterBase):
    """Watches a VI camera and resolves its video device node."""

    default_hardware_id = "vi_camera"

    def __init__(self, search_path: str | os.PathLike[str] = DEFAULT_V4L2_SEARCH_PATH) -> None:
        super().__init__()
        self.search_path = search_path
        self.device_node: str | None = None
        self.observation = ""

    def setup(
        self,
        dev_path_regex: str,
        identifier_key: str,
        key_regex: str,
        hardware_id: str,
        value_key: str,
        value_type: str,
    ) -> None:
        """Configure as the base does, then look up the video device node."""
        super().setup(
            dev_path_regex, identifier_key, key_regex, hardware_id, value_key, value_type
        )
        match = _I2C_KEY_PATTERN.search(self.key_str)
        if match is None:
            raise ValueError("I2C bus and address pattern is not found in the key")
        self.device_node = self.search_device_node(self.search_path, match.group())

    @staticmethod
    def search_device_node(
        search_path: str | os.PathLike[str], i2c_bus_addr: str
    ) -> str | None:
        """Find the ``videoN`` directory whose ``name`` file holds ``i2c_bus_addr``."""
        device_node: str | None = None
        with os.scandir(search_path) as entries:
            for entry in sorted(entries, key=lambda e: e.name):
                if not entry.is_dir():
                    continue
                if _V4L2_NODE_PATTERN.search(entry.name) is None:
                    continue
                name_file = Path(entry.path) / "name"
                if not name_file.exists():
                    continue
                try:
                    content = name_file.read_text(errors="replace")
                except OSError:
                    continue
                for line in content.split("\n"):
                    found = _I2C_NAME_PATTERN.search(line)
                    if found is not None and found.group() == i2c_bus_addr:
                        device_node = entry.name
        return device_node

    def interpret(self, event: Mapping[str, str]) -> None:
        """Judge the configured value field of ``event``."""
        with self._stat_lock:
            self.observation = event[self.value_key]
            self.criteria_match = self.criteria_filter.apply_criteria(
                [self.observation]
            )

    def get_current_status(self, stat: DiagnosticStatus) -> None:
        """Report level, status name, last observation and device node."""
        super().get_current_status(stat)
        with self._stat_lock:
            stat.add("status", str(self.criteria_match))
            stat.add("obseravation", self.observation)
            stat.add("device_node", self.device_node or "")


_INTERPRETERS: dict[str, Callable[[], InterpreterBase]] = {
    "vi_camera": ViCameraInterpreter,
    "proframe_camera": ProFrameCameraInterpreter,
}


def get_interpreter(hardware_type: str) -> InterpreterBase:
    """Create the interpreter for ``hardware_type``, or a base interpreter."""
    factory = _INTERPRETERS.get(hardware_type, InterpreterBase)
    return factory()