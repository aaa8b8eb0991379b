"""Exceptions raised for protocol responses and USB device failures."""

from __future__ import annotations

import logging
import os
import signal
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path

from ptpwire.codes import ResponseType

__all__ = [
    "response_name",
    "InvalidResponseError",
    "UsbTimeoutError",
    "DeviceNotFoundError",
    "ProcessDescriptor",
    "DeviceBusyError",
]

log = logging.getLogger(__name__)


def response_name(code: int) -> str:
    """Return the symbolic name of a response code, or "Unknown"."""
    try:
        return ResponseType(code).name
    except ValueError:
        return "Unknown"


class InvalidResponseError(RuntimeError):
    """The device answered a transaction with a non-OK response code."""

    def __init__(self, where: str, response_type: int) -> None:
        try:
            self.response_type: int = ResponseType(response_type)
        except ValueError:
            self.response_type = response_type
        super().__init__(
            f"{where}: invalid response code {response_name(response_type)} "
            f"(0x{int(response_type) & 0xFFFF:04x})"
        )


class UsbTimeoutError(RuntimeError):
    """A USB transfer timed out."""


class DeviceNotFoundError(RuntimeError):
    """The device was disconnected or could not be found."""

    def __init__(self) -> None:
        super().__init__("device was disconnected")


@dataclass(frozen=True)
class ProcessDescriptor:
    """A process holding the device open: its pid and executable."""

    id: int
    name: str


def _read_link(path: Path | str) -> str:
    try:
        return os.readlink(path)
    except OSError as ex:
        log.debug("readlink %s: %s", path, ex)
        return ""


def _find_holders(target: str, proc_root: Path, own_pid: int) -> list[ProcessDescriptor]:
    """Scan a /proc-like tree for processes whose descriptors point at target."""
    holders: list[ProcessDescriptor] = []
    for entry in sorted(os.listdir(proc_root)):
        try:
            pid = int(entry)
        except ValueError:
            continue
        if pid == own_pid:
            continue
        fds_root = proc_root / entry / "fd"
        try:
            fd_names = os.listdir(fds_root)
        except OSError as ex:
            log.debug("error reading %s: %s", fds_root, ex)
            continue
        for fd_name in fd_names:
            fd_target = _read_link(fds_root / fd_name)
            if fd_target and fd_target == target:
                log.debug("process %d is holding file descriptor to %s", pid, target)
                holders.append(ProcessDescriptor(pid, _read_link(proc_root / entry / "exe")))
    return holders


class DeviceBusyError(RuntimeError):
    """The device is claimed by another process; lists the holders where possible."""

    def __init__(self, fd: int = -1, msg: str = "Device is already used by another process") -> None:
        super().__init__(msg)
        self.processes: list[ProcessDescriptor] = field(default_factory=list) if False else []
        if fd < 0 or not sys.platform.startswith("linux"):
            return
        try:
            target = _read_link(f"/proc/self/fd/{fd}")
            if target:
                log.debug("mapped %d to %s", fd, target)
                self.processes = _find_holders(target, Path("/proc"), os.getpid())
        except Exception as ex:  # discovery is best effort only
            log.debug("DeviceBusyError error: %s", ex)

    def kill(self) -> None:
        """Terminate every process holding the device, logging failures."""
        for desc in self.processes:
            try:
                self.kill_process(desc)
            except Exception as ex:
                log.error("Kill: %s", ex)

    @staticmethod
    def kill_process(desc: ProcessDescriptor) -> None:
        """Send SIGTERM, wait a second, then SIGKILL to one process."""
        if desc.id <= 0:
            raise ValueError(f"invalid process id {desc.id}")
        if not sys.platform.startswith("linux"):
            raise OSError("terminating device holders is only supported on Linux")
        try:
            os.kill(desc.id, signal.SIGTERM)
        except OSError as ex:
            raise OSError(f"kill({desc.id} ({desc.name}), SIGTERM): {ex}") from ex
        time.sleep(1)
        try:
            os.kill(desc.id, signal.SIGKILL)
        except OSError:
            pass