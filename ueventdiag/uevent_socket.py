"""Kernel uevent netlink socket and uevent payload parsing."""

from __future__ import annotations

import contextlib
import errno
import os
import socket
from enum import IntEnum

RCVBUF = 2 * 1024 * 1024
BUFFER_SIZE = 16 * 1024
NETLINK_KOBJECT_UEVENT = 15
ALL_GROUPS = 0xFFFFFFFF

_AF_NETLINK = getattr(socket, "AF_NETLINK", 16)
_SO_RCVBUFFORCE = getattr(socket, "SO_RCVBUFFORCE", 33)


class NetlinkGroup(IntEnum):
    """Netlink multicast groups carrying uevents."""

    KERNEL = 1
    UDEV = 2


def create_env_map(raw: bytes) -> dict[str, str]:
    """Split a NUL-separated uevent payload into a key-sorted dict.

    Segments without ``=`` (such as the ``action@devpath`` header) are skipped;
    a later duplicate key overrides an earlier one.
    """
    env: dict[str, str] = {}
    for segment in raw.split(b"\0"):
        key, sep, value = segment.partition(b"=")
        if not sep:
            continue
        env[key.decode("utf-8", errors="replace")] = value.decode(
            "utf-8", errors="replace"
        )
    return dict(sorted(env.items()))


class UeventSocket:
    """Netlink socket subscribed to every kernel uevent group."""

    def __init__(self) -> None:
        sock = socket.socket(_AF_NETLINK, socket.SOCK_RAW, NETLINK_KOBJECT_UEVENT)
        # Buffer enlargement is best effort; forcing it needs privileges.
        for option in (socket.SO_RCVBUF, _SO_RCVBUFFORCE):
            with contextlib.suppress(OSError):
                sock.setsockopt(socket.SOL_SOCKET, option, RCVBUF)
        try:
            sock.bind((os.getpid(), ALL_GROUPS))
        except OSError:
            sock.close()
            raise
        self._sock = sock

    def receive(self) -> bytes:
        """Receive one uevent datagram; oversized datagrams are truncated."""
        data = self._sock.recv(BUFFER_SIZE - 1)
        if not data:
            raise OSError(errno.EIO, "no uevent data received")
        return data

    def send_udev_event(self, payload: bytes) -> None:
        """Send ``payload`` to the udev multicast group."""
        written = self._sock.sendto(payload, (0, int(NetlinkGroup.UDEV)))
        if written != len(payload):
            raise OSError(
                errno.EIO,
                f"failed to send the whole message: {written} bytes written",
            )

    def close(self) -> None:
        """Close the underlying socket."""
        self._sock.close()

    def __enter__(self) -> UeventSocket:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()