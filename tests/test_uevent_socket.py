import os
from unittest import mock

import pytest

from ueventdiag.uevent_socket import (
    ALL_GROUPS,
    BUFFER_SIZE,
    RCVBUF,
    NetlinkGroup,
    UeventSocket,
    create_env_map,
)


def test_create_env_map_kernel_message():
    raw = (
        b"change@/devices/platform/tegra-capture-vi\0"
        b"ACTION=change\0DEVPATH=/devices/platform/tegra-capture-vi\0"
        b"SUBSYSTEM=platform\0FUSA_HW_FAULT=1\0"
    )
    env = create_env_map(raw)
    assert env == {
        "ACTION": "change",
        "DEVPATH": "/devices/platform/tegra-capture-vi",
        "SUBSYSTEM": "platform",
        "FUSA_HW_FAULT": "1",
    }


def test_create_env_map_keys_sorted():
    env = create_env_map(b"ZETA=1\0ALPHA=2\0MID=3")
    assert list(env) == sorted(env)


def test_create_env_map_value_keeps_later_equals():
    env = create_env_map(b"CAUSE=a=b=c")
    assert env == {"CAUSE": "a=b=c"}


def test_create_env_map_empty_value_and_duplicates():
    env = create_env_map(b"EMPTY=\0DUP=first\0DUP=second")
    assert env == {"EMPTY": "", "DUP": "second"}


def test_create_env_map_without_pairs():
    assert create_env_map(b"") == {}
    assert create_env_map(b"add@/devices/x\0\0") == {}


@pytest.fixture
def fake_socket():
    with mock.patch("socket.socket") as factory:
        yield factory.return_value


def test_socket_binds_all_groups(fake_socket):
    fake_socket.recv.return_value = b"KEY=value\0"
    with UeventSocket() as sock:
        data = sock.receive()
    assert create_env_map(data) == {"KEY": "value"}
    assert ALL_GROUPS == 0xFFFFFFFF
    assert fake_socket.bind.call_args_list == [mock.call((os.getpid(), ALL_GROUPS))]
    set_values = [call.args[2] for call in fake_socket.setsockopt.call_args_list]
    assert set_values
    assert all(v == RCVBUF for v in set_values)
    assert fake_socket.close.call_count == 1


def test_bind_failure_closes_socket(fake_socket):
    fake_socket.bind.side_effect = PermissionError("denied")
    with pytest.raises(PermissionError):
        UeventSocket()
    fake_socket.close.assert_called_once_with()


def test_receive_returns_datagram(fake_socket):
    fake_socket.recv.return_value = b"ACTION=add\0"
    with UeventSocket() as sock:
        data = sock.receive()
    assert data == b"ACTION=add\0"
    fake_socket.recv.assert_called_once_with(BUFFER_SIZE - 1)


def test_receive_empty_raises(fake_socket):
    fake_socket.recv.return_value = b""
    with UeventSocket() as sock, pytest.raises(OSError):
        sock.receive()


def test_send_udev_event_targets_udev_group(fake_socket):
    payload = b"ACTION=change\0"
    fake_socket.sendto.return_value = len(payload)
    fake_socket.recv.return_value = payload
    with UeventSocket() as sock:
        sock.send_udev_event(payload)
        echoed = sock.receive()
    assert create_env_map(echoed) == {"ACTION": "change"}
    assert fake_socket.sendto.call_args_list == [
        mock.call(payload, (0, int(NetlinkGroup.UDEV)))
    ]
    assert fake_socket.sendto.call_args.args[1] == (0, 2)


def test_send_udev_event_short_write_raises(fake_socket):
    fake_socket.sendto.return_value = 3
    with UeventSocket() as sock:
        with pytest.raises(OSError, match="failed to send the whole message: 3 bytes written"):
            sock.send_udev_event(b"ACTION=change\0")