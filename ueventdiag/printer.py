"""Command that prints every received kernel uevent."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Mapping

from ueventdiag.uevent_socket import UeventSocket, create_env_map

logger = logging.getLogger(__name__)

SEPARATOR = "----------"


def format_event(env: Mapping[str, str]) -> str:
    """Render one uevent as ``ENV:`` lines followed by a separator."""
    lines = [f"ENV: key={k}, value={v}" for k, v in env.items()]
    lines.append(SEPARATOR)
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """Print uevents until interrupted or until receiving fails."""
    argparse.ArgumentParser(
        prog="uevent-printer", description="Display the contents of kernel uevents."
    ).parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    try:
        uevent_socket = UeventSocket()
    except OSError as exc:
        logger.error("%s", exc)
        return 1

    with uevent_socket:
        print("Uevent Printer started. Waiting uevent...")
        print(SEPARATOR, flush=True)
        try:
            while True:
                try:
                    raw = uevent_socket.receive()
                except OSError as exc:
                    logger.error("%s", exc)
                    return 1
                print(format_event(create_env_map(raw)), flush=True)
        except KeyboardInterrupt:
            return 0


if __name__ == "__main__":
    sys.exit(main())