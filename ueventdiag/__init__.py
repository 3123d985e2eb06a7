"""Hardware diagnostics built from Linux kernel uevents: socket, interpreters, publisher and printer."""

__version__ = "0.1.0"