# ueventdiag

`ueventdiag` listens for Linux kernel uevents on a netlink socket. It works out
which configured piece of hardware each event is about. It then turns the event
into a diagnostic status:

- `OK` when the reported value matches the OK criterion.
- `ERROR` with the message "error detected" when the value matches the error criterion.
- A warning with the message "undefined thing may be input" when the value matches neither.

It needs Linux to receive events, because the events come from the kernel.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Commands

### ueventdiag-printer

`ueventdiag-printer` prints every uevent that arrives. Each field goes on its own line as
`ENV: key=<key>, value=<value>`, with the fields in key order. A `----------` line follows
each event. This helps when writing a configuration, because it shows what the kernel
actually sends.

```
ueventdiag-printer
```

### ueventdiag-publisher

`ueventdiag-publisher` reads a configuration file and watches uevents. For every
configured device it publishes a status line in two cases:

- every `--diag-update-period` seconds (default `0.1`);
- at once, whenever a matching event arrives.

```
ueventdiag-publisher --config-yaml-path config.yaml --diag-update-period 0.5
```

`--config-yaml-path` must name an existing file. If the file is missing, or a
description in it is invalid, the command logs the error and exits with status 1.
The command runs until you interrupt it or until receiving events fails. A receive
failure also ends with status 1.

Each status line has the form:

```
<hardware_id>_uevent_diag [<hardware_id>] <LEVEL>: <message> {<details>}
```

The details hold `status` and `obseravation` for the camera interpreters. `vi_camera`
also adds `device_node`.

## Configuration

The configuration is a YAML mapping. Each top-level entry describes one piece of
hardware to watch. All values are read as strings.

```yaml
front_camera:
  hardware_type: proframe_camera
  devpath: ".*/tegra-capture-vi"
  identifier_key: CAUSE
  key_is: ".* 12-001c"
  hardware_id: camera0
  value_key: FUSA_HW_FAULT
  value_type: error_flag
  criteria:
    status_ok: "0"
    status_error: "1"
```

The keys are:

- `hardware_type` selects the interpreter:
  - `proframe_camera` judges the value field.
  - `vi_camera` does the same, and also looks up the device's `videoN` node under
    `/sys/class/video4linux`. It matches the I2C bus and address, such as `12-001c`,
    that must appear in `key_is`.
  - Any other name gives a generic interpreter. It never changes its status, so it
    always reports `OK`.
- `devpath` is a regular expression. It must match the whole `DEVPATH` of the event.
- `identifier_key` names the event field that identifies the device. Field names are
  compared without regard to ASCII case.
- `key_is` is a regular expression that must match the whole value of the
  `identifier_key` field. If `identifier_key` is empty, only `devpath` is checked.
- `hardware_id` is the name used in the published diagnostics. If it is empty, the
  interpreter's default is used: `proframe_camera`, `vi_camera` or `default_hardware_id`.
- `value_key` names the event field that carries the reported value.
- `value_type` says how the value is judged:
  - `error_flag` compares the value with `status_ok` and `status_error` from
    `criteria`. Both keys are required.
  - Any other value type judges every value as undefined.

Every key except `criteria` is mandatory. `register_interpreter` raises `ValueError` in
these cases:

- a mandatory key is missing;
- `vi_camera` finds no I2C address in `key_is`;
- `error_flag` is missing one of its criteria.

## Using it from Python

```python
from ueventdiag.configurator import parse_yaml, register_interpreter
from ueventdiag.interpreters import DiagnosticStatus

descriptions = parse_yaml("config.yaml")
interpreters = [register_interpreter(d) for d in descriptions]

event = {
    "ACTION": "change",
    "DEVPATH": "/devices/platform/tegra-capture-vi",
    "CAUSE": "sensor 12-001c",
    "FUSA_HW_FAULT": "1",
}

for interpreter in interpreters:
    if interpreter.is_target(event):
        interpreter.interpret(event)
        stat = DiagnosticStatus()
        interpreter.get_current_status(stat)
        print(interpreter.hardware_id, stat.level, stat.message, stat.values)
```

Value types can also be used on their own:

```python
from ueventdiag.value_types import CriteriaMatches, get_value_type

flag = get_value_type("error_flag")
flag.set_criteria({"status_ok": "0", "status_error": "1"})
assert flag.apply_criteria(["0"]) is CriteriaMatches.OK
assert flag.apply_criteria(["1"]) is CriteriaMatches.ERROR
assert flag.apply_criteria(["2"]) is CriteriaMatches.UNDEFINED
```

### UeventDiagnosticsPublisher

`ueventdiag.publisher.UeventDiagnosticsPublisher` is the service behind the
`ueventdiag-publisher` command. It takes these arguments:

- the configuration path;
- an update period;
- an optional `sink`, a callable that receives each `DiagnosticStatus`. By default
  statuses are printed.

Its methods are:

- `start()` opens a kernel uevent socket. Alternatively, `start(receive)` takes a
  callable that returns raw datagrams.
- `submit(raw)` queues a datagram yourself.
- `process_event(event)` handles an already parsed event directly.
- `stop()`, or leaving a `with` block, drains the queue and stops publishing.

To read raw events yourself, follow these steps:

1. Open a `UeventSocket` from `ueventdiag.uevent_socket` in a `with` block.
2. Call `receive()` on it.
3. Pass the result to `create_env_map` to get a dictionary of the event's fields.

## What it does not do

Statuses are only printed to standard output or handed to the sink you supply. There is
no network transport or message bus for diagnostics. The configuration is read once at
start-up and is not reloaded.