import pytest

from ueventdiag.interpreters import (
    DiagnosticStatus,
    InterpreterBase,
    ProFrameCameraInterpreter,
    ViCameraInterpreter,
    get_interpreter,
)


@pytest.fixture
def v4l2_dir(tmp_path):
    video0 = tmp_path / "video0"
    video0.mkdir()
    (video0 / "name").write_text("vi-output, tier4_isx021 12-001c\n")
    video1 = tmp_path / "video1"
    video1.mkdir()
    (video1 / "name").write_text("vi-output, tier4_isx021 13-001c\n")
    other = tmp_path / "media0"
    other.mkdir()
    (other / "name").write_text("vi-output, tier4_isx021 12-001c\n")
    return tmp_path


def _event(cause):
    return {
        "ACTION": "change",
        "DEVPATH": "/devices/platform/tegra-capture-vi",
        "SUBSYSTEM": "platform",
        "FUSA_HW_FAULT": "1",
        "CAUSE1": cause,
        "DRIVER": "tegra-camrtc-capture-vi",
    }


def _vi_camera(search_path):
    interpreter = ViCameraInterpreter(search_path)
    interpreter.setup(
        ".*/tegra-capture-vi", "CAUSE1", ".* 12-001c", "camera0", "FUSA_HW_FAULT", "bool"
    )
    return interpreter


def test_regex_matching(v4l2_dir):
    interpreter = _vi_camera(v4l2_dir)
    assert interpreter.is_target(_event("tier4_isx021 12-001c")) is True
    assert interpreter.is_target(_event("tier4_isx021 13-001c")) is False

    undefined = get_interpreter("undefined_hw")
    undefined.setup(
        "no specified", "CAUSE1", ".* 12-001c", "other hw", "FUSA_HW_FAULT", "bool"
    )
    assert undefined.is_target(_event("tier4_isx021 12-001c")) is False


def test_search_video_device(v4l2_dir):
    assert ViCameraInterpreter.search_device_node(v4l2_dir, "12-001c") == "video0"
    assert ViCameraInterpreter.search_device_node(v4l2_dir, "13-001c") == "video1"
    assert ViCameraInterpreter.search_device_node(v4l2_dir, "14-001c") is None


def test_setup_resolves_device_node(v4l2_dir):
    interpreter = _vi_camera(v4l2_dir)
    assert interpreter.device_node == "video0"


def test_setup_without_i2c_pattern_raises(v4l2_dir):
    interpreter = ViCameraInterpreter(v4l2_dir)
    with pytest.raises(ValueError, match="I2C bus and address"):
        interpreter.setup("x", "CAUSE1", "no address", "camera0", "V", "bool")


def test_search_missing_directory_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        ViCameraInterpreter.search_device_node(tmp_path / "missing", "12-001c")


def test_is_target_keys_are_case_insensitive():
    interpreter = InterpreterBase()
    interpreter.setup("/devices/.*", "cause", "abc", "hw", "V", "bool")
    assert interpreter.is_target({"devpath": "/devices/x", "Cause": "abc"}) is True
    assert interpreter.is_target({"devpath": "/devices/x"}) is False
    assert interpreter.is_target({"Cause": "abc"}) is False


def test_is_target_without_identifier_key():
    interpreter = InterpreterBase()
    interpreter.setup("/devices/.*", "", "", "hw", "V", "bool")
    assert interpreter.is_target({"DEVPATH": "/devices/x"}) is True
    assert interpreter.is_target({"DEVPATH": "/other/x"}) is False


def test_dev_path_requires_full_match():
    interpreter = InterpreterBase()
    interpreter.setup("/devices", "", "", "hw", "V", "bool")
    assert interpreter.is_target({"DEVPATH": "/devices/platform"}) is False


def test_hardware_id_defaults(v4l2_dir):
    assert get_interpreter("vi_camera").hardware_id == "vi_camera"
    assert get_interpreter("proframe_camera").hardware_id == "proframe_camera"
    assert get_interpreter("unknown").hardware_id == "default_hardware_id"
    assert _vi_camera(v4l2_dir).hardware_id == "camera0"


def test_proframe_interpret_and_status():
    interpreter = ProFrameCameraInterpreter()
    interpreter.setup("/devices/.*", "", "", "", "FAULT", "error_flag")
    interpreter.install_criteria_to_filter({"status_ok": "0", "status_error": "1"})

    stat = DiagnosticStatus()
    interpreter.get_current_status(stat)
    assert stat.level == DiagnosticStatus.OK
    assert stat.message == ""

    interpreter.interpret({"DEVPATH": "/devices/a", "FAULT": "1"})
    stat = DiagnosticStatus()
    interpreter.get_current_status(stat)
    assert stat.level == DiagnosticStatus.ERROR
    assert stat.message == "error detected"
    assert stat.values == [("status", "ERROR"), ("obseravation", "1")]

    interpreter.interpret({"DEVPATH": "/devices/a", "FAULT": "7"})
    stat = DiagnosticStatus()
    interpreter.get_current_status(stat)
    assert stat.level == DiagnosticStatus.WARN
    assert stat.message == "undefined thing may be input"
    assert stat.values == [("status", "UNDEFINED"), ("obseravation", "7")]


def test_vi_camera_status_includes_device_node(v4l2_dir):
    interpreter = _vi_camera(v4l2_dir)
    interpreter.interpret(_event("tier4_isx021 12-001c"))
    stat = DiagnosticStatus()
    interpreter.get_current_status(stat)
    assert stat.level == DiagnosticStatus.WARN
    assert stat.values == [
        ("status", "UNDEFINED"),
        ("obseravation", "1"),
        ("device_node", "video0"),
    ]


def test_interpret_missing_value_key_raises():
    interpreter = ProFrameCameraInterpreter()
    interpreter.setup("/devices/.*", "", "", "", "FAULT", "error_flag")
    with pytest.raises(KeyError):
        interpreter.interpret({"DEVPATH": "/devices/a"})


def test_error_flag_criteria_required():
    interpreter = InterpreterBase()
    interpreter.setup("x", "", "", "hw", "V", "error_flag")
    with pytest.raises(ValueError):
        interpreter.install_criteria_to_filter({"status_ok": "0"})


def test_base_interpret_leaves_status_ok():
    interpreter = InterpreterBase()
    interpreter.setup("x", "", "", "hw", "V", "error_flag")
    interpreter.interpret({"V": "1"})
    stat = DiagnosticStatus()
    interpreter.get_current_status(stat)
    assert (stat.level, stat.values) == (DiagnosticStatus.OK, [])