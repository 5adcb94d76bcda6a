from __future__ import annotations

import json
import logging
from datetime import timedelta
from pathlib import Path

import pytest

from raspicam import Encoding, ExposureMode, FloatRect, PreviewMode, Still, StillYUV, Vid
from raspicam.config import ConfigError, command_from_dict, load_config


def _write_json(path: Path, data: dict) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_no_config_is_a_default_still() -> None:
    command = load_config(None)
    assert isinstance(command, Still)
    assert command.params() == ["--output", "-"]


def test_json_config(tmp_path: Path) -> None:
    path = _write_json(
        tmp_path / "still.json",
        {
            "kind": "still",
            "timeout": 10,
            "width": 100,
            "height": 1000,
            "encoding": "png",
            "camera": {
                "sharpness": 11,
                "brightness": 12,
                "contrast": 13,
                "exposure_mode": "night",
                "region_of_interest": {"x": 0.5, "y": 0.5, "w": 0.25, "h": 0.25},
                "shutter_speed": 0.002,
            },
            "preview": {"mode": "DISABLED"},
            "args": ["--verbose"],
        },
    )

    command = load_config(path)

    assert isinstance(command, Still)
    assert command.timeout == timedelta(seconds=10)
    assert command.encoding is Encoding.PNG
    assert command.camera.exposure_mode is ExposureMode.NIGHT
    assert command.camera.region_of_interest == FloatRect(0.5, 0.5, 0.25, 0.25)
    assert command.preview.mode is PreviewMode.DISABLED
    assert command.params() == [
        "--output", "-", "--timeout", "10000", "--width", "100", "--height", "1000",
        "--sharpness", "11", "--contrast", "13", "--brightness", "12",
        "--exposure", "night", "--roi", "0.5,0.5,0.25,0.25", "--shutter", "2000",
        "--nopreview", "--encoding", "png", "--verbose",
    ]


def test_yaml_config(tmp_path: Path) -> None:
    pytest.importorskip("yaml")
    path = tmp_path / "vid.yaml"
    path.write_text(
        "kind: vid\n"
        "command: /usr/local/bin/raspivid\n"
        "timeout: 30\n"
        "framerate: 90\n"
        "camera:\n"
        "  hflip: true\n",
        encoding="utf-8",
    )

    command = load_config(path)

    assert isinstance(command, Vid)
    assert command.command_line() == [
        "/usr/local/bin/raspivid", "--output", "-", "--timeout", "30000", "--framerate", "90", "--hflip",
    ]


def test_yuv_kind() -> None:
    command = command_from_dict({"kind": "yuv", "use_rgb": True})
    assert isinstance(command, StillYUV)
    assert command.params() == ["--output", "-", "--rgb"]


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.json")


def test_unknown_kind() -> None:
    with pytest.raises(ConfigError, match="Unknown capture command"):
        command_from_dict({"kind": "panorama"})


def test_invalid_enum_value() -> None:
    with pytest.raises(ConfigError, match="camera.awb_mode"):
        command_from_dict({"camera": {"awb_mode": "moonlight"}})


def test_invalid_number() -> None:
    with pytest.raises(ConfigError, match="width"):
        command_from_dict({"width": "wide"})


def test_section_must_be_a_mapping() -> None:
    with pytest.raises(ConfigError, match="camera"):
        command_from_dict({"camera": 5})


def test_unknown_keys_are_ignored_with_a_warning(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="raspicam.config"):
        command = command_from_dict({"zoom": 2, "camera": {"focus": 1}})

    assert command.params() == ["--output", "-"]
    assert "zoom" in caplog.text
    assert "camera.focus" in caplog.text


def test_boolean_strings_are_parsed() -> None:
    command = command_from_dict({"kind": "still", "raw": "false", "camera": {"hflip": "no", "vflip": "Yes"}})

    assert command.raw is False
    assert command.camera.hflip is False
    assert command.camera.vflip is True
    assert command.params() == ["--output", "-", "--vflip"]


@pytest.mark.parametrize("value", ["True", " on ", 1, True])
def test_truthy_boolean_values(value) -> None:
    assert command_from_dict({"kind": "yuv", "use_rgb": value}).use_rgb is True


@pytest.mark.parametrize("value", ["maybe", "", 2, 0.5, None])
def test_invalid_boolean_is_rejected(value) -> None:
    with pytest.raises(ConfigError, match="camera.hflip: invalid boolean"):
        command_from_dict({"camera": {"hflip": value}})


def test_malformed_json_is_a_config_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text('{"kind": "still",', encoding="utf-8")

    with pytest.raises(ConfigError, match="broken.json: not valid JSON"):
        load_config(path)


def test_malformed_yaml_is_a_config_error(tmp_path: Path) -> None:
    pytest.importorskip("yaml")
    path = tmp_path / "broken.yaml"
    path.write_text("kind: [still\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="broken.yaml: not valid YAML"):
        load_config(path)
