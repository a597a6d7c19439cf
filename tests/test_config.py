# tests/test_config.py
import dataclasses
import json

import pytest
from dualsplit._version import __version__
from dualsplit.config import (
    CONFIG_FILENAME,
    SplitConfig,
    config_from_dict,
    default_config_dict,
    load_config,
    write_default_config,
)


def test_defaults():
    cfg = SplitConfig()
    assert cfg.duplicate_input is True
    assert (cfg.target_width, cfg.target_height) == (750, 750)
    assert cfg.flip_horizontal is True
    assert cfg.reverse_depth_order is True
    assert cfg.target_size(100, 50) == (750, 750)


def test_config_is_immutable():
    cfg = SplitConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.target_width = 10


def test_no_resize_keeps_source_size():
    assert SplitConfig(resize=False).target_size(100, 50) == (100, 50)


@pytest.mark.parametrize("bad", [0, -5, 2.5, True])
def test_invalid_target_size(bad):
    with pytest.raises(ValueError):
        SplitConfig(target_width=bad)


def test_same_channel_names_rejected():
    with pytest.raises(ValueError):
        SplitConfig(green_name="A", red_name="A")


def test_write_and_load_roundtrip(tmp_path):
    path = tmp_path / CONFIG_FILENAME
    write_default_config(str(path))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["version"] == __version__
    assert data["processing"]["target_width"] == 750

    data["processing"]["target_width"] = 512
    data["processing"]["flip_horizontal"] = False
    path.write_text(json.dumps(data), encoding="utf-8")

    cfg = load_config(str(path))
    assert cfg.target_width == 512
    assert cfg.target_height == 750
    assert cfg.flip_horizontal is False


def test_write_refuses_overwrite(tmp_path):
    path = tmp_path / CONFIG_FILENAME
    write_default_config(str(path))
    with pytest.raises(FileExistsError):
        write_default_config(str(path))


def test_unknown_keys_are_ignored(caplog):
    cfg = config_from_dict({"processing": {"target_width": 300, "gamma": 2}})
    assert cfg.target_width == 300
    assert "gamma" in caplog.text


def test_bad_bool_rejected():
    with pytest.raises(ValueError):
        config_from_dict({"processing": {"flip_horizontal": "yes"}})


def test_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_load_from_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert load_config() == SplitConfig()

    data = default_config_dict()
    data["processing"]["reverse_depth_order"] = False
    (tmp_path / CONFIG_FILENAME).write_text(json.dumps(data), encoding="utf-8")
    assert load_config().reverse_depth_order is False
