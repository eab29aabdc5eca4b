import pytest
import yaml

from mcam_recorder.config import RunConfig, load_config


def test_defaults():
    config = RunConfig()
    assert config.max_cam == 10
    assert config.output_dir == "./output"
    assert config.frame_size == (640, 480)
    assert config.fps == 30
    assert config.enable_overlay is True
    assert config.snapshot_dir == "snapshots"


@pytest.mark.parametrize("field", ["max_cam", "width", "height", "fps"])
@pytest.mark.parametrize("value", [0, -1])
def test_rejects_non_positive(field, value):
    with pytest.raises(ValueError):
        RunConfig(**{field: value})


def test_is_immutable():
    config = RunConfig()
    with pytest.raises(AttributeError):
        config.fps = 60


def test_overrides_skip_none():
    config = RunConfig().with_overrides(fps=15.0, width=None, enable_overlay=False)
    assert config.fps == 15.0
    assert config.width == 640.0
    assert config.enable_overlay is False


def test_from_yaml(tmp_path):
    path = tmp_path / "recorder.yaml"
    path.write_text(yaml.dump({"max_cam": 3, "width": 1280, "height": 720, "log_level": "DEBUG"}))

    config = load_config(str(path))

    assert config.max_cam == 3
    assert config.frame_size == (1280, 720)
    assert config.log_level == "DEBUG"


def test_from_yaml_unknown_key(tmp_path):
    path = tmp_path / "recorder.yaml"
    path.write_text("bitrate: 8000\n")
    with pytest.raises(ValueError, match="bitrate"):
        RunConfig.from_yaml(str(path))


def test_yaml_round_trip(tmp_path):
    path = tmp_path / "saved.yaml"
    original = RunConfig(max_cam=2, enable_overlay=False)
    original.to_yaml(str(path))
    assert RunConfig.from_yaml(str(path)) == original


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config("/nonexistent/recorder.yaml")


def test_no_path_gives_defaults():
    assert load_config() == RunConfig()
