import pytest

from dual_cam_preview.config.preview_config import (
    PreviewConfig,
    load_preview_config,
    preview_config_toml_path,
    save_preview_config,
)


def test_shipped_defaults():
    cfg = load_preview_config(preview_config_toml_path)
    print("Loaded:", cfg)

    assert cfg.n_cameras == 2
    assert cfg.backend == "PVAPI"
    assert cfg.scale == pytest.approx(0.4)
    assert cfg.exposure_us == pytest.approx(60000.0)
    assert cfg.cancel_key == 27
    assert cfg.key_poll_ms == 10
    assert (cfg.window_x, cfg.window_y) == (780, 50)
    assert cfg == PreviewConfig()


def test_save_keeps_other_sections(tmp_path):
    path = tmp_path / "preview.toml"
    path.write_text('[other]\nvalue = 1\n')

    cfg = PreviewConfig(scale=0.5, display=False, max_frames=10)
    save_preview_config(path, cfg)

    assert load_preview_config(path) == cfg
    assert "[other]" in path.read_text()


def test_unknown_key_is_rejected(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text('[preview]\nn_cameras = 2\nframe_rate = 30\n')

    with pytest.raises(TypeError):
        load_preview_config(path)


def test_missing_section_is_rejected(tmp_path):
    path = tmp_path / "empty.toml"
    path.write_text('[something_else]\n')

    with pytest.raises(KeyError):
        load_preview_config(path)


@pytest.mark.parametrize("changes", [
    {"scale": 0.0},
    {"scale": 1.5},
    {"n_cameras": 0},
    {"exposure_s": 0.0},
    {"key_poll_ms": -1},
    {"max_frames": -3},
    {"backend": "NOPE"},
    {"trigger_mode": "Bogus"},
])
def test_validate_rejects_bad_values(changes):
    with pytest.raises(ValueError):
        PreviewConfig(**changes).validate()


def test_overrides_skip_none():
    cfg = PreviewConfig().with_overrides(scale=0.25, backend=None, display=False)

    assert cfg.scale == 0.25
    assert cfg.backend == "PVAPI"
    assert cfg.display is False


if __name__ == "__main__":
    test_shipped_defaults()
    test_overrides_skip_none()
