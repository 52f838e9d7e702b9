from dual_cam_preview import main as cli
from dual_cam_preview.config.preview_config import load_preview_config
from dual_cam_preview.devices.cameras.dummy_camera import DummyCamera


def test_dummy_headless_run(capsys):
    code = cli.main(["--dummy", "--no-display", "--max-frames", "2", "--no-log-file"])

    out = capsys.readouterr().out
    assert code == 0
    assert "frame#2" in out
    assert "FPScam0=30 FPScam1=30" in out


def test_camera_open_failure_exits_nonzero(monkeypatch, capsys):
    def failing_dummy(index, seed=None):
        return DummyCamera(index, seed=seed, opened=index != 1)

    monkeypatch.setattr(cli, "DummyCamera", failing_dummy)
    code = cli.main(["--dummy", "--no-log-file"])

    captured = capsys.readouterr()
    assert code == 1
    assert "Cannot open camera 1." in captured.err
    assert "frame#" not in captured.out


def test_invalid_scale_is_a_usage_error(capsys):
    code = cli.main(["--dummy", "--scale", "1.5", "--no-log-file"])

    assert code == 2
    assert "scale" in capsys.readouterr().err


def test_save_config(tmp_path):
    path = tmp_path / "effective.toml"
    code = cli.main([
        "--dummy", "--no-display", "--max-frames", "1", "--scale", "0.25",
        "--no-log-file", "--save-config", str(path),
    ])

    saved = load_preview_config(path)
    assert code == 0
    assert saved.scale == 0.25
    assert saved.display is False
    assert saved.max_frames == 1


def test_unknown_trigger_mode_is_a_usage_error(capsys):
    code = cli.main(["--dummy", "--trigger-mode", "Bogus", "--no-log-file"])

    assert code == 2
    assert "Bogus" in capsys.readouterr().err


def test_unknown_backend_is_a_usage_error(capsys):
    code = cli.main(["--dummy", "--backend", "NOPE", "--no-log-file"])

    assert code == 2
    assert "NOPE" in capsys.readouterr().err


def test_empty_frame_size_exits_nonzero(monkeypatch, capsys):
    def empty_dummy(index, seed=None):
        return DummyCamera(index, seed=seed, rows=0, cols=0)

    monkeypatch.setattr(cli, "DummyCamera", empty_dummy)
    code = cli.main(["--dummy", "--no-log-file"])

    assert code == 1
    assert "empty frame size" in capsys.readouterr().err
