"""
Smoke tests for configuration loading and validation.
"""

import pytest

from main import load_config, main, validate_config
from models.config import Config


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize(
        "section", ["camera", "model", "detection", "confirmation", "alerts", "log_level"]
    )
    def test_missing_section(self, valid_config, section):
        """Each required section is checked."""
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error

    def test_log_path_optional(self, valid_config):
        del valid_config["log_path"]
        assert validate_config(valid_config) == (True, None)

    def test_invalid_device_id_type(self, valid_config):
        """device_id with invalid type fails."""
        valid_config["camera"]["device_id"] = [1, 2, 3]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error

    def test_negative_device_id(self, valid_config):
        valid_config["camera"]["device_id"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error

    def test_video_file_device_id_valid(self, valid_config):
        """String device_id (video file) is valid."""
        valid_config["camera"]["device_id"] = "recordings/drive.mp4"

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    @pytest.mark.parametrize("resolution", [1920, [1920], [640, 0], [640.0, 480]])
    def test_invalid_resolution(self, valid_config, resolution):
        valid_config["camera"]["resolution"] = resolution

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "resolution" in error

    def test_invalid_rotate(self, valid_config):
        valid_config["camera"]["rotate"] = 45

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "rotate" in error

    @pytest.mark.parametrize("key", ["path", "labels_path"])
    def test_model_paths_required(self, valid_config, key):
        del valid_config["model"][key]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert key in error

    def test_invalid_num_threads(self, valid_config):
        valid_config["model"]["num_threads"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "num_threads" in error

    def test_zero_input_std(self, valid_config):
        valid_config["model"]["input_std"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "input_std" in error

    @pytest.mark.parametrize("key", ["confidence_threshold", "iou_threshold"])
    @pytest.mark.parametrize("value", [-0.1, 1.5, "high", True])
    def test_invalid_thresholds(self, valid_config, key, value):
        valid_config["detection"][key] = value

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert key in error

    @pytest.mark.parametrize("value", [0, -3, 2.5, True])
    def test_invalid_detection_threshold(self, valid_config, value):
        valid_config["confirmation"]["detection_threshold"] = value

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "detection_threshold" in error

    def test_negative_time_window(self, valid_config):
        valid_config["confirmation"]["time_window_ms"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "time_window_ms" in error

    def test_invalid_alert_backend(self, valid_config):
        valid_config["alerts"]["backend"] = "speaker"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "backend" in error

    @pytest.mark.parametrize("command", [[], "aplay", ["aplay", 1]])
    def test_invalid_player_command(self, valid_config, command):
        valid_config["alerts"]["player_command"] = command

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "player_command" in error

    def test_log_backend_needs_no_player(self, valid_config):
        valid_config["alerts"] = {"backend": "log"}
        assert validate_config(valid_config) == (True, None)

    def test_invalid_sounds_map(self, valid_config):
        valid_config["alerts"]["sounds"] = ["texting.wav"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "sounds" in error

    def test_invalid_log_level(self, valid_config):
        """Invalid log level fails."""
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        """Config loads from default.yaml when only it exists."""
        config = load_config(str(temp_config_dir / "config.yaml"))

        assert config["camera"]["device_id"] == 0
        assert config["camera"]["resolution"] == [640, 480]
        assert config["confirmation"]["detection_threshold"] == 8

    def test_local_overrides_merge(self, temp_config_dir):
        """Local config.yaml overrides default.yaml."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
camera:
  device_id: "drive.mp4"
confirmation:
  detection_threshold: 4
""")

        config = load_config(str(config_yaml))

        assert config["camera"]["device_id"] == "drive.mp4"
        assert config["confirmation"]["detection_threshold"] == 4
        # Original values preserved
        assert config["camera"]["resolution"] == [640, 480]
        assert config["confirmation"]["time_window_ms"] == 2000

    def test_explicit_path_layered_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("detection:\n  confidence_threshold: 0.4\n")
        explicit = temp_config_dir / "bench.yaml"
        explicit.write_text("detection:\n  confidence_threshold: 0.6\n")

        config = load_config(str(explicit))

        assert config["detection"]["confidence_threshold"] == 0.6
        assert config["detection"]["iou_threshold"] == 0.5

    def test_malformed_yaml_exits(self, temp_config_dir):
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("camera: [unclosed\n")

        with pytest.raises(SystemExit):
            load_config(str(config_yaml))

    def test_loaded_config_validates_and_types(self, temp_config_dir):
        raw = load_config(str(temp_config_dir / "config.yaml"))
        assert validate_config(raw) == (True, None)

        config = Config.from_dict(raw)
        assert config.alerts.backend == "log"
        assert config.detection.iou_threshold == 0.5

    def test_bundled_default_config_is_valid(self):
        from pathlib import Path

        config_dir = Path(__file__).parent.parent / "config"
        raw = load_config(str(config_dir / "default.yaml"))
        assert validate_config(raw) == (True, None)


class TestMain:
    def test_invalid_config_returns_error(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("log_level: VERBOSE\n")
        assert main(["--config", str(temp_config_dir / "config.yaml")]) == 1

    def test_missing_labels_returns_error(self, temp_config_dir, tmp_path):
        (temp_config_dir / "config.yaml").write_text(
            f"model:\n  labels_path: \"{tmp_path / 'missing.txt'}\"\nlog_path: \"{tmp_path / 'app.log'}\"\n"
        )
        assert main(["--config", str(temp_config_dir / "config.yaml")]) == 1

    def test_source_open_failure_returns_error(self, temp_config_dir, tmp_path, monkeypatch):
        import main as main_module
        from conftest import FakeEngine, build_tensor
        from detection.detector import Detector
        from pipeline.engine import create_engine_from_config

        class DeadCamera:
            source_id = "cabin-camera"
            exhausted = False

            def open(self):
                raise RuntimeError("Failed to open device 0 after 3 attempts")

            def read(self):
                return None

            def close(self):
                pass

        engine = FakeEngine(outputs=[build_tensor([], num_classes=2, num_elements=2)])
        monkeypatch.setattr(
            main_module, "create_detector_from_config",
            lambda config: Detector(engine, ("class-a", "class-b")),
        )
        monkeypatch.setattr(
            main_module, "create_engine_from_config",
            lambda config, detector, max_frames=None: create_engine_from_config(
                config, detector, source=DeadCamera(), max_frames=max_frames
            ),
        )
        (temp_config_dir / "config.yaml").write_text(f"log_path: \"{tmp_path / 'app.log'}\"\n")

        assert main(["--config", str(temp_config_dir / "config.yaml")]) == 1
        assert engine.closed == 1
