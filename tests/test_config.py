"""
Configuration Tests
===================

YAML loading and environment overrides.
"""

import os

from ivf_scorer.config import Settings, load_config


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults(self, tmp_path):
        settings = load_config(str(tmp_path / "absent.yaml"))

        assert settings.recognition.backend == "tesseract"
        assert settings.recognition.confidence_threshold == 75
        assert settings.repair.max_gap_seconds == 3600
        assert settings.scoring.output_subdir == "vmaf"
        assert settings.scoring.keep_intermediate_files is False

    def test_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "recognition:\n"
            "  workers: 3\n"
            "scoring:\n"
            "  preview: true\n"
            "  model_path: /opt/vmaf.json\n"
        )

        settings = load_config(str(path))

        assert settings.worker_count == 3
        assert settings.scoring.preview is True
        assert settings.scoring.model_path == "/opt/vmaf.json"

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("scoring:\n  ffmpeg_path: /usr/bin/ffmpeg\n")
        monkeypatch.setenv("IVF_SCORER_FFMPEG", "/opt/ffmpeg")
        monkeypatch.setenv("IVF_SCORER_KEEP_INTERMEDIATE", "yes")
        monkeypatch.setenv("IVF_SCORER_WORKERS", "5")

        settings = load_config(str(path))

        assert settings.scoring.ffmpeg_path == "/opt/ffmpeg"
        assert settings.scoring.keep_intermediate_files is True
        assert settings.recognition.workers == 5

    def test_worker_count_defaults_to_cpus(self):
        assert Settings().worker_count == (os.cpu_count() or 1)
