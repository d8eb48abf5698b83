"""Tests for pydantic configuration models."""

import logging

from pydantic import ValidationError
import pytest
import yaml

from percentile_sharing.config import (
    DEFAULT_POLICIES,
    ExecutionConfig,
    LoggingConfig,
    PercentileConfig,
    PercentileRequest,
)


class TestPercentileRequest:
    """Test PercentileRequest."""

    def test_defaults(self):
        request = PercentileRequest(percentile=0.5)
        assert request.policy == "floor"
        assert request.share_id == "values"
        assert request.name is None
        assert request.label == "q0500_floor"

    def test_name_overrides_label(self):
        assert PercentileRequest(percentile=0.95, name="p95").label == "p95"

    @pytest.mark.parametrize("p", [-0.1, 1.1])
    def test_percentile_range(self, p):
        with pytest.raises(ValidationError):
            PercentileRequest(percentile=p)

    def test_unknown_policy(self):
        with pytest.raises(ValidationError):
            PercentileRequest(percentile=0.5, policy="nearest")

    @pytest.mark.parametrize("share_id", ["", "  "])
    def test_blank_share_id(self, share_id):
        with pytest.raises(ValidationError):
            PercentileRequest(percentile=0.5, share_id=share_id)

    def test_frozen(self):
        request = PercentileRequest(percentile=0.5)
        with pytest.raises(ValidationError):
            request.percentile = 0.7


class TestExecutionConfig:
    """Test ExecutionConfig."""

    def test_defaults(self):
        execution = ExecutionConfig()
        assert execution.n_workers == 1
        assert execution.chunk_size is None
        assert execution.progress_bar is False

    def test_invalid_workers(self):
        with pytest.raises(ValidationError):
            ExecutionConfig(n_workers=0)

    def test_invalid_chunk_size(self):
        with pytest.raises(ValidationError):
            ExecutionConfig(chunk_size=0)


class TestPercentileConfig:
    """Test PercentileConfig."""

    def test_grid(self):
        config = PercentileConfig.grid([0.25, 0.75], ["floor", "linear"], share_id="s")
        assert [r.label for r in config.requests] == [
            "q0250_floor",
            "q0250_linear",
            "q0750_floor",
            "q0750_linear",
        ]
        assert {r.share_id for r in config.requests} == {"s"}

    def test_grid_default_policies(self):
        config = PercentileConfig.grid([0.5])
        assert tuple(r.policy for r in config.requests) == DEFAULT_POLICIES

    def test_duplicate_labels(self):
        with pytest.raises(ValidationError, match="Duplicate"):
            PercentileConfig(
                requests=[PercentileRequest(percentile=0.5), PercentileRequest(percentile=0.5)]
            )

    def test_yaml_round_trip(self, tmp_path):
        config = PercentileConfig.grid([0.1, 0.9], ["half_up"], execution={"n_workers": 2})
        path = tmp_path / "nested" / "config.yaml"
        config.to_yaml(path)
        loaded = PercentileConfig.from_yaml(path)
        assert loaded == config

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.dump(
                {
                    "requests": [
                        {"percentile": 0.5, "policy": "linear"},
                        {"percentile": 0.95, "policy": "half_up", "name": "p95"},
                    ],
                    "execution": {"chunk_size": 100},
                }
            ),
            encoding="utf-8",
        )
        config = PercentileConfig.from_yaml(path)
        assert [r.label for r in config.requests] == ["q0500_linear", "p95"]
        assert config.execution.chunk_size == 100

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert PercentileConfig.from_yaml(path).requests == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PercentileConfig.from_yaml(tmp_path / "missing.yaml")


class TestSetupLogging:
    """Test logging setup."""

    @pytest.fixture(autouse=True)
    def restore_logger(self):
        logger = logging.getLogger("percentile_sharing")
        handlers, level = list(logger.handlers), logger.level
        yield
        for handler in logger.handlers:
            handler.close()
        logger.handlers[:] = handlers
        logger.setLevel(level)

    def test_console_and_file(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        config = PercentileConfig(
            logging=LoggingConfig(level="DEBUG", log_file=str(log_file))
        )
        config.setup_logging()
        logger = logging.getLogger("percentile_sharing")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        logging.getLogger("percentile_sharing.registry").debug("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in log_file.read_text(encoding="utf-8")

    def test_disabled(self):
        logger = logging.getLogger("percentile_sharing")
        before = list(logger.handlers)
        PercentileConfig(logging=LoggingConfig(enabled=False)).setup_logging()
        assert logger.handlers == before
