"""Property-based tests for configuration models and loading.

**Property 13: Interval validation**
**Property 14: Environment variable loading**
**Property 15: Overrides win over the config file**
"""

import os
from pathlib import Path

import pytest
import structlog
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from foldersync.errors import ConfigurationError
from foldersync.models import AppConfig, ComparisonConfig, SyncConfig
from foldersync.utils.config_loader import ConfigLoader

log = structlog.stdlib.get_logger()


@given(st.integers(min_value=1, max_value=10**9))
def test_property_13_positive_interval_accepted(interval_ms: int):
    """Property 13: Interval validation.

    For any positive integer, given as a number or a decimal string, the
    interval is accepted and converted to seconds.
    """
    for value in (interval_ms, str(interval_ms)):
        config = SyncConfig(source_path="/src", replica_path="/dst", interval_ms=value)

        assert config.interval_ms == interval_ms
        assert config.interval_seconds == pytest.approx(interval_ms / 1000.0)


@given(st.integers(max_value=0))
def test_property_13_non_positive_interval_rejected(interval_ms: int):
    with pytest.raises(ValidationError):
        SyncConfig(source_path="/src", replica_path="/dst", interval_ms=interval_ms)


@pytest.mark.parametrize("value", ["abc", "1.5", "", "10ms", 2.5, True, None])
def test_non_integer_interval_rejected(value):
    with pytest.raises(ValidationError):
        SyncConfig(source_path="/src", replica_path="/dst", interval_ms=value)


def test_comparison_defaults():
    config = ComparisonConfig()

    assert config.hash_threshold_bytes == 10 * 1024 * 1024
    assert config.hash_algorithm == "md5"


def test_property_14_environment_variable_loading(monkeypatch):
    """Property 14: Environment variable loading.

    Settings given as FOLDERSYNC_ prefixed environment variables are read
    when the config is built.
    """
    monkeypatch.setenv("FOLDERSYNC_SYNC__SOURCE_PATH", "/data/source")
    monkeypatch.setenv("FOLDERSYNC_SYNC__REPLICA_PATH", "/data/replica")
    monkeypatch.setenv("FOLDERSYNC_SYNC__INTERVAL_MS", "30000")
    monkeypatch.setenv("FOLDERSYNC_COMPARISON__HASH_THRESHOLD_BYTES", "1024")
    monkeypatch.setenv("FOLDERSYNC_LOGGING__JSON_LOGS", "false")

    config = AppConfig()

    assert config.sync.source_path == "/data/source"
    assert config.sync.replica_path == "/data/replica"
    assert config.sync.interval_ms == 30000
    assert config.comparison.hash_threshold_bytes == 1024
    assert config.logging.json_logs is False


def test_load_yaml_with_env_substitution(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("MIRROR_ROOT", str(tmp_path))
    config_file = tmp_path / "mirror.yaml"
    config_file.write_text(
        "sync:\n"
        "  source_path: ${MIRROR_ROOT}/source\n"
        "  replica_path: ${MIRROR_ROOT}/replica\n"
        "  interval_ms: 5000\n"
        "comparison:\n"
        "  hash_algorithm: sha1\n"
    )

    config = ConfigLoader(config_dir=tmp_path).load_config(str(config_file))

    assert config.sync.source_path == f"{tmp_path}/source"
    assert config.sync.interval_ms == 5000
    assert config.comparison.hash_algorithm == "sha1"


def test_missing_env_var_raises(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("FOLDERSYNC_TEST_UNSET", raising=False)
    config_file = tmp_path / "mirror.yaml"
    config_file.write_text("sync:\n  source_path: ${FOLDERSYNC_TEST_UNSET}\n")

    with pytest.raises(ConfigurationError, match="FOLDERSYNC_TEST_UNSET"):
        ConfigLoader(config_dir=tmp_path).load_config(str(config_file))


@given(
    file_interval=st.integers(min_value=1, max_value=10**6),
    cli_interval=st.integers(min_value=1, max_value=10**6),
)
def test_property_15_overrides_win(file_interval: int, cli_interval: int):
    """Property 15: Overrides win over the config file; None overrides are ignored."""
    loader = ConfigLoader(config_dir=Path("/nonexistent"))
    merged = loader._merge(
        {"sync": {"source_path": "/a", "replica_path": "/b", "interval_ms": file_interval}},
        {"sync": {"source_path": None, "interval_ms": cli_interval}},
    )

    assert merged["sync"] == {
        "source_path": "/a",
        "replica_path": "/b",
        "interval_ms": cli_interval,
    }


def test_load_with_overrides_only(tmp_path: Path):
    overrides = {
        "sync": {"source_path": "/s", "replica_path": "/r", "interval_ms": "250"},
        "logging": {"log_level": None, "json_logs": None, "log_file": None},
    }

    config = ConfigLoader(config_dir=tmp_path).load_config(overrides=overrides)

    assert config.sync.interval_ms == 250
    assert config.logging.log_level == "INFO"


def test_invalid_interval_raises_configuration_error(tmp_path: Path):
    overrides = {"sync": {"source_path": "/s", "replica_path": "/r", "interval_ms": "-5"}}

    with pytest.raises(ConfigurationError, match="interval_ms"):
        ConfigLoader(config_dir=tmp_path).load_config(overrides=overrides)


def test_missing_folders_raise_configuration_error(tmp_path: Path):
    for key in list(os.environ):
        if key.upper().startswith("FOLDERSYNC_SYNC"):
            pytest.skip("sync settings present in the environment")

    with pytest.raises(ConfigurationError):
        ConfigLoader(config_dir=tmp_path).load_config(overrides={"sync": {"interval_ms": 10}})


def test_missing_config_file_raises(tmp_path: Path):
    with pytest.raises(ConfigurationError, match="not found"):
        ConfigLoader(config_dir=tmp_path).load_config(str(tmp_path / "absent.yaml"))


def test_malformed_yaml_raises(tmp_path: Path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("sync: [unclosed\n")

    with pytest.raises(ConfigurationError, match="parse"):
        ConfigLoader(config_dir=tmp_path).load_config(str(bad))


def test_shipped_default_config_is_valid():
    loader = ConfigLoader()
    default_path = loader._get_default_config_path()
    assert default_path is not None and default_path.endswith("default.yaml")

    config = loader.load_config(
        overrides={"sync": {"source_path": "/s", "replica_path": "/r", "interval_ms": 1000}}
    )

    assert config.comparison.hash_threshold_bytes == 10 * 1024 * 1024
    assert config.retry.max_retries == 2


def test_env_selects_config_file(tmp_path: Path, monkeypatch):
    (tmp_path / "default.yaml").write_text("retry:\n  max_retries: 1\n")
    (tmp_path / "ci.yaml").write_text("retry:\n  max_retries: 0\n")
    monkeypatch.setenv("FOLDERSYNC_ENV", "ci")

    config = ConfigLoader(config_dir=tmp_path).load_config(
        overrides={"sync": {"source_path": "/s", "replica_path": "/r", "interval_ms": 1}}
    )

    assert config.retry.max_retries == 0
