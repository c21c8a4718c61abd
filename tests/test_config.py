import pytest
from pydantic import ValidationError

from sphereindex.config.schema import (
    AddressFormat,
    Config,
    LoggingConfig,
    LogLevel,
    QueryConfig,
    TessellationConfig,
)


def sample_config():
    return Config(
        tessellation=TessellationConfig(depth=6, parallel=True, max_workers=2),
        query=QueryConfig(default_bits=32, default_depth=4, address_format="hex"),
        logging=LoggingConfig(level="info"),
    )


def test_defaults():
    cfg = Config()
    assert cfg.tessellation.depth == 8
    assert cfg.tessellation.tolerance_factor == 1e-9
    assert cfg.query.default_bits == 64
    assert cfg.query.default_depth is None
    assert cfg.query.address_format == AddressFormat.DOTTED
    assert cfg.logging.level == LogLevel.WARNING


def test_level_is_case_insensitive():
    assert LoggingConfig(level="debug").level == LogLevel.DEBUG


def test_toml_round_trip(tmp_path):
    cfg = sample_config()
    path = tmp_path / "sphereindex.toml"
    cfg.to_toml(path)
    assert Config.from_file(path) == cfg


def test_toml_omits_unset_values(tmp_path):
    path = tmp_path / "defaults.toml"
    Config().to_toml(path)
    assert "default_depth" not in path.read_text()
    assert Config.from_toml(path) == Config()


def test_yaml_round_trip(tmp_path):
    cfg = sample_config()
    path = tmp_path / "sphereindex.yaml"
    cfg.to_yaml(path)
    assert Config.from_file(path) == cfg


def test_empty_yaml(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("")
    assert Config.from_yaml(path) == Config()


def test_field_validation():
    with pytest.raises(ValidationError):
        TessellationConfig(depth=30)
    with pytest.raises(ValidationError):
        TessellationConfig(tolerance_factor=0.0)
    with pytest.raises(ValidationError):
        TessellationConfig(max_workers=0)
    with pytest.raises(ValidationError):
        QueryConfig(default_bits=16)
    with pytest.raises(ValidationError):
        Config(unknown={})


def test_query_depth_must_exist_in_index():
    with pytest.raises(ValidationError):
        Config(tessellation=TessellationConfig(depth=3), query=QueryConfig(default_depth=4))


def test_large_arena_warns():
    with pytest.warns(UserWarning):
        TessellationConfig(depth=12, arena_depth=10)


def test_arena_depth_limits():
    assert TessellationConfig(depth=29).arena_depth is None
    with pytest.raises(ValidationError):
        TessellationConfig(depth=20, arena_depth=11)
    with pytest.raises(ValidationError):
        TessellationConfig(depth=3, arena_depth=4)
    with pytest.raises(ValidationError):
        TessellationConfig(depth=3, arena_depth=0)


def test_file_errors(tmp_path):
    with pytest.raises(ValueError):
        Config.from_file(tmp_path / "config.json")
    with pytest.raises(FileNotFoundError):
        Config.from_file(tmp_path / "missing.toml")
