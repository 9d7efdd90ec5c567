"""
Unit tests for optimizer configuration.
"""

import dataclasses

import pytest

from gmlmath.config import DEFAULT_CONFIG, OptimizerConfig
from gmlmath.utils.errors import ConfigError


class TestDefaults:
    """Tests for the default configuration."""

    def test_defaults(self):
        """Test default values."""
        config = OptimizerConfig()
        assert config.epsilon == 1e-10
        assert config.logical_flow is True
        assert config.canonical_forms is True
        assert config.rotation_function == "lengthdir_x"
        assert config.distance_2d_function == "point_distance"
        assert config == DEFAULT_CONFIG

    def test_frozen(self):
        """Test that configurations are immutable."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.epsilon = 1.0


class TestOverrides:
    """Tests for with_overrides and validation."""

    def test_override_returns_copy(self):
        """Test that overriding leaves the original untouched."""
        config = DEFAULT_CONFIG.with_overrides(logical_flow=False, epsilon=1e-6)
        assert config.logical_flow is False
        assert config.epsilon == 1e-6
        assert DEFAULT_CONFIG.logical_flow is True

    def test_unknown_setting(self):
        """Test that unknown names are rejected."""
        with pytest.raises(ConfigError, match="Unknown setting"):
            DEFAULT_CONFIG.with_overrides(fast_math=True)

    @pytest.mark.parametrize(
        "changes",
        [
            {"epsilon": 0},
            {"epsilon": -1e-3},
            {"epsilon": float("nan")},
            {"epsilon": True},
            {"half_rotation": "yes"},
            {"rotation_function": "bad name"},
            {"epsilon_function": ""},
        ],
    )
    def test_invalid_values(self, changes):
        """Test that invalid values raise ConfigError."""
        with pytest.raises(ConfigError):
            OptimizerConfig(**changes)


class TestFromEnv:
    """Tests for environment overrides."""

    def test_empty_environment(self):
        """Test that no variables gives the base configuration."""
        assert OptimizerConfig.from_env({}) == DEFAULT_CONFIG

    def test_reads_prefixed_variables(self):
        """Test boolean, float and name variables."""
        config = OptimizerConfig.from_env(
            {
                "GMLMATH_LOGICAL_FLOW": "0",
                "GMLMATH_EPSILON": "1e-6",
                "GMLMATH_ROTATION_FUNCTION": "lengthdir_y",
                "PATH": "/usr/bin",
            }
        )
        assert config.logical_flow is False
        assert config.epsilon == 1e-6
        assert config.rotation_function == "lengthdir_y"

    @pytest.mark.parametrize("raw,expected", [("yes", True), ("On", True), ("false", False), (" off ", False)])
    def test_boolean_spellings(self, raw, expected):
        """Test accepted boolean spellings."""
        assert OptimizerConfig.from_env({"GMLMATH_DEAD_CODE": raw}).dead_code is expected

    def test_base_is_kept(self):
        """Test that unset variables keep the base values."""
        base = OptimizerConfig(canonical_forms=False)
        assert OptimizerConfig.from_env({"GMLMATH_DEAD_CODE": "0"}, base).canonical_forms is False

    @pytest.mark.parametrize(
        "environ",
        [{"GMLMATH_DEAD_CODE": "maybe"}, {"GMLMATH_EPSILON": "small"}, {"GMLMATH_EPSILON": "-1"}],
    )
    def test_invalid_environment(self, environ):
        """Test that bad values raise ConfigError."""
        with pytest.raises(ConfigError):
            OptimizerConfig.from_env(environ)
