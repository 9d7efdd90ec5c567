"""
Optimizer configuration.

A single immutable :class:`OptimizerConfig` is threaded through every pass.
There is no module-level mutable state: environment overrides are read only at
the CLI and language-server boundary via :meth:`OptimizerConfig.from_env`.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional

from gmlmath.utils.errors import ConfigError

ENV_PREFIX = "GMLMATH_"

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class OptimizerConfig:
    """
    Settings for one optimization run.

    Attributes:
        epsilon: Magnitude under which a coefficient or net delta counts as zero
        half_rotation: Fuse ``var s = e; s = s - s / 2 - lengthdir_x(s / 2, a)``
        dead_code: Remove runs of updates that cancel out
        reciprocal_division: Rewrite ``a / (1 / k)`` as ``a * k``
        sum_of_squares: Rewrite ``sqrt(a*a + b*b)`` as a distance call
        simplify_expressions: Canonicalize multiplicative expressions
        canonical_forms: Run the text-level canonical form transformers
        logical_flow: Run the boolean condition and control-flow transformers
        rotation_function: Name of the half-rotation helper
        distance_2d_function: Name of the 2D distance function
        distance_3d_function: Name of the 3D distance function
        epsilon_function: Name of the function returning the runtime epsilon
        undefined_check_function: Name of the undefined check function
    """

    epsilon: float = 1e-10
    half_rotation: bool = True
    dead_code: bool = True
    reciprocal_division: bool = True
    sum_of_squares: bool = True
    simplify_expressions: bool = True
    canonical_forms: bool = True
    logical_flow: bool = True
    rotation_function: str = "lengthdir_x"
    distance_2d_function: str = "point_distance"
    distance_3d_function: str = "point_distance_3d"
    epsilon_function: str = "math_get_epsilon"
    undefined_check_function: str = "is_undefined"

    def __post_init__(self) -> None:
        if not isinstance(self.epsilon, (int, float)) or isinstance(self.epsilon, bool):
            raise ConfigError(f"epsilon must be a number, got {self.epsilon!r}")
        if not math.isfinite(self.epsilon) or self.epsilon <= 0:
            raise ConfigError(f"epsilon must be a positive finite number, got {self.epsilon!r}")
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type == "bool" and not isinstance(value, bool):
                raise ConfigError(f"{f.name} must be a boolean, got {value!r}")
            if f.type == "str" and (not isinstance(value, str) or not _IDENTIFIER_RE.match(value)):
                raise ConfigError(f"{f.name} must be a GML identifier, got {value!r}")

    def with_overrides(self, **changes: Any) -> OptimizerConfig:
        """
        Return a copy with some settings changed.

        Raises:
            ConfigError: If a setting is unknown or a value is invalid.
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}")
        return replace(self, **changes)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str],
        base: Optional[OptimizerConfig] = None,
    ) -> OptimizerConfig:
        """
        Build a configuration from ``GMLMATH_*`` environment variables.

        ``GMLMATH_LOGICAL_FLOW=0`` disables the logical flow transformers,
        ``GMLMATH_EPSILON=1e-6`` changes the zero threshold, and so on. Unset
        variables keep the value from ``base`` (or the defaults).

        Raises:
            ConfigError: If a variable holds a value of the wrong type.
        """
        base = base or cls()
        changes: dict[str, Any] = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            raw = raw.strip()
            if f.type == "bool":
                changes[f.name] = _parse_bool(f.name, raw)
            elif f.type == "float":
                try:
                    changes[f.name] = float(raw)
                except ValueError as e:
                    raise ConfigError(f"{ENV_PREFIX}{f.name.upper()} is not a number: {raw!r}") from e
            else:
                changes[f.name] = raw
        return base.with_overrides(**changes) if changes else base


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{ENV_PREFIX}{name.upper()} is not a boolean: {raw!r}")


DEFAULT_CONFIG = OptimizerConfig()
