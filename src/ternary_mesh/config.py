"""
Configuration for ternary mesh trees.

A `TreeConfig` is fixed for the lifetime of a tree instance. Defaults can be
overridden per process through `TMT_*` environment variables.
"""

from __future__ import annotations

import os
from typing import Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

HashAlgorithm = Literal["blake3", "sha256"]
"""Names of the supported hash primitives."""

ENV_PREFIX = "TMT_"
"""Prefix shared by all configuration environment variables."""


class TreeConfig(BaseModel):
    """A model holding the tunables of a tree instance."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enable_caching: bool = True
    """Memoize leaf digests by content for the duration of one build."""

    max_cache_size: int = Field(default=10_000, ge=0)
    """Maximum number of entries the build-scoped cache may hold."""

    enable_metrics: bool = True
    """Record timings, counters and the memory estimate."""

    parallel_threshold: int = Field(default=1000, ge=0)
    """
    Layer length at which group digests are computed on a thread pool.

    Zero disables the parallel path entirely.
    """

    max_workers: int | None = Field(default=None, ge=1)
    """Size of the build thread pool. `None` uses the executor default."""

    hash_algorithm: HashAlgorithm = "blake3"
    """The hash primitive used for leaves and internal nodes."""


DEFAULT_CONFIG = TreeConfig()
"""The configuration used when none is supplied."""


def load_config(environ: Mapping[str, str] | None = None) -> TreeConfig:
    """
    Build a configuration from `TMT_*` environment variables.

    Unset variables keep their defaults. For example, `TMT_MAX_CACHE_SIZE=0`
    disables cache storage and `TMT_HASH_ALGORITHM=sha256` swaps the primitive.

    Args:
        environ: Mapping to read from. Defaults to `os.environ`.

    Raises:
        ValueError: If a variable holds a value the field does not accept.
    """
    env = os.environ if environ is None else environ

    overrides: dict[str, str] = {}
    for name in TreeConfig.model_fields:
        key = ENV_PREFIX + name.upper()
        if key in env:
            overrides[name] = env[key]

    try:
        return TreeConfig.model_validate(overrides)
    except ValidationError as e:
        bad = ", ".join(ENV_PREFIX + str(err["loc"][0]).upper() for err in e.errors())
        raise ValueError(f"Invalid tree configuration in environment: {bad}") from e
