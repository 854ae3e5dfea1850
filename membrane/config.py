"""Membrane session configuration."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class MembraneSettings(BaseSettings):
    """Environment-driven settings for membrane sessions."""

    # Root key the exported-procedure receiver is written to
    this_key: str = "g_this"

    # Emit the machine prelude ahead of the link block on compile
    include_prelude: bool = True

    # Keep every source text appended to the machine (debugging aid)
    record_sources: bool = False

    machine_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = {"env_prefix": "MEMBRANE_", "env_file": ".env", "extra": "ignore"}
