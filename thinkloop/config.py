"""
Typed configuration model with precedence-based loader.

Precedence (lowest to highest):
    defaults < config file (YAML) < env vars < CLI flags
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from thinkloop.errors import ConfigError


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------

@dataclass
class LLMConfig:
    base_url: str = "https://ollama.com"
    model: str = "gpt-oss:120b"
    api_key_env: str = "OLLAMA_API_KEY"
    reasoning_level: str = ""
    timeout_seconds: int = 120

    @property
    def api_key(self) -> str:
        return os.environ.get(self.api_key_env, "") if self.api_key_env else ""


@dataclass
class ToolsConfig:
    enabled: bool = False
    max_iterations: int = 3
    timeout_seconds: int = 30
    disabled: list[str] = field(default_factory=list)


@dataclass
class DisplayConfig:
    exclude_reasoning: bool = False


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------

@dataclass
class ThinkloopConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    profiles: dict[str, dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _apply_dotpath(obj: Any, dotpath: str, value: Any) -> None:
    """Walk obj via dotpath and set the final attribute."""
    parts = dotpath.split(".")
    for part in parts[:-1]:
        obj = getattr(obj, part)
    if not hasattr(obj, parts[-1]):
        raise ConfigError(f"Unknown config key: {dotpath}")
    setattr(obj, parts[-1], value)


def _deep_merge(base: dict, overlay: dict) -> dict:
    """Recursively merge overlay into base, returning a new dict."""
    merged = dict(base)
    for k, v in overlay.items():
        if k in merged and isinstance(merged[k], dict) and isinstance(v, dict):
            merged[k] = _deep_merge(merged[k], v)
        else:
            merged[k] = v
    return merged


def _coerce(value: str, target_type: type) -> Any:
    """Coerce a string env value to the target type."""
    if target_type is bool:
        return value.lower() in ("1", "true", "yes", "on")
    if target_type is int:
        return int(value)
    if target_type is list:
        return [s.strip() for s in value.split(",") if s.strip()]
    return value


def _build_section(cls: type, raw: dict) -> Any:
    """Build a dataclass section from a raw dict, ignoring unknown keys."""
    valid_fields = {f.name for f in fields(cls)}
    filtered = {k: v for k, v in (raw or {}).items() if k in valid_fields}
    return cls(**filtered)


# ---------------------------------------------------------------------------
# ENV var mapping
# ---------------------------------------------------------------------------

_ENV_MAP: dict[str, tuple[str, type]] = {
    "THINKLOOP_LLM_BASE_URL":             ("llm.base_url", str),
    "THINKLOOP_LLM_MODEL":                ("llm.model", str),
    "THINKLOOP_LLM_API_KEY_ENV":          ("llm.api_key_env", str),
    "THINKLOOP_LLM_REASONING_LEVEL":      ("llm.reasoning_level", str),
    "THINKLOOP_LLM_TIMEOUT":              ("llm.timeout_seconds", int),
    "THINKLOOP_TOOLS_ENABLED":            ("tools.enabled", bool),
    "THINKLOOP_TOOLS_MAX_ITERATIONS":     ("tools.max_iterations", int),
    "THINKLOOP_TOOLS_DISABLED":           ("tools.disabled", list),
    "THINKLOOP_DISPLAY_EXCLUDE_REASONING": ("display.exclude_reasoning", bool),
}


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load_config(
    config_path: str | Path | None = None,
    *,
    profile: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> ThinkloopConfig:
    """
    Build a ThinkloopConfig by layering sources in precedence order:

        defaults  <  config file  <  env vars  <  CLI flags

    Parameters
    ----------
    config_path : path to YAML config file (optional)
    profile : name of a profile to apply from the config file
    cli_overrides : dict of dotpath -> value CLI flag overrides
    """
    raw: dict[str, Any] = {}

    # --- 1. Config file ---
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.is_file():
            try:
                with p.open("r", encoding="utf-8") as f:
                    file_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {p}: {e}") from e
            if not isinstance(file_data, dict):
                raise ConfigError(f"Config file {p} must contain a mapping")
            raw = _deep_merge(raw, file_data)

    # --- 2. Profile overlay ---
    if profile:
        profile_data = raw.get("profiles", {}).get(profile)
        if profile_data is None:
            raise ConfigError(f"Unknown profile: {profile}")
        raw = _deep_merge(raw, profile_data)

    # --- Build sections from raw ---
    cfg = ThinkloopConfig(
        llm=_build_section(LLMConfig, raw.get("llm", {})),
        tools=_build_section(ToolsConfig, raw.get("tools", {})),
        display=_build_section(DisplayConfig, raw.get("display", {})),
        profiles=raw.get("profiles", {}),
    )

    # --- 3. Env var overrides ---
    for env_var, (dotpath, target_type) in _ENV_MAP.items():
        val = os.environ.get(env_var)
        if val is not None:
            _apply_dotpath(cfg, dotpath, _coerce(val, target_type))

    # --- 4. CLI flag overrides ---
    if cli_overrides:
        for dotpath, value in cli_overrides.items():
            if value is not None:
                _apply_dotpath(cfg, dotpath, value)

    return cfg


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "0.0.0.0")


def is_cloud_endpoint(base_url: str) -> bool:
    """Anything that is not a loopback address counts as cloud."""
    url = (base_url or "").lower()
    return bool(url) and not any(h in url for h in _LOCAL_HOSTS)


def validate_config(cfg: ThinkloopConfig) -> list[str]:
    """Return human-readable problems with *cfg*; empty when usable."""
    problems: list[str] = []

    level = cfg.llm.reasoning_level
    if level and level not in ("low", "medium", "high"):
        problems.append(
            f"llm.reasoning_level must be low, medium or high (got {level!r})"
        )

    if cfg.tools.max_iterations < 0:
        problems.append("tools.max_iterations must not be negative")

    if cfg.tools.enabled:
        if not is_cloud_endpoint(cfg.llm.base_url):
            problems.append(
                "Web search requires Ollama Cloud; set llm.base_url to https://ollama.com"
            )
        if not cfg.llm.api_key:
            problems.append(
                f"Web search requires an API key in ${cfg.llm.api_key_env}"
            )

    return problems
