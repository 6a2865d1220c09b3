from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .civitai_client import DEFAULT_BASE_URL
from .errors import ConfigError
from .polling import PollingPolicy

_DEFAULT_POLL_INTERVAL_S = 2.0
_DEFAULT_POLL_TIMEOUT_S = 300.0
_DEFAULT_HTTP_TIMEOUT_S = 30.0
_DEFAULT_OUTPUT_FORMAT = "jpeg"
_DEFAULT_ALLOWED_HOSTS: Tuple[str, ...] = (
    "imagegen",
    "imagegen:8000",
    "localhost",
    "localhost:8000",
    "localhost:*",
    "127.0.0.1",
    "127.0.0.1:8000",
    "127.0.0.1:*",
)


@dataclass(frozen=True)
class ImageGenConfig:
    api_token: str = field(repr=False)
    model: str
    base_url: str = DEFAULT_BASE_URL
    output_dir: Optional[Path] = None
    output_format: str = _DEFAULT_OUTPUT_FORMAT
    poll_interval_s: float = _DEFAULT_POLL_INTERVAL_S
    poll_timeout_s: float = _DEFAULT_POLL_TIMEOUT_S
    http_timeout_s: float = _DEFAULT_HTTP_TIMEOUT_S
    allowed_hosts: Tuple[str, ...] = _DEFAULT_ALLOWED_HOSTS
    log_level: str = "INFO"

    def polling_policy(self) -> PollingPolicy:
        return PollingPolicy(interval_s=self.poll_interval_s, deadline_s=self.poll_timeout_s)


def _parse_optional_float(value: str | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _positive_float(value: str | None, default: float) -> float:
    parsed = _parse_optional_float(value)
    if parsed is None or parsed <= 0:
        return default
    return parsed


def _non_empty(value: str | None) -> str:
    return (value or "").strip()


def load_config(
    overrides: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ImageGenConfig:
    merged: dict[str, str] = dict(environ or {})
    merged.update(overrides or {})

    api_token = _non_empty(merged.get("CIVITAI_API_TOKEN"))
    if not api_token:
        raise ConfigError("CIVITAI_API_TOKEN is required")
    model = _non_empty(merged.get("CIVITAI_MODEL"))
    if not model:
        raise ConfigError("CIVITAI_MODEL is required")

    output_dir_raw = _non_empty(merged.get("CIVITAI_OUTPUT_DIR"))
    raw_allowed_hosts = merged.get("MCP_ALLOWED_HOSTS", "")
    allowed_hosts = tuple(h.strip() for h in raw_allowed_hosts.split(",") if h.strip())
    return ImageGenConfig(
        api_token=api_token,
        model=model,
        base_url=_non_empty(merged.get("CIVITAI_BASE_URL")) or DEFAULT_BASE_URL,
        output_dir=Path(output_dir_raw).expanduser() if output_dir_raw else None,
        output_format=_non_empty(merged.get("CIVITAI_OUTPUT_FORMAT")).lstrip(".").lower()
        or _DEFAULT_OUTPUT_FORMAT,
        poll_interval_s=_positive_float(
            merged.get("CIVITAI_POLL_INTERVAL_S"), _DEFAULT_POLL_INTERVAL_S
        ),
        poll_timeout_s=_positive_float(merged.get("CIVITAI_POLL_TIMEOUT_S"), _DEFAULT_POLL_TIMEOUT_S),
        http_timeout_s=_positive_float(merged.get("CIVITAI_HTTP_TIMEOUT_S"), _DEFAULT_HTTP_TIMEOUT_S),
        allowed_hosts=allowed_hosts or _DEFAULT_ALLOWED_HOSTS,
        log_level=_non_empty(merged.get("LOG_LEVEL")).upper() or "INFO",
    )
