"""Runtime configuration for the annotation overlay engine."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from typing import Mapping

from newsmarks.overlay.models import ALL_SOURCE_KINDS, SourceKind


DEFAULT_CACHE_SIZE = 128
DEFAULT_LOG_LEVEL = "INFO"
NO_SOURCES_KEYWORD = "none"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(*, name: str, raw_value: str) -> bool:
    value = raw_value.strip().casefold()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be one of: {', '.join(sorted(_TRUE_VALUES | _FALSE_VALUES))}")


def _parse_non_negative_int(*, name: str, raw_value: str) -> int:
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 0:
        raise ValueError(f"{name} must be >= 0")
    return value


def parse_source_kinds(raw_value: str) -> frozenset[SourceKind]:
    """Parse a comma-separated list of source kinds.

    A blank value means all kinds; the keyword ``none`` disables every kind.
    """

    names = [name for name in (part.strip() for part in raw_value.split(",")) if name]
    if not names:
        return ALL_SOURCE_KINDS
    if any(name.casefold() == NO_SOURCES_KEYWORD for name in names):
        if len(names) > 1:
            raise ValueError(f"'{NO_SOURCES_KEYWORD}' cannot be combined with other source kinds")
        return frozenset()
    return frozenset(SourceKind.parse(name) for name in names)


@dataclass(frozen=True, slots=True)
class OverlaySettings:
    """Validated overlay engine settings."""

    enabled_sources: frozenset[SourceKind] = ALL_SOURCE_KINDS
    strict: bool = False
    cache_size: int = DEFAULT_CACHE_SIZE
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "OverlaySettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        sources_raw = source.get("NEWSMARKS_ENABLED_SOURCES", "")
        strict_raw = source.get("NEWSMARKS_STRICT", "false").strip()
        cache_size_raw = source.get("NEWSMARKS_CACHE_SIZE", str(DEFAULT_CACHE_SIZE)).strip()
        log_level_raw = source.get("NEWSMARKS_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()

        if not strict_raw:
            raise ValueError("NEWSMARKS_STRICT cannot be empty")
        if not cache_size_raw:
            raise ValueError("NEWSMARKS_CACHE_SIZE cannot be empty")
        if not log_level_raw:
            raise ValueError("NEWSMARKS_LOG_LEVEL cannot be empty")

        try:
            enabled_sources = parse_source_kinds(sources_raw)
        except ValueError as exc:
            raise ValueError(f"NEWSMARKS_ENABLED_SOURCES is invalid: {exc}") from exc

        if not isinstance(logging.getLevelName(log_level_raw), int):
            raise ValueError(f"NEWSMARKS_LOG_LEVEL must be a logging level name, got '{log_level_raw}'")

        return cls(
            enabled_sources=enabled_sources,
            strict=_parse_bool(name="NEWSMARKS_STRICT", raw_value=strict_raw),
            cache_size=_parse_non_negative_int(name="NEWSMARKS_CACHE_SIZE", raw_value=cache_size_raw),
            log_level=log_level_raw,
        )
