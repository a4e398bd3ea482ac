"""Defaults for linking runs and reports."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_positive_int
from .errors import ConfigurationError

DEFAULT_MAX_WORKERS = 1
DEFAULT_QUERY_CHUNK_SIZE = 500
DEFAULT_PAGE_SIZE = 50
DEFAULT_MAX_PAGE_SIZE = 500


@dataclass(frozen=True, slots=True)
class LinkingConfig:
    max_workers: int = DEFAULT_MAX_WORKERS
    query_chunk_size: int = DEFAULT_QUERY_CHUNK_SIZE
    default_page_size: int = DEFAULT_PAGE_SIZE
    max_page_size: int = DEFAULT_MAX_PAGE_SIZE


def get_linking_config() -> LinkingConfig:
    config = LinkingConfig(
        max_workers=optional_positive_int("LEGACYLINK_MAX_WORKERS", DEFAULT_MAX_WORKERS),
        query_chunk_size=optional_positive_int(
            "LEGACYLINK_QUERY_CHUNK_SIZE", DEFAULT_QUERY_CHUNK_SIZE
        ),
        default_page_size=optional_positive_int("LEGACYLINK_DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE),
        max_page_size=optional_positive_int("LEGACYLINK_MAX_PAGE_SIZE", DEFAULT_MAX_PAGE_SIZE),
    )
    if config.default_page_size > config.max_page_size:
        raise ConfigurationError(
            "LEGACYLINK_DEFAULT_PAGE_SIZE must not exceed LEGACYLINK_MAX_PAGE_SIZE"
        )
    return config
