from __future__ import annotations

from typing import Literal, Optional, Sequence

from . import config
from .logging_utils import _scraper_event
from .models import ScrapeTarget
from .utils import log_line

Entrypoint = Literal["cli", "replay", "tests"]


def _raise_config_error(
    message: str, *, entrypoint: Entrypoint, error: str, variant: str | None
) -> None:
    _scraper_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
        variant=variant,
    )
    variant_fragment = f", variant={variant}" if variant else ""
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint}{variant_fragment})")
    raise ValueError(message)


def validate_runtime_config(
    entrypoint: Entrypoint,
    *,
    variant: str | None = None,
    backend: str | None = None,
    targets: Optional[Sequence[ScrapeTarget]] = None,
) -> None:
    """Validate runtime configuration for the given entrypoint.

    Raises ``ValueError`` when a misconfiguration would prevent every target
    from running. Non-fatal adjustments (e.g., clamping the page cap) are
    logged but do not raise.
    """

    backend = backend or config.BROWSER_BACKEND
    if entrypoint != "replay" and backend not in config.SUPPORTED_BACKENDS:
        _raise_config_error(
            f"Unsupported browser backend {backend!r}.",
            entrypoint=entrypoint,
            error="unknown_backend",
            variant=variant,
        )

    if config.PAGE_CAP < 1:
        adjusted = 1
        _scraper_event(
            "state",
            phase="config",
            context="runtime_validation",
            kind="config_adjustment",
            field="PAGE_CAP",
            value=config.PAGE_CAP,
            adjusted=adjusted,
            entrypoint=entrypoint,
            variant=variant,
        )
        log_line("[CONFIG] PAGE_CAP < 1; clamping to 1.")
        config.PAGE_CAP = adjusted

    timeout_fields = [
        ("NAV_TIMEOUT_SECONDS", config.NAV_TIMEOUT_SECONDS),
        ("CLICK_TIMEOUT_MS", config.CLICK_TIMEOUT_MS),
    ]
    for field_name, value in timeout_fields:
        if value <= 0:
            _raise_config_error(
                f"{field_name} must be greater than zero.",
                entrypoint=entrypoint,
                error="invalid_timeout",
                variant=variant,
            )

    wait_fields = [
        ("WAIT_SECONDS", config.WAIT_SECONDS),
        ("POST_CLICK_WAIT_MS", config.POST_CLICK_WAIT_MS),
        ("INTER_TARGET_DELAY_MS", config.INTER_TARGET_DELAY_MS),
    ]
    for field_name, value in wait_fields:
        if value < 0:
            _raise_config_error(
                f"{field_name} must be non-negative.",
                entrypoint=entrypoint,
                error="invalid_wait",
                variant=variant,
            )

    if targets is not None and not targets:
        _raise_config_error(
            "No targets to scrape.",
            entrypoint=entrypoint,
            error="empty_target_list",
            variant=variant,
        )


__all__ = ["validate_runtime_config", "Entrypoint"]
