"""
Process-start environment gate.

Validates the environment once before the application serves anything. A
development server tolerates non-critical problems; production and test
processes refuse to start on any error.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from showcase.core.config import ConfigurationError, get_configuration
from showcase.core.diagnostics import (
    configuration_summary,
    format_validation_report,
    troubleshooting_guidance,
)
from showcase.core.environment import Mode
from showcase.core.rules import CRITICAL_ERROR_KEYWORDS
from showcase.core.validation import EnvironmentValidator, ValidationResult

log = structlog.get_logger()


def critical_errors(errors: list[str]) -> list[str]:
    return [e for e in errors if any(keyword in e for keyword in CRITICAL_ERROR_KEYWORDS)]


def run_startup_validation(
    validator: EnvironmentValidator,
    *,
    build_phase: bool = False,
    exit_process: Callable[[int], object] = sys.exit,
) -> ValidationResult | None:
    """Validate at startup and stop the process when the result is fatal.

    Returns the validation result, or None when skipped for the build phase.
    """
    if build_phase:
        log.info("startup.skipped", reason="build_phase")
        return None

    mode = validator.mode
    log.info(
        "startup.validating",
        mode=mode.value,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    result = validator.current()
    log.info(
        "startup.validation_summary",
        mode=mode.value,
        valid=result.is_valid,
        errors=len(result.errors),
        warnings=len(result.warnings),
    )

    if result.warnings:
        log.warning("startup.configuration_warnings", warnings=result.warnings)

    if result.is_valid:
        _log_configuration_summary(validator)
        log.info("startup.validation_passed", mode=mode.value)
        return result

    log.error(
        "startup.validation_failed",
        mode=mode.value,
        errors=result.errors,
        guidance=troubleshooting_guidance(mode),
        report=format_validation_report(result),
    )
    _handle_failure(mode, result, exit_process)
    return result


def _handle_failure(
    mode: Mode,
    result: ValidationResult,
    exit_process: Callable[[int], object],
) -> None:
    if mode is Mode.DEVELOPMENT:
        critical = critical_errors(result.errors)
        if critical:
            log.error(
                "startup.critical_errors",
                errors=critical,
                message="Development server cannot start with these errors.",
            )
            exit_process(1)
            return
        log.warning(
            "startup.non_critical_errors",
            errors=result.errors,
            message="Development server will continue but some features may not work.",
        )
        return

    log.error(
        "startup.aborting",
        mode=mode.value,
        message="All environment variables must be properly configured before serving.",
    )
    exit_process(1)


def _log_configuration_summary(validator: EnvironmentValidator) -> None:
    try:
        configuration = get_configuration(validator.raw)
    except ConfigurationError as exc:
        log.warning("startup.summary_unavailable", error=str(exc))
        return
    log.info("startup.configuration_summary", **configuration_summary(configuration))
