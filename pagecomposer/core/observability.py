"""
Logfire observability configuration for PageComposer.

Provides tracing for the composition stages (assemble, inject, isolate,
finalize). Stages always log through the standard `logging` module; spans
are only emitted once `setup_logfire()` has succeeded.

Usage:
    from pagecomposer.core.observability import setup_logfire, stage_span
    setup_logfire()

    with stage_span("isolate_styles", document_id=document_id):
        ...

Environment Variables:
    LOGFIRE_TOKEN: Your Logfire write token (required for production)
    LOGFIRE_PROJECT_NAME: Project name in Logfire dashboard
    LOGFIRE_ENVIRONMENT: Environment name (development, staging, production)
"""

import contextlib
import logging
import os
from typing import Optional

import logfire

logger = logging.getLogger(__name__)

_logfire_configured = False


def setup_logfire(
    project_name: Optional[str] = None,
    environment: Optional[str] = None,
    service_name: str = "pagecomposer"
) -> bool:
    """
    Configure Logfire for observability.

    Args:
        project_name: Logfire project name (or LOGFIRE_PROJECT_NAME env var)
        environment: Environment name (or LOGFIRE_ENVIRONMENT env var)
        service_name: Service name for tracing

    Returns:
        True if Logfire was configured, False if skipped (no token)
    """
    global _logfire_configured

    if _logfire_configured:
        logger.debug("Logfire already configured")
        return True

    token = os.environ.get("LOGFIRE_TOKEN")
    if not token:
        logger.info("LOGFIRE_TOKEN not set, skipping Logfire configuration")
        return False

    project = project_name or os.environ.get("LOGFIRE_PROJECT_NAME", "pagecomposer")
    env = environment or os.environ.get("LOGFIRE_ENVIRONMENT", "development")

    try:
        logfire.configure(
            token=token,
            project_name=project,
            service_name=service_name,
            environment=env,
            send_to_logfire=True,
        )

        # Stage results are pydantic models
        logfire.instrument_pydantic()

        _logfire_configured = True
        logger.info(f"Logfire configured: project={project}, environment={env}")
        return True

    except Exception as e:
        logger.error(f"Failed to configure Logfire: {e}")
        return False


def is_logfire_configured() -> bool:
    """True once `setup_logfire()` has succeeded."""
    return _logfire_configured


def stage_span(name: str, **attributes):
    """
    Open a Logfire span for a pipeline stage.

    Returns a null context when Logfire has not been configured, so callers
    can always use `with stage_span(...)`.
    """
    if not is_logfire_configured():
        return contextlib.nullcontext()
    return logfire.span(name, **attributes)
