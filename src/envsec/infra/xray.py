"""X-Ray instrumentation setup."""

import os
from functools import wraps
from aws_xray_sdk.core import xray_recorder
from aws_xray_sdk.core import patch as xray_patch

# Off unless ENVSEC_XRAY_ENABLED is set
_TRACING_ENABLED = os.getenv("ENVSEC_XRAY_ENABLED", "").lower() in ("1", "true", "yes")


def setup_xray(service_name: str = "envsec"):
    """Set up X-Ray tracing."""
    if not _TRACING_ENABLED:
        return

    xray_recorder.configure(
        service=service_name,
        context_missing="LOG_ERROR",
        sampling_rules={"version": 1, "default": {"fixed_target": 1, "rate": 0.1}},
    )

    # Trace SSM and Cognito calls made through boto3
    xray_patch(["boto3", "requests"])


def tracing_enabled() -> bool:
    """Check if X-Ray tracing is enabled."""
    return _TRACING_ENABLED


def xray_capture(name):
    """Conditional X-Ray capture decorator - no-op unless tracing is enabled."""
    def decorator(func):
        if not _TRACING_ENABLED:
            @wraps(func)
            def wrapper(*args, **kwargs):
                return func(*args, **kwargs)
            return wrapper
        return xray_recorder.capture(name)(func)
    return decorator
