"""
Failure taxonomy.

Only ``ConfigurationError`` ever escapes a task; everything else is absorbed
by the retry loop and surfaced as a terminal record.
"""


class ConfigurationError(Exception):
    """Fatal, raised before any browser resource is acquired."""


class MissingCredentialError(ConfigurationError):
    pass


class MissingTargetError(ConfigurationError):
    pass


class DetectionBlock(Exception):
    """Challenge page, CAPTCHA, auth-wall or an explicit block message."""


class SessionInvalid(DetectionBlock):
    """The session could not be established.

    An expired cookie and an active block look the same from here, so this is
    retried exactly like a ``DetectionBlock``.
    """


class TransientNavigationError(Exception):
    """Timeout, network failure or an unexpected page shape."""


class FieldExtractionError(Exception):
    """A single field failed to parse. Recorded, never propagated."""


def describe(exc: BaseException) -> str:
    """One-line ``Type: message`` summary (selenium messages carry stack dumps)."""
    lines = str(exc).strip().splitlines()
    message = lines[0].strip() if lines else ""
    if message.startswith("Message:"):
        message = message[len("Message:"):].strip()
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__
