"""
Custom exceptions for the match analysis pipeline.

Provides a hierarchy of exceptions so callers can tell an upstream outage
from a missing match or a malformed payload.

Usage:
    from dotacoach.exceptions import NotFoundError, UpstreamError

    try:
        result = pipeline.analyze(match_id, account_id)
    except NotFoundError as e:
        print(f"Nothing to analyze: {e}")
    except UpstreamError as e:
        print(f"OpenDota unavailable: {e}")
"""

from typing import Optional


class DotaCoachError(Exception):
    """
    Base exception for all analysis errors.

    All custom exceptions inherit from this, allowing:
        except DotaCoachError:
            # Catch any system error
    """
    pass


# =============================================================================
# UPSTREAM ERRORS
# =============================================================================

class UpstreamError(DotaCoachError):
    """
    Error reaching the match data provider.

    Raised when:
    - The provider returns a non-2xx status (other than 404)
    - The request fails at the network level (status is None)
    - Rate limiting persists after the retry budget is spent
    """

    def __init__(self, status: Optional[int], message: str, endpoint: Optional[str] = None):
        self.status = status
        self.message = message
        self.endpoint = endpoint
        msg = f"Upstream error: {message}"
        if status is not None:
            msg += f" (status: {status})"
        if endpoint:
            msg += f" [{endpoint}]"
        super().__init__(msg)


class RateLimitError(UpstreamError):
    """Rate limit still exceeded after the backoff retry."""

    def __init__(self, endpoint: Optional[str] = None, retry_after: Optional[float] = None):
        self.retry_after = retry_after
        message = "rate limit exceeded"
        if retry_after:
            message += f", retry after {retry_after:g} seconds"
        super().__init__(429, message, endpoint=endpoint)


class NotFoundError(DotaCoachError):
    """
    Requested match or player does not exist.

    Surfaced to the caller, never retried.
    """

    def __init__(self, resource: str, identifier=None):
        self.resource = resource
        self.identifier = identifier
        msg = f"{resource} not found"
        if identifier is not None:
            msg += f": {identifier}"
        super().__init__(msg)


# =============================================================================
# DATA ERRORS
# =============================================================================

class MalformedDataError(DotaCoachError):
    """
    A successful response is missing required fields or has invalid ones.

    Sub-computations that hit this degrade to a documented default instead of
    aborting the whole analysis.
    """

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Malformed data from {source}: {reason}")


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(DotaCoachError):
    """Invalid configuration value."""

    def __init__(self, setting: str, message: str):
        self.setting = setting
        super().__init__(f"Configuration error ({setting}): {message}")
