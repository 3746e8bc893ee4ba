"""
Custom Exceptions

Application-specific exception classes for better error handling
and more informative error messages.
"""
from typing import Optional


class ExpertFinderError(Exception):
    """Base exception for all application errors."""
    pass


# === Data Source Errors ===

class SourceError(ExpertFinderError):
    """Base exception for data source errors."""
    def __init__(self, source_name: str, message: str):
        self.source_name = source_name
        self.message = message
        super().__init__(f"{source_name}: {message}")


class SourceTimeoutError(SourceError):
    """Data source timed out during request."""
    def __init__(self, source_name: str, timeout_seconds: float):
        super().__init__(source_name, f"Request timed out after {timeout_seconds}s")
        self.timeout_seconds = timeout_seconds


class SourceRateLimitError(SourceError):
    """Data source rate limit exceeded."""
    def __init__(self, source_name: str, retry_after: Optional[int] = None):
        msg = "Rate limit exceeded"
        if retry_after:
            msg += f", retry after {retry_after}s"
        super().__init__(source_name, msg)
        self.retry_after = retry_after


class SourceHTTPError(SourceError):
    """Data source returned an HTTP error status."""
    def __init__(self, source_name: str, status_code: int, detail: Optional[str] = None):
        msg = f"HTTP {status_code}"
        if detail:
            msg += f": {detail}"
        super().__init__(source_name, msg)
        self.status_code = status_code


class SourceParseError(SourceError):
    """Failed to parse response from data source."""
    def __init__(self, source_name: str, detail: Optional[str] = None):
        msg = "Failed to parse response"
        if detail:
            msg += f": {detail}"
        super().__init__(source_name, msg)


# === LLM/AI Errors ===

class LLMError(ExpertFinderError):
    """Base exception for LLM-related errors."""
    pass


class LLMUnavailableError(LLMError):
    """No LLM client is configured."""
    def __init__(self, purpose: str):
        super().__init__(f"No LLM configured for {purpose}")
        self.purpose = purpose


class LLMResponseError(LLMError):
    """LLM replied with something that does not match the expected shape."""
    def __init__(self, detail: str, raw: Optional[str] = None):
        super().__init__(f"Unexpected LLM response: {detail}")
        self.detail = detail
        self.raw = raw


# === Cache Errors ===

class CacheError(ExpertFinderError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """Failed to connect to cache backend."""
    def __init__(self, host: str, port: Optional[int] = None, detail: Optional[str] = None):
        if port:
            msg = f"Failed to connect to cache at {host}:{port}"
        else:
            msg = f"Failed to connect to {host} cache"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
        self.host = host
        self.port = port


# === Caller Input Errors ===

class InvalidSearchRequestError(ExpertFinderError):
    """The caller asked for something the search cannot serve."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnsupportedSectionError(InvalidSearchRequestError):
    """Requested result section is not one the pipeline knows."""
    def __init__(self, section: str, supported: list):
        super().__init__(
            f"Unsupported section '{section}'. Must be one of: {', '.join(supported)}"
        )
        self.section = section
        self.supported = supported


class InvalidPageError(InvalidSearchRequestError):
    """Page number or page size is out of range."""
    def __init__(self, page: int, page_size: int, max_page_size: int):
        super().__init__(
            f"Invalid page request (page={page}, page_size={page_size}): "
            f"page must be >= 1 and page_size between 1 and {max_page_size}"
        )
        self.page = page
        self.page_size = page_size
