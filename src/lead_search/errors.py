"""Custom exceptions for the lead search engine."""


class LeadSearchError(Exception):
    """Base exception for this project."""


class ConfigError(LeadSearchError):
    """Raised when runtime configuration is invalid."""


class ValidationError(LeadSearchError):
    """Raised when search filters do not describe a search."""


class ProviderError(LeadSearchError):
    """Raised when the places provider returns a fatal status."""


class DetailFetchError(LeadSearchError):
    """Raised when a place detail lookup fails; never leaves the client."""
