"""Custom exceptions for docrebuild."""


class DocRebuildError(Exception):
    """Base exception for docrebuild errors."""


class ConfigurationError(DocRebuildError):
    """Configuration is missing or invalid."""


class InvalidSourceURLError(ConfigurationError):
    """A tracked source URL cannot be parsed into host/owner/repo."""


class CommitLookupError(DocRebuildError):
    """Latest commit of a remote repository could not be fetched."""


class CacheStoreError(DocRebuildError):
    """Cache file could not be written."""
