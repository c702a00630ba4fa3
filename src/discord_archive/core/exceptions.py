"""
Exception hierarchy for the archive search service.
Search and statistics failures propagate to the API layer; identity lookup
failures never leave the resolver.
"""


class ArchiveSearchError(Exception):
    """Base class for all archive search errors"""


class ConfigurationError(ArchiveSearchError):
    """Raised at startup when the search index cannot be configured"""


class SearchError(ArchiveSearchError):
    """Raised when a message search cannot be completed"""


class SearchResponseError(SearchError):
    """Raised when the index returns a response without the expected hit/total structure"""


class StatisticsError(ArchiveSearchError):
    """Raised when the total message count cannot be obtained"""
