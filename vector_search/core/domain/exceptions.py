from typing import List, Optional


class DomainException(Exception):
    """Base exception for domain layer"""
    pass


class ConfigurationError(DomainException):
    """Raised when provider or vector store credentials are missing"""
    pass


class InvalidRequestError(DomainException):
    """Raised when a transport payload cannot be turned into a search request"""
    pass


class NoValidCollectionsError(DomainException):
    """Raised when none of the requested collections exist in the vector store"""
    def __init__(self, message: str, requested: Optional[List[str]] = None):
        super().__init__(message)
        self.requested = list(requested or [])


class EmbeddingDimensionError(DomainException):
    """Raised when the embedding length does not match the configured model"""
    def __init__(self, expected: int, actual: int):
        super().__init__(f"Unexpected embedding size: {actual} (expected {expected})")
        self.expected = expected
        self.actual = actual


class UpstreamCallError(DomainException):
    """Base class for failures of the embedding provider or the vector store"""
    pass


class EmbeddingGenerationError(UpstreamCallError):
    """Raised when embedding generation fails"""
    pass


class VectorStoreError(UpstreamCallError):
    """Raised when a vector store call fails"""
    pass


class UnknownOperationError(DomainException):
    """Raised when the transport receives an operation it does not expose"""
    pass
