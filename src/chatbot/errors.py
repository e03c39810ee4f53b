"""
Errors module
-------------
Purpose: Typed failures raised by the chatbot core.

Taxonomy:
  • InvalidInputError    - empty query / document, malformed history
  • NoViableContentError - every chunk filtered out or every embedding failed
  • DimensionMismatchError - embedding contract violated
  • DependencyFailure    - embedding / generation / index call failed
"""


class ChatbotError(Exception):
    """Base class for every error raised by the core."""


class InvalidInputError(ChatbotError, ValueError):
    """Caller supplied unusable input."""


class InvalidQueryError(InvalidInputError):
    """Query text is empty or whitespace-only."""


class NoViableContentError(ChatbotError):
    """Nothing survived filtering or embedding."""


class EmptyInputError(InvalidInputError, NoViableContentError):
    """No chunk survived the chunking / input filters."""


class NoEmbeddingsGeneratedError(NoViableContentError):
    """Every chunk of an ingestion was skipped."""

    def __init__(self, message: str, outcome=None):
        super().__init__(message)
        self.outcome = outcome


class DimensionMismatchError(ChatbotError):
    """A vector does not have the index dimension."""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Wrong embedding dimensions: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class DependencyFailure(ChatbotError, RuntimeError):
    """An external collaborator call failed."""


class EmbeddingError(DependencyFailure):
    """Embedding gateway failed or returned a malformed response."""


class GenerationError(DependencyFailure):
    """Generation model failed or returned an empty completion."""


class VectorIndexError(DependencyFailure):
    """Vector index upsert / query / delete failed."""


class EmbeddingUnavailableError(DependencyFailure):
    """The query could not be embedded, so nothing can be retrieved."""


class GenerationFailedError(DependencyFailure):
    """The answer could not be generated."""
