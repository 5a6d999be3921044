"""Mock embedding provider for testing and local development."""

from typing import Any

from smartapply.providers.embedding.base import EmbeddingProvider, EmbeddingResult


class MockEmbeddingProvider(EmbeddingProvider):
    """Mock provider for embedding tests.

    Returns fixed-value vectors and can be scripted to fail: each call
    consumes the next entry of ``errors`` (an exception to raise, or None
    for a successful call) until the queue is empty.

    Attributes:
        calls: Record of all method invocations for test assertions.
        errors: Pending scripted outcomes, consumed one per call.
    """

    # Match OpenAI text-embedding-3-small dimensions
    MOCK_DIMENSIONS = 1536

    def __init__(
        self,
        *,
        dimensions: int = MOCK_DIMENSIONS,
        fill_value: float = 0.1,
        errors: list[Exception | None] | None = None,
    ) -> None:
        """Initialize mock embedding provider.

        Note: Does not call super().__init__() - we don't need a config for mock.

        Args:
            dimensions: Length of generated vectors.
            fill_value: Value every vector component is set to.
            errors: Scripted outcomes for the next calls.
        """
        self._dimensions = dimensions
        self._fill_value = fill_value
        self.calls: list[dict[str, Any]] = []
        self.errors: list[Exception | None] = list(errors or [])

    async def embed(self, texts: list[str]) -> EmbeddingResult:
        """Generate mock embeddings, or raise the next scripted error.

        Args:
            texts: List of strings to embed.

        Returns:
            EmbeddingResult with one constant vector per text.
        """
        self.calls.append(
            {
                "method": "embed",
                "texts": texts,
            }
        )

        if self.errors:
            error = self.errors.pop(0)
            if error is not None:
                raise error

        vectors = [[self._fill_value] * self._dimensions for _ in texts]

        return EmbeddingResult(
            vectors=vectors,
            model="mock-embedding-model",
            dimensions=self._dimensions,
            total_tokens=len(texts) * 10,  # Rough estimate
        )

    @property
    def dimensions(self) -> int:
        """Return the mock embedding dimensions."""
        return self._dimensions

    def assert_embedded(self, text: str) -> None:
        """Test helper to verify a text was embedded.

        Args:
            text: The text that should have been embedded.

        Raises:
            AssertionError: If the text was not embedded.
        """
        all_texts = []
        for call in self.calls:
            all_texts.extend(call["texts"])
        assert text in all_texts, f"Expected '{text}' to be embedded, got {all_texts}"
