from typing import List, Optional


class ProviderError(Exception):
    """A call to an external provider (embedding, generation, YouTube) failed in transport."""


class ConsistencyError(Exception):
    """Stored data contradicts itself; not recoverable locally."""


class EmbeddingDimensionError(ConsistencyError):
    def __init__(self, expected: int, actual: int, where: str = ""):
        self.expected = expected
        self.actual = actual
        suffix = f" ({where})" if where else ""
        super().__init__(f"embedding length {actual} != expected {expected}{suffix}")


class EmbeddingProvider:
    async def embed(self, text: str) -> List[float]:
        raise NotImplementedError

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        raise NotImplementedError


class GenerationProvider:
    async def complete(self, system_prompt: str, user_prompt: str, json_mode: bool = True,
                       max_tokens: Optional[int] = None) -> str:
        """Return the raw model text. json_mode biases toward JSON, but nothing is guaranteed."""
        raise NotImplementedError
