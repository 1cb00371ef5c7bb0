from openai import AsyncOpenAI, OpenAIError
import logging
import os
from typing import List, Optional

from .base import EmbeddingProvider, GenerationProvider, ProviderError

EMBED_MODEL = os.getenv("EMBED_MODEL", "text-embedding-3-large")
EMBED_DIM = int(os.getenv("EMBED_DIM", "3072"))
OPENAI_CHAT_MODEL = os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini")
EMBED_BATCH_SIZE = 100

logger = logging.getLogger(__name__)

_oai = None
def _get_openai_client() -> AsyncOpenAI:
    global _oai
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise ValueError("OPENAI_API_KEY environment variable not set")
    if not _oai:
        _oai = AsyncOpenAI(api_key=api_key)
    return _oai


class OpenAIEmbeddings(EmbeddingProvider):

    def __init__(self, model: str = EMBED_MODEL, client: AsyncOpenAI = None):
        self.model = model
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        return self._client or _get_openai_client()

    async def embed(self, text: str) -> List[float]:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        logger.info(f"[embed] creating embeddings for {len(texts)} texts using {self.model}")
        vecs: List[List[float]] = []
        for i in range(0, len(texts), EMBED_BATCH_SIZE):
            batch = texts[i:i + EMBED_BATCH_SIZE]
            try:
                resp = await self.client.embeddings.create(model=self.model, input=batch)
            except OpenAIError as e:
                raise ProviderError(f"embedding request failed: {e}") from e
            vecs.extend(d.embedding for d in resp.data)
        logger.info(f"[embed] embeddings ready: {len(vecs)} vectors")
        return vecs


class OpenAIGenerator(GenerationProvider):

    def __init__(self, model: str = OPENAI_CHAT_MODEL, temperature: float = 0.3,
                 client: AsyncOpenAI = None):
        self.model = model
        self.temperature = temperature
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        return self._client or _get_openai_client()

    async def complete(self, system_prompt: str, user_prompt: str, json_mode: bool = True,
                       max_tokens: Optional[int] = None) -> str:
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                **kwargs,
            )
        except OpenAIError as e:
            status = getattr(e, "status_code", None) or "unknown"
            raise ProviderError(f"{type(e).__name__} (status {status}): {e}") from e
        return resp.choices[0].message.content or ""
