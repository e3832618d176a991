from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Any, Protocol, Type

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel

from .errors import ExternalModelError

logger = logging.getLogger(__name__)

class ModelCapability(Protocol):
    async def generate(
        self,
        prompt: str,
        input_schema: Type[BaseModel],
        output_schema: Type[BaseModel],
    ) -> Any:
        ...

@dataclass
class GeminiModel:
    api_key: str
    model: str = "gemini-2.5-flash"
    temperature: float = 0.7

    def _client(self):
        return genai.Client(api_key=self.api_key)

    async def generate(
        self,
        prompt: str,
        input_schema: Type[BaseModel],
        output_schema: Type[BaseModel],
    ) -> str:
        # Structured output: the model is asked for JSON matching output_schema.
        logger.info(
            "llm_usage: generate model=%s input_schema=%s output_schema=%s prompt_len=%s",
            self.model,
            input_schema.__name__,
            output_schema.__name__,
            len(prompt),
        )
        config = types.GenerateContentConfig(
            temperature=self.temperature,
            response_mime_type="application/json",
            response_schema=output_schema,
        )
        client = self._client()
        try:
            resp = await client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except genai_errors.APIError as exc:
            raise ExternalModelError("failed", f"gemini {exc.code}: {exc.message}") from exc
        text = (resp.text or "").strip()
        if not text:
            raise ExternalModelError("failed", "empty response")
        return text
