from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import ExternalModelError, SchemaValidationError
from .llm import ModelCapability
from .templating import Template

logger = logging.getLogger(__name__)

InT = TypeVar("InT", bound=BaseModel)
OutT = TypeVar("OutT", bound=BaseModel)

@dataclass(frozen=True)
class PromptSpec(Generic[InT, OutT]):
    name: str
    input_schema: Type[InT]
    output_schema: Type[OutT]
    template_text: str
    version: str = "1"

@dataclass(frozen=True)
class RenderedPrompt:
    prompt_name: str
    text: str

def _field_path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "$"

def _schema_error(exc: ValidationError) -> SchemaValidationError:
    errors = exc.errors(include_url=False)
    first = errors[0]
    return SchemaValidationError(_field_path(first["loc"]), first["msg"], errors)

class SchemaValidatedPrompt(Generic[InT, OutT]):
    def __init__(self, spec: PromptSpec[InT, OutT], model: ModelCapability, *, timeout: float = 60.0) -> None:
        self.spec = spec
        self.model = model
        self.timeout = timeout
        self._template = Template(spec.template_text)

    def coerce_inputs(self, inputs: InT | Mapping[str, Any]) -> InT:
        if isinstance(inputs, self.spec.input_schema):
            return inputs
        if isinstance(inputs, BaseModel):
            inputs = inputs.model_dump()
        try:
            return self.spec.input_schema.model_validate(inputs)
        except ValidationError as exc:
            raise _schema_error(exc) from exc

    def render(self, inputs: InT | Mapping[str, Any]) -> RenderedPrompt:
        validated = self.coerce_inputs(inputs)
        context = validated.model_dump(mode="json", exclude_none=True)
        return RenderedPrompt(self.spec.name, self._template.render(context))

    async def invoke(self, rendered: RenderedPrompt) -> Any:
        started = time.monotonic()
        try:
            raw = await asyncio.wait_for(
                self.model.generate(rendered.text, self.spec.input_schema, self.spec.output_schema),
                timeout=self.timeout,
            )
        except ExternalModelError:
            raise
        except asyncio.TimeoutError:
            raise ExternalModelError("timeout", f"{rendered.prompt_name} after {self.timeout}s") from None
        except asyncio.CancelledError:
            raise ExternalModelError("cancelled", rendered.prompt_name) from None
        except Exception as exc:
            raise ExternalModelError("failed", f"{type(exc).__name__}: {exc}") from exc
        logger.info(
            "prompt_invoke: name=%s version=%s prompt_len=%s elapsed_ms=%s",
            rendered.prompt_name,
            self.spec.version,
            len(rendered.text),
            int((time.monotonic() - started) * 1000),
        )
        return raw

    def validate(self, raw: Any) -> OutT:
        schema = self.spec.output_schema
        if isinstance(raw, schema):
            return raw
        if isinstance(raw, (str, bytes, bytearray)):
            try:
                raw = json.loads(raw)
            except ValueError as exc:
                raise SchemaValidationError("$", "valid JSON") from exc
        try:
            return schema.model_validate(raw)
        except ValidationError as exc:
            raise _schema_error(exc) from exc

    async def execute(self, inputs: InT | Mapping[str, Any]) -> OutT:
        rendered = self.render(inputs)
        raw = await self.invoke(rendered)
        try:
            return self.validate(raw)
        except SchemaValidationError as exc:
            logger.warning(
                "prompt_rejected: name=%s field=%s constraint=%s",
                self.spec.name,
                exc.field,
                exc.constraint,
            )
            raise
