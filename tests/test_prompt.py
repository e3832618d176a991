import asyncio
import json
from typing import Optional

import pytest
from pydantic import BaseModel, Field

from tutor.errors import ExternalModelError, SchemaValidationError
from tutor.prompt import PromptSpec, RenderedPrompt, SchemaValidatedPrompt

from tests.fake_model import FakeModel


class EchoIn(BaseModel):
    text: str
    level: int = Field(ge=1, le=5)
    hint: Optional[str] = None


class EchoOut(BaseModel):
    answer: str
    score: int = Field(ge=0)


SPEC = PromptSpec(
    name="echo",
    input_schema=EchoIn,
    output_schema=EchoOut,
    template_text="Echo: {{{text}}} (level {{level}})\n{{#if hint}}\nHint: {{hint}}\n{{/if}}\nGo.",
)


def _flow(model, timeout=5.0):
    return SchemaValidatedPrompt(SPEC, model, timeout=timeout)


def test_render_validates_inputs_and_suppresses_optional_block():
    rendered = _flow(FakeModel("{}")).render({"text": "hello", "level": 2})
    assert rendered == RenderedPrompt("echo", "Echo: hello (level 2)\nGo.")

    rendered = _flow(FakeModel("{}")).render(EchoIn(text="hello", level=2, hint="be brief"))
    assert rendered.text == "Echo: hello (level 2)\nHint: be brief\nGo."


def test_render_rejects_out_of_bounds_input():
    with pytest.raises(SchemaValidationError) as excinfo:
        _flow(FakeModel("{}")).render({"text": "hello", "level": 9})
    assert excinfo.value.field == "level"
    assert "less than or equal to 5" in excinfo.value.constraint


def test_execute_returns_typed_output():
    model = FakeModel(json.dumps({"answer": "hi", "score": 3}))
    out = asyncio.run(_flow(model).execute({"text": "hello", "level": 1}))
    assert out == EchoOut(answer="hi", score=3)
    assert len(model.calls) == 1
    assert model.last_prompt == "Echo: hello (level 1)\nGo."
    assert model.calls[0]["output_schema"] is EchoOut


def test_validate_accepts_mapping_and_instance():
    flow = _flow(FakeModel("{}"))
    assert flow.validate({"answer": "a", "score": 0}) == EchoOut(answer="a", score=0)
    inst = EchoOut(answer="b", score=1)
    assert flow.validate(inst) is inst


def test_validate_rejects_invalid_json():
    with pytest.raises(SchemaValidationError) as excinfo:
        _flow(FakeModel("{}")).validate("not json {")
    assert excinfo.value.field == "$"
    assert excinfo.value.constraint == "valid JSON"


@pytest.mark.parametrize(
    "raw, field",
    [
        ({"score": 1}, "answer"),
        ({"answer": "a", "score": "many"}, "score"),
        ({"answer": "a", "score": -1}, "score"),
    ],
)
def test_validate_names_offending_field(raw, field):
    with pytest.raises(SchemaValidationError) as excinfo:
        _flow(FakeModel("{}")).validate(raw)
    assert excinfo.value.field == field
    assert excinfo.value.constraint
    assert excinfo.value.errors


def test_execute_propagates_schema_error_without_retry():
    model = FakeModel('{"answer": "a"}')
    with pytest.raises(SchemaValidationError):
        asyncio.run(_flow(model).execute({"text": "x", "level": 1}))
    assert len(model.calls) == 1


def test_execute_propagates_model_error_unchanged():
    err = ExternalModelError("failed", "quota exhausted")
    model = FakeModel(err)
    with pytest.raises(ExternalModelError) as excinfo:
        asyncio.run(_flow(model).execute({"text": "x", "level": 1}))
    assert excinfo.value is err
    assert len(model.calls) == 1


def test_execute_wraps_unexpected_model_failure():
    boom = ConnectionError("reset by peer")
    with pytest.raises(ExternalModelError) as excinfo:
        asyncio.run(_flow(FakeModel(boom)).execute({"text": "x", "level": 1}))
    assert excinfo.value.reason == "failed"
    assert excinfo.value.__cause__ is boom


def test_execute_times_out():
    model = FakeModel('{"answer": "late", "score": 1}', delay=1.0)
    with pytest.raises(ExternalModelError) as excinfo:
        asyncio.run(_flow(model, timeout=0.01).execute({"text": "x", "level": 1}))
    assert excinfo.value.reason == "timeout"


def test_execute_surfaces_cancellation():
    async def _run():
        started = asyncio.Event()

        class HangingModel:
            async def generate(self, prompt, input_schema, output_schema):
                started.set()
                await asyncio.Event().wait()

        task = asyncio.create_task(_flow(HangingModel()).execute({"text": "x", "level": 1}))
        await started.wait()
        task.cancel()
        with pytest.raises(ExternalModelError) as excinfo:
            await task
        assert excinfo.value.reason == "cancelled"

    asyncio.run(_run())


def test_concurrent_executes_are_independent():
    class EchoModel:
        async def generate(self, prompt, input_schema, output_schema):
            await asyncio.sleep(0)
            word = prompt.split(":", 1)[1].split("(")[0].strip()
            return {"answer": word, "score": len(word)}

    async def _run():
        flow = _flow(EchoModel())
        words = ["one", "three", "five", "seven"]
        outs = await asyncio.gather(*(flow.execute({"text": w, "level": 1}) for w in words))
        assert [o.answer for o in outs] == words
        assert [o.score for o in outs] == [len(w) for w in words]

    asyncio.run(_run())
