import asyncio
import json

import pytest

from tutor.errors import CompositionError, ExternalModelError, SchemaValidationError
from tutor.flows import EXAM_PROMPT, exam_prompt_input, generate_exam, generate_feedback
from tutor.models import ExamRequest, FeedbackRequest, QuestionType
from tutor.prompt import SchemaValidatedPrompt

from tests.fake_model import FakeModel, exam_payload


def test_feedback_prompt_includes_optional_blocks():
    model = FakeModel(json.dumps({"response": "That's perfectly said! What do you do?"}))
    req = FeedbackRequest(text="I am engineer", context="a job interview", native_language="Telugu")
    resp = asyncio.run(generate_feedback(req, model=model))
    assert resp.response.startswith("That's perfectly said!")
    prompt = model.last_prompt
    assert 'Analyze the user\'s message: "I am engineer"' in prompt
    assert "native language, which is Telugu" in prompt
    assert 'The context of this conversation is: "a job interview"' in prompt
    assert "{{" not in prompt


def test_feedback_prompt_omits_absent_blocks():
    model = FakeModel('{"response": "ok"}')
    asyncio.run(generate_feedback(FeedbackRequest(text="Hello there"), model=model))
    prompt = model.last_prompt
    assert "native language" not in prompt
    assert "context of this conversation" not in prompt
    assert "\n\n\n" not in prompt


def test_feedback_rejects_malformed_output():
    model = FakeModel('{"reply": "wrong key"}')
    with pytest.raises(SchemaValidationError) as excinfo:
        asyncio.run(generate_feedback(FeedbackRequest(text="Hi"), model=model))
    assert excinfo.value.field == "response"


def test_generate_exam_happy_path():
    model = FakeModel(json.dumps(exam_payload(10)))
    req = ExamRequest(exam_topic="UPSC Civil Services", num_questions=10, seen_questions=["Old question?"])
    exam = asyncio.run(generate_exam(req, model=model))
    assert len(exam.questions) == 10
    assert exam.questions[0].type is QuestionType.MULTIPLE_CHOICE
    assert exam.questions[0].question_id == "q1"
    assert exam.questions[-1].options == []

    prompt = model.last_prompt
    assert 'Write 10 unique, non-repeating questions for a practice exam on "UPSC Civil Services"' in prompt
    assert '- 4 "multipleChoice" questions' in prompt
    assert '- 3 "trueFalse" questions' in prompt
    assert '- 3 "freeText" questions' in prompt
    assert '- "Old question?"' in prompt


def test_generate_exam_without_seen_has_no_exclusion_block():
    model = FakeModel(json.dumps(exam_payload(3)))
    asyncio.run(generate_exam(ExamRequest(exam_topic="GATE", num_questions=3), model=model))
    assert "DO NOT repeat" not in model.last_prompt
    assert '- 2 "multipleChoice"' in model.last_prompt
    assert '- 0 "freeText"' in model.last_prompt


def test_generate_exam_rejects_wrong_count_without_retry():
    model = FakeModel(json.dumps(exam_payload(9)))
    with pytest.raises(CompositionError) as excinfo:
        asyncio.run(generate_exam(ExamRequest(exam_topic="SSC", num_questions=10), model=model))
    assert excinfo.value.constraint == "count"
    assert len(model.calls) == 1


def test_generate_exam_rejects_seen_question():
    model = FakeModel(json.dumps(exam_payload(10)))
    req = ExamRequest(exam_topic="NEET", num_questions=10, seen_questions=["question 2?"])
    with pytest.raises(CompositionError) as excinfo:
        asyncio.run(generate_exam(req, model=model))
    assert excinfo.value.constraint == "uniqueness"
    assert excinfo.value.question_id == "q2"


def test_generate_exam_rejects_structurally_invalid_question():
    payload = exam_payload(10)
    del payload["questions"][0]["correctAnswer"]
    with pytest.raises(SchemaValidationError) as excinfo:
        asyncio.run(generate_exam(ExamRequest(exam_topic="NEET", num_questions=10), model=FakeModel(payload)))
    assert excinfo.value.field == "questions.0.correctAnswer"


@pytest.mark.parametrize("points", [True, 2.0, 10.0, "10"])
def test_exam_output_rejects_mistyped_points(points):
    payload = exam_payload(10)
    payload["questions"][2]["pointsPossible"] = points
    flow = SchemaValidatedPrompt(EXAM_PROMPT, FakeModel("{}"))
    with pytest.raises(SchemaValidationError) as excinfo:
        flow.validate(json.dumps(payload))
    assert excinfo.value.field == "questions.2.pointsPossible"

    with pytest.raises(SchemaValidationError) as excinfo:
        asyncio.run(generate_exam(ExamRequest(exam_topic="NEET", num_questions=10), model=FakeModel(payload)))
    assert excinfo.value.field == "questions.2.pointsPossible"


@pytest.mark.parametrize("num", [True, 10.0, "10"])
def test_exam_request_rejects_mistyped_count(num):
    flow = SchemaValidatedPrompt(EXAM_PROMPT, FakeModel("{}"))
    with pytest.raises(SchemaValidationError) as excinfo:
        flow.render(
            {
                "exam_topic": "GATE",
                "num_questions": num,
                "multiple_choice_count": 4,
                "true_false_count": 3,
                "free_text_count": 3,
            }
        )
    assert excinfo.value.field in ("num_questions", "numQuestions")


def test_generate_exam_propagates_model_error():
    err = ExternalModelError("timeout", "slow")
    model = FakeModel(err)
    with pytest.raises(ExternalModelError) as excinfo:
        asyncio.run(generate_exam(ExamRequest(exam_topic="GATE", num_questions=5), model=model))
    assert excinfo.value is err


def test_exam_prompt_input_bounds():
    flow = SchemaValidatedPrompt(EXAM_PROMPT, FakeModel("{}"))
    with pytest.raises(SchemaValidationError) as excinfo:
        flow.render(
            {
                "exam_topic": "GATE",
                "num_questions": 51,
                "multiple_choice_count": 21,
                "true_false_count": 15,
                "free_text_count": 15,
            }
        )
    assert excinfo.value.field in ("num_questions", "numQuestions")


def test_seen_questions_deduplicated_in_order():
    req = ExamRequest(exam_topic="GATE", num_questions=2, seen_questions=["b", "a", "b"])
    assert req.seen_questions == ["b", "a"]
    assert exam_prompt_input(req).seen_questions == ["b", "a"]
