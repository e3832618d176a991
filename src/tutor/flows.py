from __future__ import annotations

import logging

from . import prompts
from .composer import compose_distribution, validate_exam_set
from .errors import CompositionError
from .llm import ModelCapability
from .models import (
    ExamPromptInput,
    ExamRequest,
    FeedbackRequest,
    FeedbackResponse,
    PracticeExam,
)
from .prompt import PromptSpec, SchemaValidatedPrompt

logger = logging.getLogger(__name__)

FEEDBACK_PROMPT = PromptSpec(
    name="communication_feedback",
    input_schema=FeedbackRequest,
    output_schema=FeedbackResponse,
    template_text=prompts.COMMUNICATION_FEEDBACK_TEMPLATE,
    version=prompts.COMMUNICATION_FEEDBACK_VERSION,
)

EXAM_PROMPT = PromptSpec(
    name="practice_exam",
    input_schema=ExamPromptInput,
    output_schema=PracticeExam,
    template_text=prompts.PRACTICE_EXAM_TEMPLATE,
    version=prompts.PRACTICE_EXAM_VERSION,
)

def exam_prompt_input(request: ExamRequest) -> ExamPromptInput:
    dist = compose_distribution(request.num_questions)
    return ExamPromptInput(
        exam_topic=request.exam_topic,
        num_questions=request.num_questions,
        seen_questions=request.seen_questions,
        multiple_choice_count=dist.multiple_choice,
        true_false_count=dist.true_false,
        free_text_count=dist.free_text,
    )

async def generate_feedback(
    request: FeedbackRequest,
    *,
    model: ModelCapability,
    timeout: float = 60.0,
) -> FeedbackResponse:
    flow = SchemaValidatedPrompt(FEEDBACK_PROMPT, model, timeout=timeout)
    return await flow.execute(request)

async def generate_exam(
    request: ExamRequest,
    *,
    model: ModelCapability,
    timeout: float = 60.0,
) -> PracticeExam:
    flow = SchemaValidatedPrompt(EXAM_PROMPT, model, timeout=timeout)
    exam = await flow.execute(exam_prompt_input(request))
    try:
        validate_exam_set(
            exam.questions,
            num_questions=request.num_questions,
            seen_questions=request.seen_questions,
        )
    except CompositionError as exc:
        logger.warning(
            "exam_rejected: topic=%s num_questions=%s constraint=%s question_id=%s",
            request.exam_topic,
            request.num_questions,
            exc.constraint,
            exc.question_id,
        )
        raise
    logger.info(
        "exam_generated: topic=%s num_questions=%s seen=%s",
        request.exam_topic,
        request.num_questions,
        len(request.seen_questions),
    )
    return exam
