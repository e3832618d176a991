from __future__ import annotations

from enum import Enum
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator
from pydantic.alias_generators import to_camel

class _Schema(BaseModel):
    # The model answers in camelCase; Python code uses snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multipleChoice"
    TRUE_FALSE = "trueFalse"
    FREE_TEXT = "freeText"

class GeneratedQuestion(_Schema):
    question_id: str = Field(description='Unique id within the exam, e.g. "q1".')
    type: QuestionType = Field(description="multipleChoice, trueFalse or freeText.")
    prompt: str = Field(description="The question text.")
    options: List[str] = Field(
        default_factory=list,
        description="Exactly 4 options for multipleChoice; empty for other types.",
    )
    correct_answer: str = Field(
        description='One of the options, "True"/"False", or a model answer for freeText.'
    )
    points_possible: StrictInt = Field(description="Points awarded for a correct answer.")

class PracticeExam(_Schema):
    questions: List[GeneratedQuestion] = Field(description="Generated, unique exam questions.")

class ExamRequest(_Schema):
    exam_topic: str = Field(min_length=1, description='Exam topic, e.g. "UPSC Civil Services".')
    num_questions: StrictInt = Field(ge=1, le=50, description="Number of questions to generate.")
    seen_questions: List[str] = Field(
        default_factory=list,
        description="Question texts the user has already seen.",
    )

    @field_validator("seen_questions")
    @classmethod
    def _dedupe_seen(cls, value: List[str]) -> List[str]:
        out: list[str] = []
        for text in value:
            if text not in out:
                out.append(text)
        return out

class ExamPromptInput(ExamRequest):
    multiple_choice_count: StrictInt = Field(ge=0)
    true_false_count: StrictInt = Field(ge=0)
    free_text_count: StrictInt = Field(ge=0)

class FeedbackRequest(_Schema):
    text: str = Field(min_length=1, description="The user's text to evaluate.")
    context: Optional[str] = Field(
        default=None,
        description='Conversation context, e.g. "a job interview".',
    )
    native_language: Optional[str] = Field(
        default=None,
        description="The user's native language, e.g. 'Telugu'.",
    )

class FeedbackResponse(_Schema):
    response: str = Field(description="The tutor's conversational reply.")

class ExamDistribution(NamedTuple):
    multiple_choice: int
    true_false: int
    free_text: int

    def count_for(self, qtype: QuestionType) -> int:
        if qtype is QuestionType.MULTIPLE_CHOICE:
            return self.multiple_choice
        if qtype is QuestionType.TRUE_FALSE:
            return self.true_false
        return self.free_text
