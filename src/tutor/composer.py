from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence

from .errors import CompositionError
from .models import ExamDistribution, GeneratedQuestion, QuestionType
from .normalize import norm_question_key

MIN_QUESTIONS = 1
MAX_QUESTIONS = 50
MC_OPTIONS = 4
TRUE_FALSE_ANSWERS = ("True", "False")

# Minimum shares in tenths: multipleChoice 40%, trueFalse 30%, freeText 30%.
_MC_SHARE = 4
_TF_SHARE = 3
_FT_SHARE = 3

def _ceil_share(n: int, tenths: int) -> int:
    return -(-n * tenths // 10)

def compose_distribution(num_questions: int) -> ExamDistribution:
    """Split ``num_questions`` into (multipleChoice, trueFalse, freeText).

    Each minimum is rounded up on its own. The ceilings can exceed the total
    by up to two; the excess comes off freeText and trueFalse alternately,
    freeText first, and falls to multipleChoice once both are exhausted.
    """
    if isinstance(num_questions, bool) or not isinstance(num_questions, int):
        raise CompositionError("count", f"num_questions must be an integer, got {num_questions!r}")
    if not MIN_QUESTIONS <= num_questions <= MAX_QUESTIONS:
        raise CompositionError(
            "count",
            f"num_questions must be in [{MIN_QUESTIONS}, {MAX_QUESTIONS}], got {num_questions}",
        )
    counts = {
        QuestionType.MULTIPLE_CHOICE: _ceil_share(num_questions, _MC_SHARE),
        QuestionType.TRUE_FALSE: _ceil_share(num_questions, _TF_SHARE),
        QuestionType.FREE_TEXT: _ceil_share(num_questions, _FT_SHARE),
    }
    excess = sum(counts.values()) - num_questions
    order = (QuestionType.FREE_TEXT, QuestionType.TRUE_FALSE)
    turn = 0
    while excess > 0:
        donor = order[turn % 2]
        if counts[donor] == 0:
            donor = order[(turn + 1) % 2]
        if counts[donor] == 0:
            donor = QuestionType.MULTIPLE_CHOICE
        counts[donor] -= 1
        excess -= 1
        turn += 1
    return ExamDistribution(
        multiple_choice=counts[QuestionType.MULTIPLE_CHOICE],
        true_false=counts[QuestionType.TRUE_FALSE],
        free_text=counts[QuestionType.FREE_TEXT],
    )

def _check_shape(q: GeneratedQuestion) -> None:
    points = q.points_possible
    if points < 1:
        raise CompositionError("shape", f"pointsPossible must be a positive integer, got {points!r}", q.question_id)
    if q.type is QuestionType.MULTIPLE_CHOICE:
        if len(q.options) != MC_OPTIONS:
            raise CompositionError(
                "shape",
                f"multipleChoice needs exactly {MC_OPTIONS} options, got {len(q.options)}",
                q.question_id,
            )
        if q.correct_answer not in q.options:
            raise CompositionError("shape", "correctAnswer is not one of the options", q.question_id)
        return
    if q.options:
        raise CompositionError("shape", f"{q.type.value} must not carry options", q.question_id)
    if q.type is QuestionType.TRUE_FALSE and q.correct_answer not in TRUE_FALSE_ANSWERS:
        raise CompositionError(
            "shape",
            f'trueFalse correctAnswer must be "True" or "False", got {q.correct_answer!r}',
            q.question_id,
        )

def validate_exam_set(
    questions: Sequence[GeneratedQuestion],
    *,
    num_questions: int,
    seen_questions: Iterable[str] = (),
) -> ExamDistribution:
    """Reject a generated set that breaks the composition policy.

    Returns the expected distribution when the set is acceptable. Pure: it
    judges output already produced and never calls a model.
    """
    expected = compose_distribution(num_questions)
    if len(questions) != num_questions:
        raise CompositionError("count", f"expected {num_questions} questions, got {len(questions)}")

    actual = Counter(q.type for q in questions)
    for qtype in QuestionType:
        need = expected.count_for(qtype)
        if actual[qtype] < need:
            raise CompositionError("mix", f"expected at least {need} {qtype.value}, got {actual[qtype]}")

    ids: set[str] = set()
    for q in questions:
        if q.question_id in ids:
            raise CompositionError("uniqueness", "duplicate questionId", q.question_id)
        ids.add(q.question_id)

    seen = {norm_question_key(s) for s in seen_questions}
    prompts: set[str] = set()
    for q in questions:
        key = norm_question_key(q.prompt)
        if key in seen:
            raise CompositionError("uniqueness", "question was already seen", q.question_id)
        if key in prompts:
            raise CompositionError("uniqueness", "question text repeated within the set", q.question_id)
        prompts.add(key)

    for q in questions:
        _check_shape(q)
    return expected
