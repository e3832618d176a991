import argparse
import json
import sys

from pydantic import ValidationError

from tutor.composer import validate_exam_set
from tutor.errors import CompositionError
from tutor.models import PracticeExam

def _load_json(path: str):
    return json.loads(open(path, "r", encoding="utf-8").read())

def _load_seen(path: str | None) -> list[str]:
    if not path:
        return []
    data = _load_json(path)
    if not isinstance(data, list):
        raise ValueError("seen file: expected a JSON list of question texts")
    return [str(x) for x in data]

def validate(exam_path: str, num_questions: int, seen_path: str | None = None) -> int:
    try:
        exam = PracticeExam.model_validate(_load_json(exam_path))
        seen = _load_seen(seen_path)
    except (OSError, ValueError, ValidationError) as exc:
        print(f"ERROR: {exc}")
        return 1
    try:
        dist = validate_exam_set(exam.questions, num_questions=num_questions, seen_questions=seen)
    except CompositionError as exc:
        where = f" (question {exc.question_id})" if exc.question_id else ""
        print(f"ERROR: {exc}{where}")
        return 1
    print(
        f"OK multipleChoice={dist.multiple_choice} trueFalse={dist.true_false} freeText={dist.free_text}"
    )
    return 0

def main(argv: list[str]) -> int:
    parser = argparse.ArgumentParser(description="Check a generated exam JSON against the composition policy.")
    parser.add_argument("exam")
    parser.add_argument("--num", type=int, required=True, help="expected number of questions")
    parser.add_argument("--seen", default=None, help="JSON list of already seen question texts")
    args = parser.parse_args(argv)
    return validate(args.exam, args.num, args.seen)

if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
