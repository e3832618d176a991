import argparse
import asyncio
import json
import logging
import sys

from pydantic import ValidationError

from tutor.config import load_model_settings
from tutor.errors import CompositionError, ExternalModelError, SchemaValidationError
from tutor.flows import generate_exam
from tutor.llm import GeminiModel
from tutor.models import ExamRequest

async def _run(request: ExamRequest) -> int:
    settings = load_model_settings()
    if not settings.gemini_api_key:
        print("ERROR: GOOGLE_API_KEY (or GEMINI_API_KEY) is required")
        return 2
    model = GeminiModel(settings.gemini_api_key, model=settings.llm_model)
    try:
        exam = await generate_exam(request, model=model, timeout=settings.llm_timeout_s)
    except (ExternalModelError, SchemaValidationError, CompositionError) as exc:
        logging.getLogger(__name__).error("generate_exam_failed: %s", exc)
        print(f"ERROR: {exc}")
        return 1
    print(json.dumps(exam.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2))
    return 0

def main(argv: list[str]) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    parser = argparse.ArgumentParser(description="Generate a practice exam with Gemini.")
    parser.add_argument("--topic", required=True)
    parser.add_argument("--num", type=int, default=10)
    parser.add_argument("--seen", default=None, help="JSON list of already seen question texts")
    args = parser.parse_args(argv)
    seen: list[str] = []
    if args.seen:
        seen = json.loads(open(args.seen, "r", encoding="utf-8").read())
    try:
        request = ExamRequest(exam_topic=args.topic, num_questions=args.num, seen_questions=seen)
    except ValidationError as exc:
        print(f"ERROR: {exc}")
        return 2
    return asyncio.run(_run(request))

if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
