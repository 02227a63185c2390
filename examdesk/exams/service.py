"""
Exam operations behind the HTTP routers.

One ExamService per exam kind. Mock tests are sampled from the course's
bank; past-year papers are served whole. Submissions are scored against
the stored correct options and recorded as a single attempt document.
"""

from datetime import date
from typing import List, Optional
import base64
import binascii
import logging

from motor.motor_asyncio import AsyncIOMotorDatabase

from examdesk.exams import sampler, scoring
from examdesk.exams.config import MOCK_TEST_QUESTION_COUNT, MOCK_TEST_MIN_IMAGE_COUNT
from examdesk.exams.database import AttemptRecorder, PaperStore, QuestionStore
from examdesk.exams.duplicates import DuplicateDetector, normalize_text
from examdesk.exams.errors import DuplicateError, NotFound, ValidationError
from examdesk.exams.identifiers import canonical_id
from examdesk.exams.models import ExamKind
from examdesk.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


def strip_answer(question: dict) -> dict:
    """Question as shown to a student taking the test."""
    return {k: v for k, v in question.items() if k != "correct_option_id"}


class ExamService:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        kind: ExamKind,
        object_store: Optional[ObjectStore] = None,
        target_count: int = MOCK_TEST_QUESTION_COUNT,
        min_image_count: int = MOCK_TEST_MIN_IMAGE_COUNT,
        rng=None,
    ):
        self.kind = kind
        self.questions = QuestionStore(db, kind)
        self.attempts = AttemptRecorder(db, kind)
        self.papers = PaperStore(db)
        self.duplicates = DuplicateDetector(self.questions)
        self.object_store = object_store
        self.target_count = target_count
        self.min_image_count = min_image_count
        self.rng = rng

    # ==================== TEST GENERATION ====================

    async def generate_test(self, scope_id: str) -> List[dict]:
        pool = await self.questions.fetch_all(scope_id, require=True)

        if self.kind == ExamKind.PYQ:
            return [strip_answer(q) for q in pool]

        selected = sampler.sample(pool, self.target_count, self.min_image_count, self.rng)
        logger.info(
            "Generated mock test for course %s: %d of %d questions, %d with images",
            scope_id, len(selected), len(pool), sum(1 for q in selected if sampler.has_image(q)),
        )
        return [strip_answer(q) for q in selected]

    # ==================== SUBMISSION ====================

    async def submit_attempt(self, scope_id: str, student_id: str, answers: List[dict]) -> dict:
        if not scope_id or not answers:
            raise ValidationError(f"{self.questions.scope_field} and answers are required")

        question_ids = scoring.distinct_question_ids(answers)
        correct_map = await self.questions.fetch_correct_options(scope_id, question_ids)
        score = scoring.score(correct_map, answers)

        # Out of the whole test, not just the questions the student answered
        if self.kind == ExamKind.PYQ:
            total_questions = await self.questions.count(scope_id)
        else:
            total_questions = self.target_count

        return await self.attempts.record(
            student_id=student_id,
            scope_id=scope_id,
            answers=answers,
            score=score,
            total_questions=total_questions,
        )

    # ==================== AUTHORING ====================

    async def create_question(
        self,
        scope_id: str,
        question_text: str,
        options: list,
        correct_option_id,
        image: Optional[bytes] = None,
        image_content_type: Optional[str] = None,
        image_url: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> dict:
        if not question_text or not question_text.strip():
            raise ValidationError("question_text is required")
        if not isinstance(options, list) or not options:
            raise ValidationError("options must be a non-empty list")

        clean_options = []
        for opt in options:
            if not isinstance(opt, dict) or "id" not in opt or not str(opt.get("label", "")).strip():
                raise ValidationError("each option needs an id and a label")
            clean_options.append({"id": canonical_id(opt["id"]), "label": str(opt["label"])})

        option_ids = [o["id"] for o in clean_options]
        if len(set(option_ids)) != len(option_ids):
            raise ValidationError("option ids must be unique")

        correct = canonical_id(correct_option_id)
        if correct not in option_ids:
            raise ValidationError("correct_option_id must match one of the options")

        if self.kind == ExamKind.PYQ and not await self.papers.get(scope_id):
            raise NotFound("Paper not found")

        if await self.duplicates.is_duplicate(scope_id, question_text):
            logger.warning("Rejected duplicate question for %s %s", self.questions.scope_field, scope_id)
            raise DuplicateError("A question with the same text already exists")

        if image is not None:
            if self.object_store is None:
                raise ValidationError("Image upload is not configured")
            image_url = await self.object_store.upload(
                image, image_content_type or "", prefix=f"{self.kind.value}/{scope_id}"
            )

        return await self.questions.insert(scope_id, {
            "question_text": question_text.strip(),
            "normalized_text": normalize_text(question_text),
            "options": clean_options,
            "correct_option_id": correct,
            "image_url": image_url,
            "difficulty": difficulty,
        })

    async def list_questions(self, scope_id: str) -> List[dict]:
        """Full bank including answers, for admins."""
        return await self.questions.fetch_all(scope_id)

    # ==================== ATTEMPTS ====================

    async def list_attempts(
        self,
        student_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[dict]:
        if start_date and end_date and start_date > end_date:
            raise ValidationError("start_date must not be after end_date")
        attempts = await self.attempts.list_for_student(student_id, start_date, end_date)

        if self.kind == ExamKind.PYQ:
            papers = await self.papers.get_many(a["paper_id"] for a in attempts)
            for a in attempts:
                paper = papers.get(a["paper_id"])
                a["paper"] = {
                    "year": paper.get("year"),
                    "exam_day": paper.get("exam_day"),
                    "course_id": paper.get("course_id"),
                } if paper else None
        return attempts

    async def attempt_details(self, attempt_id: str) -> dict:
        attempt = await self.attempts.get(attempt_id)
        if not attempt:
            raise NotFound("Attempt not found")

        scope_id = attempt[self.attempts.scope_field]
        question_ids = scoring.distinct_question_ids(attempt.get("answers", []))
        questions = await self.questions.fetch_by_ids(scope_id, question_ids)

        return {
            **attempt,
            "questions": scoring.review(questions, attempt.get("answers", [])),
        }

    async def student_scores(self, student_id: str, scope_id: str) -> List[dict]:
        return await self.attempts.scores_for(student_id, scope_id)

    # ==================== PAPERS ====================

    async def list_papers(self, course_id: str) -> List[dict]:
        return await self.papers.list_for_course(course_id)

    async def create_paper(self, course_id: str, paper_data: dict) -> dict:
        return await self.papers.create(course_id, paper_data)


def decode_image(image_base64: Optional[str]) -> Optional[bytes]:
    if not image_base64:
        return None
    try:
        return base64.b64decode(image_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("image_base64 is not valid base64") from e
