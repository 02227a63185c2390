from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, date
from typing import AsyncIterator, Dict, Iterable, List, Optional
import logging
import uuid

from examdesk.exams.config import QUESTION_BATCH_SIZE
from examdesk.exams.errors import DuplicateError, NotFound, PersistenceError
from examdesk.exams.identifiers import canonical_id, store_variants
from examdesk.exams.models import ExamKind

logger = logging.getLogger(__name__)

# kind -> (collection, scope field)
QUESTION_COLLECTIONS = {
    ExamKind.MOCK: ("mock_questions", "course_id"),
    ExamKind.PYQ: ("pyq_questions", "paper_id"),
}

ATTEMPT_COLLECTIONS = {
    ExamKind.MOCK: ("mock_attempts", "course_id"),
    ExamKind.PYQ: ("pyq_attempts", "paper_id"),
}

ID_PREFIXES = {
    ExamKind.MOCK: "MQ",
    ExamKind.PYQ: "PQ",
}


@asynccontextmanager
async def store_errors(action: str):
    """Wrap raw driver errors into PersistenceError."""
    try:
        yield
    except PyMongoError as e:
        logger.error("Store call failed while trying to %s: %s", action, e)
        raise PersistenceError(f"Failed to {action}") from e


def serialize_question(doc: dict) -> dict:
    doc = {k: v for k, v in doc.items() if k not in ("_id", "normalized_text")}
    if doc.get("question_id") is not None:
        doc["question_id"] = canonical_id(doc["question_id"])
    return doc


def serialize_doc(doc: dict) -> dict:
    if "_id" in doc:
        doc = {k: v for k, v in doc.items() if k != "_id"}
    return doc


# ==================== QUESTION STORE ====================

class QuestionStore:
    """Reads and writes one exam kind's question bank."""

    def __init__(self, db: AsyncIOMotorDatabase, kind: ExamKind, batch_size: int = QUESTION_BATCH_SIZE):
        name, scope_field = QUESTION_COLLECTIONS[kind]
        self.kind = kind
        self.collection = db[name]
        self.scope_field = scope_field
        self.batch_size = batch_size

    async def iter_batches(self, scope_id: str, projection: Optional[dict] = None) -> AsyncIterator[List[dict]]:
        """
        Yield the scope's questions page by page.

        Stops on the first empty page, so a bank larger than one page is
        always read completely.
        """
        skip = 0
        while True:
            async with store_errors("read questions"):
                cursor = (
                    self.collection.find({self.scope_field: scope_id}, projection)
                    .sort("_id", 1)
                    .skip(skip)
                    .limit(self.batch_size)
                )
                batch = await cursor.to_list(length=self.batch_size)

            if not batch:
                break

            yield batch
            skip += self.batch_size

    async def count(self, scope_id: str) -> int:
        async with store_errors("count questions"):
            return await self.collection.count_documents({self.scope_field: scope_id})

    async def fetch_all(self, scope_id: str, require: bool = False) -> List[dict]:
        questions: List[dict] = []
        async for batch in self.iter_batches(scope_id):
            questions.extend(serialize_question(doc) for doc in batch)

        if not questions and require:
            raise NotFound(f"No questions found for {self.scope_field} {scope_id}")
        return questions

    async def fetch_by_ids(self, scope_id: str, question_ids: Iterable[str], projection: Optional[dict] = None) -> List[dict]:
        variants = [v for qid in question_ids for v in store_variants(qid)]
        if not variants:
            return []

        async with store_errors("read questions"):
            cursor = self.collection.find(
                {self.scope_field: scope_id, "question_id": {"$in": variants}},
                projection,
            )
            docs = await cursor.to_list(length=None)
        return [serialize_question(doc) for doc in docs]

    async def fetch_correct_options(self, scope_id: str, question_ids: Iterable[str]) -> Dict[str, str]:
        """Correct option per question id, keyed and valued by canonical id."""
        docs = await self.fetch_by_ids(
            scope_id, question_ids, {"question_id": 1, "correct_option_id": 1}
        )
        return {
            doc["question_id"]: canonical_id(doc["correct_option_id"])
            for doc in docs
            if doc.get("correct_option_id") is not None
        }

    async def insert(self, scope_id: str, question_data: dict) -> dict:
        question = {
            "question_id": f"{ID_PREFIXES[self.kind]}_{uuid.uuid4().hex[:12].upper()}",
            self.scope_field: scope_id,
            "question_text": question_data["question_text"],
            "normalized_text": question_data.get("normalized_text"),
            "options": question_data["options"],
            "correct_option_id": question_data["correct_option_id"],
            "image_url": question_data.get("image_url"),
            "difficulty": question_data.get("difficulty"),
            "created_at": datetime.utcnow(),
        }

        async with store_errors("save question"):
            try:
                await self.collection.insert_one(question)
            except DuplicateKeyError:
                # (scope, normalized_text) unique index; a concurrent insert won
                logger.warning("Rejected duplicate question for %s %s", self.scope_field, scope_id)
                raise DuplicateError("A question with the same text already exists")
        return serialize_question(question)


# ==================== PAPER STORE ====================

class PaperStore:
    """Past-year papers, grouped by course."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.pyq_papers

    async def list_for_course(self, course_id: str) -> List[dict]:
        async with store_errors("read papers"):
            cursor = self.collection.find({"course_id": course_id}).sort("year", -1)
            papers = await cursor.to_list(length=None)
        return [serialize_doc(p) for p in papers]

    async def get(self, paper_id: str) -> Optional[dict]:
        async with store_errors("read paper"):
            paper = await self.collection.find_one({"paper_id": paper_id})
        return serialize_doc(paper) if paper else None

    async def get_many(self, paper_ids: Iterable[str]) -> Dict[str, dict]:
        ids = list(set(paper_ids))
        if not ids:
            return {}
        async with store_errors("read papers"):
            cursor = self.collection.find({"paper_id": {"$in": ids}})
            papers = await cursor.to_list(length=None)
        return {p["paper_id"]: serialize_doc(p) for p in papers}

    async def create(self, course_id: str, paper_data: dict) -> dict:
        paper = {
            "paper_id": f"PAPER_{uuid.uuid4().hex[:12].upper()}",
            "course_id": course_id,
            "year": paper_data["year"],
            "exam_day": paper_data.get("exam_day"),
            "title": paper_data.get("title"),
            "created_at": datetime.utcnow(),
        }
        async with store_errors("save paper"):
            await self.collection.insert_one(paper)
        return serialize_doc(paper)


# ==================== ATTEMPT RECORDER ====================

class AttemptRecorder:
    """Persists scored attempts. Attempts are written once and never updated."""

    def __init__(self, db: AsyncIOMotorDatabase, kind: ExamKind):
        name, scope_field = ATTEMPT_COLLECTIONS[kind]
        self.kind = kind
        self.collection = db[name]
        self.scope_field = scope_field

    async def record(
        self,
        student_id: str,
        scope_id: str,
        answers: List[dict],
        score: int,
        total_questions: int,
    ) -> dict:
        """
        Write the whole attempt in a single insert.

        The document is complete before the write, so a failed insert
        leaves nothing behind and a stored score always matches its answers.
        """
        attempt = {
            "attempt_id": f"ATT_{uuid.uuid4().hex[:12].upper()}",
            "student_id": student_id,
            self.scope_field: scope_id,
            "answers": answers,
            "score": score,
            "total_questions": total_questions,
            "submitted_at": datetime.utcnow(),
        }

        async with store_errors("record attempt"):
            await self.collection.insert_one(attempt)

        logger.info(
            "Recorded %s attempt %s for student %s (score %d/%d)",
            self.kind.value, attempt["attempt_id"], student_id, score, total_questions,
        )
        return serialize_doc(attempt)

    async def get(self, attempt_id: str) -> Optional[dict]:
        async with store_errors("read attempt"):
            attempt = await self.collection.find_one({"attempt_id": attempt_id})
        return serialize_doc(attempt) if attempt else None

    async def list_for_student(
        self,
        student_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[dict]:
        """Newest first. end_date includes the whole day."""
        query: dict = {"student_id": student_id}
        window = {}
        if start_date:
            window["$gte"] = datetime.combine(start_date, datetime.min.time())
        if end_date:
            window["$lt"] = datetime.combine(end_date + timedelta(days=1), datetime.min.time())
        if window:
            query["submitted_at"] = window

        async with store_errors("read attempts"):
            cursor = self.collection.find(query).sort("submitted_at", -1)
            attempts = await cursor.to_list(length=None)
        return [serialize_doc(a) for a in attempts]

    async def scores_for(self, student_id: str, scope_id: str) -> List[dict]:
        async with store_errors("read scores"):
            cursor = self.collection.find(
                {"student_id": student_id, self.scope_field: scope_id},
                {"_id": 0, "attempt_id": 1, "score": 1, "total_questions": 1, "submitted_at": 1},
            ).sort("submitted_at", -1)
            return await cursor.to_list(length=None)
