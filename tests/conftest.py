import itertools
from typing import Any, Dict, List, Optional

import pytest
from pymongo.errors import DuplicateKeyError, PyMongoError


def _matches(doc: dict, query: dict) -> bool:
    for key, cond in query.items():
        value = doc.get(key)
        if isinstance(cond, dict):
            for op, arg in cond.items():
                if op == "$in" and value not in arg:
                    return False
                if op == "$gte" and (value is None or value < arg):
                    return False
                if op == "$lt" and (value is None or value >= arg):
                    return False
        elif value != cond:
            return False
    return True


def _project(doc: dict, projection: Optional[dict]) -> dict:
    if not projection:
        return dict(doc)
    included = [k for k, v in projection.items() if v and k != "_id"]
    out = {k: doc[k] for k in included if k in doc}
    if projection.get("_id", 1):
        out["_id"] = doc["_id"]
    return out


class FakeCursor:
    def __init__(self, docs: List[dict], projection: Optional[dict]):
        self._docs = docs
        self._projection = projection
        self._skip = 0
        self._limit = 0

    def sort(self, key, direction=1):
        self._docs = sorted(self._docs, key=lambda d: d.get(key), reverse=direction < 0)
        return self

    def skip(self, n):
        self._skip = n
        return self

    def limit(self, n):
        self._limit = n
        return self

    async def to_list(self, length=None):
        docs = self._docs[self._skip:]
        if self._limit:
            docs = docs[:self._limit]
        return [_project(d, self._projection) for d in docs]


class FakeCollection:
    """In-memory stand-in for the slice of the motor collection API the service uses."""

    def __init__(self, name: str, ids):
        self.name = name
        self.docs: List[dict] = []
        self.find_calls = 0
        self.fail_inserts = False
        self.fail_reads = False
        # field tuples enforced like a unique index (docs missing a field are skipped)
        self.unique_on: List[tuple] = []
        self._ids = ids

    def find(self, query=None, projection=None):
        if self.fail_reads:
            raise PyMongoError("simulated read failure")
        self.find_calls += 1
        found = [d for d in self.docs if _matches(d, query or {})]
        return FakeCursor(found, projection)

    async def find_one(self, query):
        if self.fail_reads:
            raise PyMongoError("simulated read failure")
        for d in self.docs:
            if _matches(d, query):
                return dict(d)
        return None

    async def count_documents(self, query):
        if self.fail_reads:
            raise PyMongoError("simulated read failure")
        return sum(1 for d in self.docs if _matches(d, query))

    async def insert_one(self, doc):
        if self.fail_inserts:
            raise PyMongoError("simulated write failure")
        for fields in self.unique_on:
            key = tuple(doc.get(f) for f in fields)
            if None in key:
                continue
            if any(tuple(d.get(f) for f in fields) == key for d in self.docs):
                raise DuplicateKeyError(f"E11000 duplicate key error collection: {self.name}")
        doc["_id"] = next(self._ids)
        self.docs.append(dict(doc))

    def seed(self, docs: List[dict]):
        for d in docs:
            self.docs.append({"_id": next(self._ids), **d})


class FakeDB:
    def __init__(self):
        self._collections: Dict[str, FakeCollection] = {}
        self._ids = itertools.count(1)

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(name, self._ids)
        return self._collections[name]

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]


def make_question(qid, scope_id, correct="A", image=None, text=None, scope_field="course_id"):
    return {
        "question_id": qid,
        scope_field: scope_id,
        "question_text": text or f"Question {qid}",
        "options": [{"id": o, "label": f"Option {o}"} for o in ("A", "B", "C", "D")],
        "correct_option_id": correct,
        "image_url": image,
        "difficulty": "easy",
    }


def make_bank(course_id: str, total: int, with_images: int) -> List[dict]:
    return [
        make_question(
            f"Q{i}", course_id,
            correct="ABCD"[i % 4],
            image=f"https://cdn.example.com/q{i}.png" if i < with_images else None,
        )
        for i in range(total)
    ]


@pytest.fixture
def db():
    return FakeDB()
