import re

from examdesk.exams.database import QuestionStore

_WHITESPACE = re.compile(r"\s+")
_TRAILING_PUNCTUATION = re.compile(r"[\s?.!]+$")


def normalize_text(text: str) -> str:
    """Trim, collapse whitespace runs, lowercase, drop trailing ?/./! marks."""
    collapsed = _WHITESPACE.sub(" ", (text or "").strip()).lower()
    return _TRAILING_PUNCTUATION.sub("", collapsed)


class DuplicateDetector:
    """Pre-insert gate for question authoring. Exact match after normalization."""

    def __init__(self, store: QuestionStore):
        self.store = store

    async def is_duplicate(self, scope_id: str, candidate_text: str) -> bool:
        target = normalize_text(candidate_text)
        projection = {"question_text": 1}
        async for batch in self.store.iter_batches(scope_id, projection):
            for doc in batch:
                if normalize_text(doc.get("question_text", "")) == target:
                    return True
        return False
