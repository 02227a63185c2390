"""
MongoDB Collection Schemas
File: examdesk/exams/schemas.py

Validators and indexes for the exam collections:
mock_questions, mock_attempts, pyq_papers, pyq_questions, pyq_attempts
"""

import logging

from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

_ID = {"bsonType": ["string", "int", "long"]}

_OPTIONS = {
    "bsonType": "array",
    "minItems": 1,
    "items": {
        "bsonType": "object",
        "required": ["id", "label"],
        "properties": {
            "id": _ID,
            "label": {"bsonType": "string"}
        }
    }
}

_ANSWERS = {
    "bsonType": "array",
    "items": {
        "bsonType": "object",
        "required": ["question_id"],
        "properties": {
            "question_id": _ID,
            "selected_option_id": {"bsonType": ["string", "int", "long", "null"]}
        }
    }
}


def _question_schema(scope_field: str) -> dict:
    return {
        "validator": {
            "$jsonSchema": {
                "bsonType": "object",
                "required": ["question_id", scope_field, "question_text", "options", "correct_option_id"],
                "properties": {
                    "question_id": _ID,
                    scope_field: {"bsonType": "string"},
                    "question_text": {"bsonType": "string"},
                    "normalized_text": {"bsonType": ["string", "null"]},
                    "options": _OPTIONS,
                    "correct_option_id": _ID,
                    "image_url": {"bsonType": ["string", "null"]},
                    "difficulty": {"enum": ["easy", "medium", "hard", None]},
                    "created_at": {"bsonType": "date"}
                }
            }
        }
    }


def _attempt_schema(scope_field: str) -> dict:
    return {
        "validator": {
            "$jsonSchema": {
                "bsonType": "object",
                "required": ["attempt_id", "student_id", scope_field, "answers", "score", "submitted_at"],
                "properties": {
                    "attempt_id": {"bsonType": "string"},
                    "student_id": {"bsonType": "string"},
                    scope_field: {"bsonType": "string"},
                    "answers": _ANSWERS,
                    "score": {"bsonType": "int", "minimum": 0},
                    "total_questions": {"bsonType": "int", "minimum": 0},
                    "submitted_at": {"bsonType": "date"}
                }
            }
        }
    }


PYQ_PAPERS_SCHEMA = {
    "validator": {
        "$jsonSchema": {
            "bsonType": "object",
            "required": ["paper_id", "course_id", "year"],
            "properties": {
                "paper_id": {"bsonType": "string"},
                "course_id": {"bsonType": "string"},
                "year": {"bsonType": "int"},
                "exam_day": {"bsonType": ["string", "null"]},
                "title": {"bsonType": ["string", "null"]},
                "created_at": {"bsonType": "date"}
            }
        }
    }
}

SCHEMAS = {
    "mock_questions": _question_schema("course_id"),
    "mock_attempts": _attempt_schema("course_id"),
    "pyq_papers": PYQ_PAPERS_SCHEMA,
    "pyq_questions": _question_schema("paper_id"),
    "pyq_attempts": _attempt_schema("paper_id"),
}


# ==================== INDEXES ====================

# Questions written before normalized_text existed are left out of the unique index
_HAS_NORMALIZED_TEXT = {"normalized_text": {"$type": "string"}}

INDEXES = {
    "mock_questions": [
        {"keys": [("question_id", 1)], "unique": True},
        {"keys": [("course_id", 1), ("_id", 1)]},  # paged bank reads
        {"keys": [("course_id", 1), ("normalized_text", 1)], "unique": True,
         "partialFilterExpression": _HAS_NORMALIZED_TEXT}
    ],

    "mock_attempts": [
        {"keys": [("attempt_id", 1)], "unique": True},
        {"keys": [("student_id", 1), ("submitted_at", -1)]},
        {"keys": [("student_id", 1), ("course_id", 1)]}
    ],

    "pyq_papers": [
        {"keys": [("paper_id", 1)], "unique": True},
        {"keys": [("course_id", 1), ("year", -1)]}
    ],

    "pyq_questions": [
        {"keys": [("question_id", 1)], "unique": True},
        {"keys": [("paper_id", 1), ("_id", 1)]},
        {"keys": [("paper_id", 1), ("normalized_text", 1)], "unique": True,
         "partialFilterExpression": _HAS_NORMALIZED_TEXT}
    ],

    "pyq_attempts": [
        {"keys": [("attempt_id", 1)], "unique": True},
        {"keys": [("student_id", 1), ("submitted_at", -1)]}
    ]
}


# ==================== COLLECTION CREATION ====================

async def create_collections_with_validation(db):
    """Create all collections with schema validation"""
    existing_collections = await db.list_collection_names()

    for collection_name, schema in SCHEMAS.items():
        if collection_name not in existing_collections:
            await db.create_collection(collection_name, **schema)
            logger.info("Created collection: %s", collection_name)
        else:
            # Update validation rules
            try:
                await db.command({
                    "collMod": collection_name,
                    **schema
                })
                logger.info("Updated validation: %s", collection_name)
            except PyMongoError as e:
                logger.warning("Could not update %s: %s", collection_name, e)


async def create_all_indexes(db):
    """Create all indexes for the exam collections"""
    for collection_name, indexes in INDEXES.items():
        collection = db[collection_name]
        for index in indexes:
            options = {"unique": index.get("unique", False)}
            if "partialFilterExpression" in index:
                options["partialFilterExpression"] = index["partialFilterExpression"]
            try:
                await collection.create_index(index["keys"], **options)
            except PyMongoError as e:
                logger.warning("Index creation failed for %s: %s", collection_name, e)
    logger.info("Exam indexes ensured")
