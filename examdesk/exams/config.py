"""
Exam System Configuration
Store, auth, storage and test-composition settings
"""

import os

# MongoDB
MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "examdesk_db")

# Auth (tokens are issued by the main platform, verified here)
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Mock test composition
MOCK_TEST_QUESTION_COUNT = int(os.getenv("MOCK_TEST_QUESTION_COUNT", "40"))
MOCK_TEST_MIN_IMAGE_COUNT = int(os.getenv("MOCK_TEST_MIN_IMAGE_COUNT", "10"))

# Rows per page when reading a question bank
QUESTION_BATCH_SIZE = int(os.getenv("QUESTION_BATCH_SIZE", "1000"))

# Object storage for question images
STORAGE_URL = os.getenv("STORAGE_URL", "")
STORAGE_BUCKET = os.getenv("STORAGE_BUCKET", "question-images")
STORAGE_API_KEY = os.getenv("STORAGE_API_KEY", "")
STORAGE_TIMEOUT_SECONDS = 30.0

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
