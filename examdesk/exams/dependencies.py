from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from examdesk.auth.auth_utils import verify_token
from examdesk.exams.models import ExamKind
from examdesk.exams.service import ExamService

# ==================== DEPENDENCY FUNCTIONS ====================

async def get_db(request: Request) -> AsyncIOMotorDatabase:
    """Database opened in the startup handler"""
    return request.app.state.db

async def get_current_user_id(user: dict = Depends(verify_token)) -> str:
    return str(user["id"])

async def get_mock_service(request: Request, db: AsyncIOMotorDatabase = Depends(get_db)) -> ExamService:
    return ExamService(db, ExamKind.MOCK, object_store=getattr(request.app.state, "object_store", None))

async def get_pyq_service(request: Request, db: AsyncIOMotorDatabase = Depends(get_db)) -> ExamService:
    return ExamService(db, ExamKind.PYQ, object_store=getattr(request.app.state, "object_store", None))
