"""
Exam System - Router and startup wiring
Mock tests, past-year papers and admin score reports
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

from examdesk.exams.errors import ExamError
from examdesk.exams.mock_router import router as mock_router
from examdesk.exams.pyq_router import router as pyq_router
from examdesk.exams.report_router import router as report_router
from examdesk.exams.schemas import create_collections_with_validation, create_all_indexes

logger = logging.getLogger(__name__)

# ==================== ERROR MAPPING ====================

async def exam_error_handler(request: Request, exc: ExamError) -> JSONResponse:
    """Render exam errors as the standard failure envelope"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message}
    )

# ==================== ROUTER SETUP ====================

def setup_exam_routes(app: FastAPI):
    """Register all exam-related routers"""

    app.include_router(mock_router, prefix="/mock")
    app.include_router(pyq_router, prefix="/pyq")
    app.include_router(report_router, prefix="/admin/reports")
    app.add_exception_handler(ExamError, exam_error_handler)

    logger.info("Exam routes registered")

# ==================== STARTUP ====================

async def startup_exam_system(db: AsyncIOMotorDatabase):
    """Initialize exam collections and indexes on app startup"""
    await create_collections_with_validation(db)
    await create_all_indexes(db)
    logger.info("Exam system initialized")
