from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorClient

from examdesk.exams.app import setup_exam_routes, startup_exam_system
from examdesk.exams.config import MONGO_URL, MONGO_DB_NAME
from examdesk.storage.object_store import ObjectStore
from examdesk.utils.logging_config import configure_logging

logger = configure_logging()

app = FastAPI(title="ExamDesk Exam Engine")


@app.on_event("startup")
async def startup_event():
    # One client per process, shared by every request through app.state
    app.state.mongo_client = AsyncIOMotorClient(MONGO_URL)
    app.state.db = app.state.mongo_client[MONGO_DB_NAME]
    app.state.object_store = ObjectStore()
    await startup_exam_system(app.state.db)
    logger.info("Connected to MongoDB database %s", MONGO_DB_NAME)


@app.on_event("shutdown")
async def shutdown_event():
    await app.state.object_store.close()
    app.state.mongo_client.close()
    logger.info("MongoDB connection closed")


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== ROUTER REGISTRATION ====================
setup_exam_routes(app)
# ============================================================


@app.get("/health")
async def health():
    return {"status": "ok"}
