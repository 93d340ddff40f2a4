import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import FRONTEND_ORIGIN, setup_logging
from .errors import LessonPlanError
from .routes import auth, calendar, lesson_plans

setup_logging()
logger = logging.getLogger(__name__)

origins = sorted({
    FRONTEND_ORIGIN,
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
})

app = FastAPI(title="Lesson Plan Generator")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LessonPlanError)
async def lesson_plan_error_handler(request: Request, exc: LessonPlanError):
    logger.error("❌ %s (%d): %s", type(exc).__name__, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Routers
app.include_router(lesson_plans.router)
app.include_router(auth.router)
app.include_router(calendar.router)
