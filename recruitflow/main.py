import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import routers
from recruitflow.routers import records, processes, interviews
from recruitflow.core.config import get_settings
from recruitflow.core.exceptions import RecruitmentError
from recruitflow.core.logging_config import configure_logging
from recruitflow.models.common import ErrorResponse
from mangum import Mangum

# Initialize settings
settings = get_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description=settings.DESCRIPTION,
    version=settings.VERSION
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Initialize Firebase on startup when records live in Firestore
@app.on_event("startup")
async def startup_event():
    if settings.STORE_BACKEND == "firestore":
        from recruitflow.core.firebase import initialize_firebase
        initialize_firebase()


@app.on_event("shutdown")
async def shutdown_event():
    if settings.STORE_BACKEND == "firestore":
        from recruitflow.core.firebase import close_firestore_client
        close_firestore_client()


@app.exception_handler(RecruitmentError)
async def recruitment_error_handler(request: Request, exc: RecruitmentError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s %s", request.method, request.url.path, exc.message, exc.context())
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    body = ErrorResponse(error=exc.error, detail=exc.message, context=exc.context())
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


# Include routers
prefix = settings.API_PREFIX
app.include_router(records.job_postings_router, prefix=f"{prefix}/job-postings", tags=["Job Postings"])
app.include_router(records.candidates_router, prefix=f"{prefix}/candidates", tags=["Candidates"])
app.include_router(processes.router, prefix=f"{prefix}/interview-processes", tags=["Interview Processes"])
app.include_router(interviews.router, prefix=f"{prefix}/interviews", tags=["Interviews"])


@app.get("/")
async def root():
    return {
        "message": "Welcome to Recruitflow API",
        "version": settings.VERSION,
        "description": settings.DESCRIPTION,
        "endpoints": {
            "job_postings": f"{prefix}/job-postings",
            "candidates": f"{prefix}/candidates",
            "interview_processes": f"{prefix}/interview-processes",
            "interviews": f"{prefix}/interviews",
            "docs": "/docs",
            "health": "/health"
        }
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "version": settings.VERSION,
        "store": settings.STORE_BACKEND,
        "debug": settings.DEBUG
    }


handler = Mangum(app)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
