from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from matchday.database import create_db_and_tables
from matchday.errors import InvalidInput, PredictorError
from matchday.logger import get_logger

logger = get_logger("matchday.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: Create database tables
    create_db_and_tables()
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Matchday Predictor",
    description="Predict match scores, lock picks at kickoff and climb the leaderboard",
    version="1.0.0",
    lifespan=lifespan
)


@app.exception_handler(PredictorError)
async def predictor_error_handler(request: Request, exc: PredictorError):
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    error = InvalidInput("Request body is invalid", {"errors": [e["msg"] for e in exc.errors()]})
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# Include routers
from matchday.routers import admin, fixtures, leaderboard, matrix, predictions, standings

app.include_router(fixtures.router, tags=["fixtures"])
app.include_router(predictions.router, tags=["predictions"])
app.include_router(leaderboard.router, tags=["leaderboard"])
app.include_router(standings.router, tags=["standings"])
app.include_router(matrix.router, tags=["matrix"])
app.include_router(admin.router, tags=["admin"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
