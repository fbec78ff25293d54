from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from loguru import logger

from handgrade.api import router as handgrade_router
from handgrade.errors import HandgradeError
from handgrade.logging import setup_logger
from handgrade.schemas import HealthResponse
from handgrade.settings import settings

setup_logger()

app = FastAPI(
    title="Handgrade",
    description="Streams a hosted model's reading and grading of a handwritten algebra answer.",
    version="0.1.0",
)
app.include_router(handgrade_router)


@app.exception_handler(HandgradeError)
async def handgrade_error_handler(request: Request, exc: HandgradeError):
    logger.warning(f"Rejected {request.url.path}: {exc.to_dict()}")
    return PlainTextResponse(exc.message, status_code=exc.http_status)


@app.get("/health", response_model=HealthResponse)
def health_check():
    logger.debug("Health check endpoint called.")
    return HealthResponse(status="ok")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=settings.PORT, reload=True)
