import logging
import time
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from storefront.config import LOG_LEVEL
from storefront.database import init_db
from storefront.errors import StorefrontError
from storefront.messaging import setup_rabbitmq, close_rabbitmq
from storefront.reviews import get_review_repository, close_review_client
from storefront.routers.products import router as product_router
from storefront.routers.inventory import router as inventory_router
from storefront.routers.stores import router as store_router
from storefront.routers.reviews import router as review_router
from storefront.schemas import ErrorResponse

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Storefront Service")

app.include_router(product_router, prefix="/product", tags=["product"])
app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])
app.include_router(store_router, prefix="/store", tags=["store"])
app.include_router(review_router, prefix="/reviews", tags=["reviews"])

def error_response(status: int, message: str, error: str) -> JSONResponse:
    body = ErrorResponse(message=message, error=error, status=status, timestamp=int(time.time() * 1000))
    return JSONResponse(status_code=status, content=body.model_dump(by_alias=True))

@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    # Not-found, conflict and stock failures all surface as 400; the tag tells them apart
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return error_response(400, exc.message, exc.error_code)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'][1:]) or 'body'}: {err['msg']}" for err in exc.errors()
    )
    return error_response(400, f"Invalid request: {details}", "VALIDATION_ERROR")

@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity violation on %s %s: %s", request.method, request.url.path, exc.orig)
    return error_response(400, f"Data integrity violation: {exc.orig}", "DATA_INTEGRITY_VIOLATION")

@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "An internal server error occurred", "INTERNAL_SERVER_ERROR")

@app.on_event("startup")
async def startup_event():
    await init_db()
    await get_review_repository().ensure_indexes()
    await setup_rabbitmq()

@app.on_event("shutdown")
async def shutdown_event():
    await close_rabbitmq()
    await close_review_client()

@app.get("/")
def root():
    return {"message": "Storefront Service Running"}

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
