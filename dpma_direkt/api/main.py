import logging

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dpma_direkt.api import routes_taxonomy, routes_trademark
from dpma_direkt.api.schemas import fail, ok
from dpma_direkt.core.config import get_settings
from dpma_direkt.core.errors import TaxonomyLoadError
from dpma_direkt.core.logging import setup_logging

settings = get_settings()
setup_logging(logging.DEBUG if settings.debug else logging.INFO)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    404: "NOT_FOUND",
    429: "RATE_LIMITED",
}


@app.exception_handler(HTTPException)
def http_error(_request, exc: HTTPException):
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return JSONResponse(status_code=exc.status_code, content=fail(code, str(exc.detail)))


@app.exception_handler(RequestValidationError)
def request_validation_error(_request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content=fail("VALIDATION_ERROR", "Request validation failed", details))


@app.exception_handler(TaxonomyLoadError)
def taxonomy_unavailable(_request, exc: TaxonomyLoadError):
    return JSONResponse(status_code=503, content=fail(exc.error_code, exc.message))


@app.get("/healthz")
def healthz():
    return {"status": "ok", "service": settings.app_name}


@app.get("/api")
def api_index():
    return ok(
        {
            "service": settings.app_name,
            "endpoints": [
                "GET /healthz",
                "GET /api/taxonomy/search?q=&class=&limit=&min_score=&leaf_only=",
                "GET /api/taxonomy/validate?term=&class=",
                "POST /api/taxonomy/validate",
                "GET /api/taxonomy/classes",
                "GET /api/taxonomy/classes/{class_number}",
                "GET /api/taxonomy/stats",
                "POST /api/trademark/register",
                "POST /api/trademark/register/async",
                "GET /api/trademark/tasks/{task_id}",
            ],
        }
    )


app.include_router(routes_taxonomy.router)
app.include_router(routes_trademark.router)
