from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from smartalbums.core.config import get_settings
from smartalbums.core.errors import AccessDenied, InfrastructureUnavailable, NotFound, SearchSpecValidationError
from smartalbums.core.logging import configure_logging
from smartalbums.routers.jobs import router as jobs_router

configure_logging(get_settings())

app = FastAPI(title="Smart Albums Worker API")

# Mount routers
app.include_router(jobs_router, prefix="/api/v1")

@app.exception_handler(InfrastructureUnavailable)
async def infrastructure_unavailable(request: Request, exc: InfrastructureUnavailable):
    return JSONResponse(status_code=503, content={"detail": str(exc), "component": exc.component})

@app.exception_handler(SearchSpecValidationError)
async def invalid_search_spec(request: Request, exc: SearchSpecValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.errors})

@app.exception_handler(NotFound)
async def not_found(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})

@app.exception_handler(AccessDenied)
async def access_denied(request: Request, exc: AccessDenied):
    return JSONResponse(status_code=403, content={"detail": str(exc)})

# Simple health for E2E bring-up
@app.get("/healthz")
def healthz():
    return {"status": "ok"}
