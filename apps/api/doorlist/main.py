from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from doorlist.api.v1.router import router as v1_router
from doorlist.core.config import settings
from doorlist.core.logging import configure_logging
from doorlist.middleware.rate_limit import RateLimitMiddleware
from doorlist.middleware.request_id import RequestIdMiddleware

configure_logging()

app = FastAPI(title="Doorlist API")

# Starlette runs the LAST added middleware FIRST (outermost).
# RequestId wraps everything, CORS answers preflight, RateLimit sits innermost.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
def root():
    return {"name": "Doorlist API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(v1_router, prefix="/v1")
