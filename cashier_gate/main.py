from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from cashier_gate.api.routes import router
from cashier_gate.api.admin_routes import router as admin_router
from cashier_gate.observability.logging import log
from cashier_gate.settings import settings

app = FastAPI(title="Cashier Gate API")

origins = [x.strip() for x in settings.CORS_ORIGINS.split(",") if x.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "Cashier gate is running. POST /api/cashier/session to open a cashier session."
    }


@app.get("/health")
def health():
    return {"status": "ok"}


@app.exception_handler(Exception)
async def universal_exception_handler(request: Request, exc: Exception):
    # One stable error shape; details stay in the logs
    log("unhandled_exception", path=request.url.path, errorType=type(exc).__name__, error=str(exc)[:500])
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": "The cashier is unavailable right now. Please try again later."},
    )


log("boot", cashierApiConfigured=bool(settings.CASHIER_API_URL), siteDomain=settings.SITE_DOMAIN,
    providerMarkers=settings.provider_markers())
