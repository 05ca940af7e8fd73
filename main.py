from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from core.auth import AccessDenied
from core.config import logger, APP_NAME, ALLOWED_ORIGINS

# Routers
from routers import auth, discounts, email, orders, paystack, products, shipping_options, users

app = FastAPI(title=APP_NAME)

# ---- CORS setup ----
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Security headers ---
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    response.headers.setdefault("X-Frame-Options", "DENY")
    return response


@app.exception_handler(AccessDenied)
async def access_denied_handler(request: Request, exc: AccessDenied):
    return exc.response


# ---- Include routers ----
app.include_router(auth.router)
app.include_router(discounts.router)
app.include_router(paystack.router)
app.include_router(products.router)
app.include_router(orders.router)
app.include_router(shipping_options.router)
app.include_router(users.router)
app.include_router(email.router)


@app.on_event("startup")
async def _init_schema():
    try:
        from core.database import init_db
        init_db()
    except Exception as _ex:
        logger.warning(f"init_db failed: {_ex}")


@app.get("/api/health")
async def health():
    return {"status": "ok"}
