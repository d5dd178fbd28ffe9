import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import Response

from course_checkout.core.config import settings
from course_checkout.routers import (
    bank_accounts,
    checkout,
    coupons,
    courses,
    enrollments,
    orders,
    webhooks,
)

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

OPENAPI_TAGS = [
    {"name": "Courses", "description": "Browse and manage the course catalog."},
    {"name": "Checkout", "description": "Check eligibility, apply coupons and start payment."},
    {"name": "Orders", "description": "Track orders and reconcile payments."},
    {"name": "Enrollments", "description": "Enrollments granted by paid orders."},
    {"name": "Coupons", "description": "Create and manage discount coupons."},
    {"name": "Bank accounts", "description": "Accounts students pay into by bank transfer."},
    {"name": "Webhooks", "description": "Payment gateway notifications."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Course checkout API. Prices courses in USD or UYU, applies coupons, "
        "takes payment through MercadoPago or bank transfer and enrolls students."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)


@app.middleware("http")
async def options_handler(request: Request, call_next):  # type: ignore[no-untyped-def]
    if request.method == "OPTIONS":
        origin = request.headers.get("origin", "*")
        return Response(
            status_code=200,
            headers={
                "Access-Control-Allow-Origin": origin,
                "Access-Control-Allow-Methods": "*",
                "Access-Control-Allow-Headers": "*",
                "Access-Control-Allow-Credentials": "true",
                "Access-Control-Max-Age": "86400",
            },
        )
    return await call_next(request)


app.include_router(courses.router, prefix="/v1/courses", tags=["Courses"])
app.include_router(checkout.router, prefix="/v1/checkout", tags=["Checkout"])
app.include_router(orders.router, prefix="/v1/orders", tags=["Orders"])
app.include_router(enrollments.router, prefix="/v1/enrollments", tags=["Enrollments"])
app.include_router(coupons.router, prefix="/v1/coupons", tags=["Coupons"])
app.include_router(bank_accounts.router, prefix="/v1/bank_accounts", tags=["Bank accounts"])
app.include_router(webhooks.router, prefix="/v1/webhooks", tags=["Webhooks"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "domain": settings.APP_DOMAIN,
        "status": "running",
    }
