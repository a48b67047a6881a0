import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from src.api.error import register_error_handlers
from src.api.routes import billing, payouts, placements, webhooks


def create_app(config) -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title="Recruiter Billing Service",
        description="Plans, subscriptions, commission snapshots and payouts",
        version="1.0.0",
    )

    if config.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ORIGINS,
            allow_credentials=config.CORS_ALLOW_CREDENTIALS,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_error_handlers(app)

    app.include_router(billing.router)
    app.include_router(webhooks.router)
    app.include_router(placements.router)
    app.include_router(payouts.router)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app
