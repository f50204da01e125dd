import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings_loader import get_server_setting
from shared.state import AgentServices, build_services

logger = logging.getLogger("api")


def create_app(services: Optional[AgentServices] = None) -> FastAPI:
    """Build the API around `services`, or around freshly built ones from settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        print("🚀 API Starting up...")
        app.state.services.scheduler.start()
        yield
        print("🛑 API Shutting down...")
        app.state.services.scheduler.shutdown()

    app = FastAPI(lifespan=lifespan)
    app.state.services = services or build_services()

    # Enable CORS for Frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_server_setting("cors_origins"),
        allow_origin_regex=r"http://localhost:(517\d|5555)",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # === Import and Include Routers ===
    from routers import chat as chat_router
    from routers import context as context_router
    from routers import cron
    from routers import settings as settings_router
    from routers import stream
    app.include_router(chat_router.router)
    app.include_router(context_router.router)
    app.include_router(cron.router)
    app.include_router(settings_router.router)
    app.include_router(stream.router)

    @app.get("/health")
    async def health_check():
        services = app.state.services
        return {
            "status": "ok",
            "version": "1.0.0",
            "scheduler_running": services.scheduler.initialized,
            "active_tasks": sum(1 for task in services.scheduler.list_tasks() if task.is_active),
        }

    return app


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "api:create_app",
        factory=True,
        host=get_server_setting("host"),
        port=int(get_server_setting("port")),
    )
