import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import errors
import posts
import profiles
import users
from config import Settings, get_settings
from database import connect, ensure_indexes

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = connect(settings)
        app.state.db = client[settings.database_name]
        ensure_indexes(app.state.db)
        logger.info("Database ready")
        try:
            yield
        finally:
            client.close()
            logger.info("Database connection closed")

    app = FastAPI(title="DevConnector API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    errors.install(app)

    @app.get("/")
    def root():
        return {"message": "API Running"}

    app.include_router(users.router)
    app.include_router(profiles.router)
    app.include_router(posts.router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
