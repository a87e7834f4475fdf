import inspect
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from routes.chat_route import router as chat_router
from routes.image_route import router as image_router
from routes.realtime_ws import router as realtime_router
from routes.session_route import router as session_router
from routes.vision_route import router as vision_router
from services.genai.client import GenerativeServiceClient
from services.session_registry import SessionRegistry
from utils.settings import Settings

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present


def create_app(openai_client: Optional[AsyncOpenAI] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        openai_client: Optional pre-built client (tests inject a fake). When
            omitted, one is created from the configured API key at startup.
        settings: Optional configuration; defaults to `Settings.from_env()`.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan manager to initialize:
          - the OpenAI async client (empty key allowed; calls then fail remotely)
          - the generative service client and the session registry
        and attach them to `app.state`.
        """
        resolved = settings or Settings.from_env()
        logging.basicConfig(
            level=resolved.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        app.state.settings = resolved

        client = openai_client
        if client is None:
            try:
                client = AsyncOpenAI(api_key=resolved.api_key)
            except Exception as exc:
                raise RuntimeError("Failed to initialize OpenAI Async client") from exc
        app.state.openai_client = client

        genai_client = GenerativeServiceClient(client, resolved)
        app.state.genai_client = genai_client
        app.state.session_registry = SessionRegistry(genai_client, greeting=resolved.greeting)

        try:
            yield
        finally:
            # Only close clients this app created.
            if openai_client is None:
                aclose = getattr(client, "close", None)
                if aclose is not None:
                    try:
                        result = aclose()
                        if inspect.isawaitable(result):
                            await result
                    except Exception:
                        # Ignore shutdown errors to avoid masking more important issues.
                        logging.getLogger(__name__).warning("OpenAI client shutdown failed", exc_info=True)

    app = FastAPI(lifespan=lifespan)

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports the generative client and active sessions.
        """
        has_client = getattr(request.app.state, "genai_client", None) is not None
        registry = getattr(request.app.state, "session_registry", None)
        return {
            "ok": True,
            "genai_available": has_client,
            "active_sessions": len(registry) if registry is not None else 0,
        }

    # Register application routers
    app.include_router(session_router)
    app.include_router(chat_router)
    app.include_router(vision_router)
    app.include_router(image_router)
    app.include_router(realtime_router)

    return app


app = create_app()
