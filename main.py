import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from auth import AuthConfig
from cache import ViewCache
from dashboard_routes import router
from data import FetchError
from db import init_db

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()
VIEW_CACHE_SIZE = int(os.getenv("VIEW_CACHE_SIZE", "256").strip() or 256)
VIEW_CACHE_TTL = float(os.getenv("VIEW_CACHE_TTL", "300").strip() or 300)
CORS_ORIGINS = [
  x.strip()
  for x in os.getenv("CORS_ORIGINS", "http://127.0.0.1:3000,http://localhost:3000").split(",")
  if x.strip()
]

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
  init_db()
  logger.info("Invoicing dashboard backend ready")
  yield


def create_app(auth_config: Optional[AuthConfig] = None) -> FastAPI:
  app = FastAPI(title="Invoicing Dashboard Backend", version="1.0.0", lifespan=lifespan)
  app.state.auth_config = auth_config or AuthConfig.from_env()
  app.state.view_cache = ViewCache(maxsize=VIEW_CACHE_SIZE, ttl=VIEW_CACHE_TTL)

  app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
  )
  app.include_router(router)

  @app.exception_handler(FetchError)
  async def fetch_error_handler(request: Request, exc: FetchError):
    return JSONResponse({"message": str(exc)}, status_code=500)

  @app.get("/health")
  def health():
    return {"ok": True}

  return app


app = create_app()


if __name__ == "__main__":
  import uvicorn
  uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
