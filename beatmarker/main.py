"""FastAPI application - serves the marker API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from beatmarker import __version__
from beatmarker.api.sessions import router as sessions_router
from beatmarker.api.upload import router as upload_router

app = FastAPI(title="BeatMarker", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(upload_router, prefix="/api")
app.include_router(sessions_router, prefix="/api")


@app.get("/api/health")
async def health():
    return {"status": "ok"}


def run(host: str | None = None, port: int | None = None, reload: bool = False):
    import uvicorn
    from beatmarker.config import settings
    uvicorn.run(
        "beatmarker.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )
