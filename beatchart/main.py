"""FastAPI application - serves the chart API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from beatchart.api.upload import router as chart_router

app = FastAPI(title="Beatchart", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chart_router, prefix="/api")


@app.get("/api/health")
async def health():
    return {"status": "ok"}


def run():
    import uvicorn
    from beatchart.config import settings
    uvicorn.run(
        "beatchart.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
    )
