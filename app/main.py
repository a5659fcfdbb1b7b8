from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.logging_config import setup_logging
from .movies.router import router as movies_router
from .rooms.router import router as rooms_router
from .websockets.router import router as websockets_router

setup_logging()

app = FastAPI(title="Movie Match")

@app.get("/")
def read_root():
    return {"message": "Welcome to the Movie Match API"}

app.include_router(movies_router)
app.include_router(rooms_router)
app.include_router(websockets_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
