import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from outputdash.api.analytics import router as analytics_router
from outputdash.api.output import router as output_router
from outputdash.api.reports import router as reports_router
from outputdash.db import Base, engine
from outputdash.models.saved_report import SavedReport  # noqa: F401  (import ensures table is registered)
from outputdash.services.output_sports import TokenCache


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI()

# Allow CORS for local frontend
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create DB tables (saved_reports) on startup
Base.metadata.create_all(bind=engine)

# One upstream token per app instance, shared by every request
app.state.token_cache = TokenCache()

app.include_router(output_router)
app.include_router(analytics_router)
app.include_router(reports_router)


@app.get("/")
def root():
    return {"message": "Output dashboard backend is running"}
