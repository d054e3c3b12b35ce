import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dispatch_engine.config import get_settings
from dispatch_engine.routers.barcode import router as barcode_router
from dispatch_engine.routers.shipments import router as shipments_router
from dispatch_engine.services.completion import CompletionWorkflowController
from dispatch_engine.services.documents import PdfDocumentGenerator
from dispatch_engine.services.store import SupabaseShipmentStore
from dispatch_engine.services.supabase_client import get_supabase

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("dispatch_engine")


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = SupabaseShipmentStore(get_supabase(settings))
    app.state.controller = CompletionWorkflowController(
        PdfDocumentGenerator(settings.document_output_dir, details_source=store),
        shipments=store,
        settle_interval=settings.settle_interval_seconds,
    )
    yield
    # Documents already triggered are finished, not abandoned.
    outcomes = await app.state.controller.drain()
    if outcomes:
        logger.info(f"[Engine] drained {len(outcomes)} document pipeline(s) on shutdown")


app = FastAPI(title="Dispatch Completion Engine", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(barcode_router)
app.include_router(shipments_router)


@app.get("/")
async def root():
    return {"status": "ONLINE", "engine": "Dispatch V1"}
