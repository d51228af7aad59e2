from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from core.ids import Clock, IdGenerator, utc_now
from core.logging_config import configure_logging
from core.transactions import TransactionProcessor
from db.persistence import PersistenceObserver, SlotStorage
from db.store import InventoryStore
from routers.backup import router as backup_router
from routers.dashboard import router as dashboard_router
from routers.history import router as history_router
from routers.inventory import router as inventory_router
from routers.partners import router as partners_router
from routers.plans import router as plans_router


def create_app(
    storage: Optional[SlotStorage] = None,
    *,
    ids: Optional[IdGenerator] = None,
    clock: Clock = utc_now,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        slot_storage = storage or SlotStorage()
        await slot_storage.create_tables()

        store = InventoryStore(await slot_storage.load())
        persistence = PersistenceObserver(slot_storage)
        store.subscribe(persistence)

        app.state.store = store
        app.state.persistence = persistence
        app.state.processor = TransactionProcessor(store, ids=ids, clock=clock)
        yield
        await persistence.flush()
        await slot_storage.engine.dispose()

    app = FastAPI(
        title="Warehouse Inventory API",
        description="Bulk and serialized (signal number) stock with an append-only ledger",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(partners_router, prefix="/partners", tags=["partners"])
    app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])
    app.include_router(history_router, prefix="/history", tags=["history"])
    app.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])
    app.include_router(backup_router, prefix="/backup", tags=["backup"])
    app.include_router(plans_router, prefix="/plans", tags=["plans"])
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
