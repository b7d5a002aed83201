from fastapi import FastAPI
from .api.health import router as health_router
from .api.routes import router as runs_router
from .core.run_manager import manager
from .logging_config import configure_logging
from .settings import config_path, load_config

configure_logging()

app = FastAPI(title="BLE Hub",
              description="Collects BLE advertisements in fixed windows and exports them as Parquet",
              version="0.1.0")

app.include_router(health_router)
app.include_router(runs_router)

@app.on_event("startup")
async def startup_event():
    manager.configure(load_config(config_path()))
    manager.start()

@app.on_event("shutdown")
async def shutdown_event():
    await manager.stop()

# Run: uvicorn blehub.main:app --host 0.0.0.0 --port 8080
