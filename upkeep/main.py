from apscheduler.schedulers.asyncio import AsyncIOScheduler
import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager

from upkeep.db import create_tables, get_stores
from upkeep.errors import UpkeepError
from upkeep.load_secrets import invitation_sweep_interval_sec, log_level
from upkeep.routers import maintenance
from upkeep.services.invitation_expirer import expire_invitations

logging.basicConfig(level=getattr(logging, log_level.upper(), logging.INFO))

scheduler = AsyncIOScheduler()


async def sweep_expired_invitations() -> None:
    """Scheduled service call: runs without a caller identity."""
    try:
        cleaned = await expire_invitations(get_stores().invitations)
        logging.info(f"Scheduled invitation sweep declined {cleaned} invitations")
    except Exception as e:
        logging.error(f"Scheduled invitation sweep failed: {e}")


@asynccontextmanager
async def lifespan(app):
    """Create tables and, if configured, schedule the invitation sweep.
    This function is called to start the server.
    """
    await create_tables()

    if invitation_sweep_interval_sec > 0:
        scheduler.add_job(
            sweep_expired_invitations,
            "interval",
            seconds=invitation_sweep_interval_sec,
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
    try:
        yield
    finally:
        if scheduler.running:
            scheduler.shutdown()
        logging.info("Stop Server")


app = FastAPI(lifespan=lifespan)
app.include_router(maintenance.maintenance_router)
app.add_exception_handler(UpkeepError, maintenance.upkeep_error_handler)
