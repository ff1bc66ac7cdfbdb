# kiosk/db/init_db.py
from kiosk.db.database import engine as default_engine, Base
from kiosk.db import models  # noqa: F401  registers the tables on Base.metadata


async def init_db(engine=None):
    async with (engine or default_engine).begin() as conn:
        # Create all tables
        await conn.run_sync(Base.metadata.create_all)
