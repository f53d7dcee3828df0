# agricoventas/cli/create_tables.py
import asyncio

import click
from sqlalchemy.ext.asyncio import create_async_engine

from agricoventas.core.config import get_settings
from agricoventas.database import Base, engine_options, normalize_database_url

# Registers every model on Base.metadata
from agricoventas import models  # noqa: F401


@click.command("create-tables")
@click.option("--echo/--no-echo", default=False, help="Echo the emitted DDL")
def create_tables(echo):
    """Create all database tables directly using SQLAlchemy"""
    settings = get_settings()
    url = normalize_database_url(settings.DATABASE_URL)

    async def _create_tables():
        engine = create_async_engine(url, echo=echo, **engine_options(url))
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        finally:
            await engine.dispose()
        click.echo("All tables created successfully!")

    asyncio.run(_create_tables())


if __name__ == "__main__":
    create_tables()
