import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncSession

from agricoventas.core.responses import error_response
from agricoventas.dependencies import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "Agricoventas API"}


@router.get("/health/db")
async def database_health(db: AsyncSession = Depends(get_db)):
    """Check database connectivity and tables"""
    try:
        await db.execute(text("SELECT 1"))
        connection = await db.connection()
        tables = await connection.run_sync(lambda conn: inspect(conn).get_table_names())
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Database unavailable",
            code="SERVICE_UNAVAILABLE",
        )

    return {
        "status": "healthy",
        "database": "connected",
        "tables_count": len(tables),
        "tables": sorted(tables),
    }
