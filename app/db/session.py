from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from contextlib import asynccontextmanager
import logging

from app.core.config import get_settings

logger = logging.getLogger(__name__)

# Obtener la instancia de configuración
settings_instance = get_settings()

db_url_async = settings_instance.SQLALCHEMY_DATABASE_URI

# Ocultar credenciales en el log
display_url = str(db_url_async)
if '@' in display_url:
    scheme = display_url.split('://')[0]
    host_info = display_url.split('@')[1]
    display_url = f"{scheme}://***@{host_info}"

logger.info(f"URL FINAL utilizada para crear el engine async: {display_url}")


def _engine_kwargs(url: str) -> dict:
    """Opciones del engine según el driver. SQLite no acepta parámetros de pool."""
    if url.startswith("postgresql+asyncpg://"):
        return {
            "pool_pre_ping": False,  # asyncpg usa su propio health check
            "pool_size": 20,
            "max_overflow": 40,
            "pool_timeout": 30,
            "pool_recycle": 280,
            "connect_args": {
                # Deshabilitar prepared statements para pgbouncer
                "statement_cache_size": 0,
                "server_settings": {
                    "application_name": "gym_checkin_async",
                    "statement_timeout": "30000"
                }
            },
        }
    return {}


try:
    async_engine = create_async_engine(
        str(db_url_async),
        echo=False,
        **_engine_kwargs(str(db_url_async))
    )
    logger.info(f"✅ Async engine creado correctamente: {display_url}")

except Exception as e:
    logger.critical(f"❌ FALLO CRÍTICO AL CREAR ASYNC ENGINE: {e}", exc_info=True)
    async_engine = None

# Async session maker
AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False
) if async_engine else None


# ==========================================
# DEPENDENCIAS
# ==========================================

async def get_async_db():
    """
    Dependencia async para obtener sesión de base de datos.

    Uso en endpoints:
        @router.get("/endpoint")
        async def my_endpoint(db: AsyncSession = Depends(get_async_db)):
            result = await db.execute(select(Member))
    """
    if AsyncSessionLocal is None:
        raise RuntimeError("AsyncSessionLocal no inicializado")

    async with AsyncSessionLocal() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            logger.error(f"Error SQLAlchemy en sesión async: {e}", exc_info=True)
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def get_async_db_for_jobs():
    """
    Context manager async para background jobs (ej: evaluación de badges).

    ⚠️ SOLO para tareas en background. Para endpoints FastAPI usar get_async_db() con Depends().
    Cada job obtiene su propia sesión: nunca comparte estado con la sesión del request.

    Uso:
        async with get_async_db_for_jobs() as db:
            result = await db.execute(select(Member))
    """
    if AsyncSessionLocal is None:
        raise RuntimeError("AsyncSessionLocal no inicializado")

    async with AsyncSessionLocal() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            logger.error(f"Error SQLAlchemy en background job async DB: {e}", exc_info=True)
            await session.rollback()
            raise
        finally:
            # Cerrar sesión para devolver conexión al pool
            await session.close()
            logger.debug("Sesión async DB cerrada correctamente en background job")
