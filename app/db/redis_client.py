"""
Cliente Redis con Connection Pooling (async).

Redis solo se usa como caché de lectura (progreso del miembro, leaderboard).
Si Redis no está disponible, las dependencias entregan None y los servicios
trabajan directamente contra la base de datos: el check-in nunca depende de Redis.

Configuración ajustable mediante variables de entorno:
- REDIS_POOL_MAX_CONNECTIONS: Número máximo de conexiones en el pool
- REDIS_POOL_SOCKET_TIMEOUT: Timeout para operaciones de socket
- REDIS_POOL_HEALTH_CHECK_INTERVAL: Intervalo para verificar salud de conexiones
- REDIS_POOL_RETRY_ON_TIMEOUT: Si se debe reintentar automáticamente en timeout
- REDIS_POOL_SOCKET_KEEPALIVE: Si se debe mantener la conexión TCP viva

Para usar en endpoints:
```python
@router.get("/gyms/{gym_id}/leaderboard")
async def leaderboard(gym_id: int, redis: Optional[Redis] = Depends(get_redis_client)):
    ...
```
"""

from redis.asyncio import ConnectionPool, Redis
from app.core.config import get_settings
import logging
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)

# Declaración global del pool de conexiones
REDIS_POOL = None

async def initialize_redis_pool():
    """
    Inicializa el pool de conexiones a Redis.
    Debe llamarse una sola vez al iniciar la aplicación.
    """
    global REDIS_POOL
    if REDIS_POOL is None:
        settings = get_settings()
        redis_url = (settings.REDIS_URL or "").strip()

        if not redis_url:
            logger.error("La URL de Redis está vacía. No se puede inicializar el pool.")
            raise ValueError("La URL de Redis está vacía.")

        try:
            logger.info("Inicializando connection pool para Redis...")
            REDIS_POOL = ConnectionPool.from_url(
                redis_url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=settings.REDIS_POOL_MAX_CONNECTIONS,
                socket_keepalive=settings.REDIS_POOL_SOCKET_KEEPALIVE,
                socket_timeout=settings.REDIS_POOL_SOCKET_TIMEOUT,
                health_check_interval=settings.REDIS_POOL_HEALTH_CHECK_INTERVAL,
                retry_on_timeout=settings.REDIS_POOL_RETRY_ON_TIMEOUT
            )
            logger.info(f"Connection pool de Redis inicializado (max_connections={settings.REDIS_POOL_MAX_CONNECTIONS}).")
        except Exception as e:
            logger.error(f"Error al inicializar connection pool de Redis: {e}", exc_info=True)
            REDIS_POOL = None
            raise

async def get_redis_client():
    """
    Dependencia FastAPI que entrega un cliente Redis por request usando el pool compartido.

    Entrega None si el pool no se pudo inicializar: la caché es opcional.
    """
    if REDIS_POOL is None:
        try:
            await initialize_redis_pool()
        except Exception:
            logger.warning("Redis no disponible, se continúa sin caché")

    if REDIS_POOL is None:
        yield None
        return

    # Cliente NUEVO por request, el pool se reutiliza
    client = Redis(connection_pool=REDIS_POOL)
    try:
        yield client
    finally:
        # Cerrar cliente para devolver conexión al pool
        try:
            await client.aclose()
        except Exception as e:
            logger.warning(f"Error cerrando cliente Redis: {e}")


async def close_redis_client():
    """
    Cierra el pool de conexiones Redis al finalizar la aplicación.
    """
    global REDIS_POOL

    if REDIS_POOL:
        logger.info("Cerrando connection pool de Redis...")
        await REDIS_POOL.disconnect()
        REDIS_POOL = None
        logger.info("Connection pool de Redis cerrado.")


@asynccontextmanager
async def get_redis_for_jobs():
    """
    Context manager para obtener cliente Redis en background jobs.

    ⚠️ SOLO para background jobs. Para endpoints FastAPI usar get_redis_client() con Depends().
    Igual que la dependencia, entrega None si Redis no está disponible.

    Uso:
        async with get_redis_for_jobs() as redis:
            if redis:
                await redis.delete("key")
    """
    if REDIS_POOL is None:
        try:
            await initialize_redis_pool()
        except Exception:
            logger.warning("Redis no disponible para background job, se continúa sin caché")

    if REDIS_POOL is None:
        yield None
        return

    client = Redis(connection_pool=REDIS_POOL)
    try:
        yield client
    finally:
        # Devolver conexión al pool
        try:
            await client.aclose()
            logger.debug("Cliente Redis cerrado correctamente en background job")
        except Exception as e:
            logger.warning(f"Error cerrando cliente Redis en background job: {e}")
