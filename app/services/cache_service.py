import json
import logging
from typing import Any, Optional, TypeVar, Type, Callable, Iterable
from datetime import date, datetime

from pydantic import BaseModel
from redis.asyncio import Redis

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)

# Claves de caché usadas por el módulo de asistencia
MEMBER_PROGRESS_KEY = "member_progress:{gym_id}:{member_id}"
LEADERBOARD_KEY = "leaderboard:{gym_id}:{month}"


def json_serializer(obj):
    """Serializador JSON que maneja date/datetime."""
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    raise TypeError(f"Tipo no serializable: {type(obj)}")


class CacheService:
    """
    Servicio genérico para cachear modelos Pydantic usando Redis.
    La caché es best-effort: cualquier fallo de Redis se loguea y se consulta la BD.
    """

    @staticmethod
    async def get_or_set(
        redis_client: Optional[Redis],
        cache_key: str,
        db_fetch_func: Callable,
        model_class: Type[T],
        expiry_seconds: int = 300,  # 5 minutos por defecto
        is_list: bool = False
    ) -> Any:
        """
        Obtiene un objeto de Redis o lo establece si no existe.

        Args:
            redis_client: Cliente Redis a usar (None = sin caché)
            cache_key: Clave única para identificar el objeto en caché
            db_fetch_func: Función async que obtiene los datos de la BD si no están en caché
            model_class: Clase del modelo Pydantic que se debe devolver
            expiry_seconds: Tiempo de expiración en segundos
            is_list: Si es True, se espera/devuelve una lista de objetos

        Returns:
            El objeto o lista de objetos solicitados
        """
        if not redis_client:
            logger.debug("Cliente Redis no disponible, ejecutando consulta sin caché")
            return await db_fetch_func()

        # Intentar obtener del caché
        try:
            cached_data = await redis_client.get(cache_key)
            if cached_data:
                logger.debug(f"Cache hit para clave: {cache_key}")
                try:
                    data = json.loads(cached_data)
                    if is_list:
                        return [model_class.model_validate(item) for item in data]
                    return model_class.model_validate(data)
                except Exception as e:
                    logger.error(f"Error al deserializar datos de caché para clave {cache_key}: {e}", exc_info=True)
                    # Eliminar la clave corrupta y consultar BD
                    await redis_client.delete(cache_key)
        except Exception as e:
            logger.error(f"Error al leer del caché: {str(e)}", exc_info=True)

        logger.debug(f"Cache miss para clave: {cache_key}")
        data = await db_fetch_func()

        # Guardar en caché
        if data is not None:  # Permitir guardar una lista vacía pero no None
            try:
                if is_list:
                    json_data = [item.model_dump() for item in data]
                else:
                    json_data = data.model_dump()
                serialized_data = json.dumps(json_data, default=json_serializer)
                await redis_client.set(cache_key, serialized_data, ex=expiry_seconds)
                logger.debug(f"Datos guardados en caché con clave: {cache_key}, TTL: {expiry_seconds}s")
            except Exception as e:
                logger.error(f"Error al guardar en Redis para {cache_key}: {e}", exc_info=True)

        return data

    @staticmethod
    async def invalidate(redis_client: Optional[Redis], keys: Iterable[str]) -> None:
        """
        Elimina claves de caché. Nunca lanza: un fallo de Redis no debe romper
        la operación que disparó la invalidación.
        """
        if not redis_client:
            return
        keys = list(keys)
        if not keys:
            return
        try:
            await redis_client.delete(*keys)
            logger.debug(f"Caché invalidada: {keys}")
        except Exception as e:
            logger.warning(f"Error invalidando caché {keys}: {e}")


cache_service = CacheService()
