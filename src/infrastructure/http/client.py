from __future__ import annotations

import ssl

import aiohttp
import certifi

from shared.constants import DOWNLOAD_CONCURRENCY, HTTP_USER_AGENT


def make_ssl_context() -> ssl.SSLContext:
    # Сертификаты из certifi: системное хранилище бывает неполным
    return ssl.create_default_context(cafile=certifi.where())


def make_http_session(
    *,
    user_agent: str = HTTP_USER_AGENT,
    limit: int = DOWNLOAD_CONCURRENCY,
) -> aiohttp.ClientSession:
    """
    Создаёт HTTP-сессию для загрузки тайлов.

    Без кэширования ответов: каждый экспорт загружает тайлы заново.
    Должна создаваться внутри работающего event loop.
    """
    connector = aiohttp.TCPConnector(ssl=make_ssl_context(), limit=max(1, limit))
    return aiohttp.ClientSession(
        connector=connector,
        headers={'User-Agent': user_agent},
    )
