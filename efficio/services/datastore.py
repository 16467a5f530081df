"""
Connection to the key-value store backing every account service.

The store is the single source of truth and the concurrency arbiter: the
services rely on it for atomic ``INCR``, ``SET NX``, ``HSETNX`` and
``MULTI/EXEC`` pipelines, and keep no authoritative state in process.
"""

import logging
from typing import Optional

import fakeredis
import redis
from flask import Flask, current_app, has_app_context

from ..context import get_application_config, get_application_global
from ..exceptions import InternalError

logger = logging.getLogger(__name__)

_FAKE_SERVER = 'efficio.fake_redis_server'


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('REDIS_HOST', 'localhost')
    app.config.setdefault('REDIS_PORT', '6379')
    app.config.setdefault('REDIS_DATABASE', '0')
    app.config.setdefault('REDIS_PASSWORD', None)
    app.config.setdefault('REDIS_FAKE', False)
    if app.config['REDIS_FAKE']:
        # Shared by every request served by this app.
        app.extensions[_FAKE_SERVER] = fakeredis.FakeServer()


def get_connection(app: Optional[Flask] = None) -> redis.Redis:
    """Get a new client for the configured store."""
    config = get_application_config(app)
    if _is_true(config.get('REDIS_FAKE', False)):
        server = app.extensions.get(_FAKE_SERVER) if app is not None else None
        if server is None:
            server = _current_fake_server()
        logger.debug('New FakeRedis connection')
        return fakeredis.FakeRedis(server=server, decode_responses=True)

    host = config.get('REDIS_HOST', 'localhost')
    port = int(config.get('REDIS_PORT', '6379'))
    db = int(config.get('REDIS_DATABASE', '0'))
    password = config.get('REDIS_PASSWORD', None)
    logger.debug('New Redis connection at %s, port %s', host, port)
    return redis.Redis(host=host, port=port, db=db, password=password,
                       decode_responses=True)


def current_connection() -> redis.Redis:
    """Get/create a client for this request context."""
    g = get_application_global()
    if not g:
        return get_connection()
    if 'redis' not in g:
        g.redis = get_connection()
    return g.redis      # type: ignore


def reset_all(r: redis.Redis) -> None:
    """Drop every key in the current database. Maintenance use only."""
    try:
        r.flushdb()
    except redis.exceptions.RedisError as e:
        raise InternalError(f'Failed to reset data: {e}') from e
    logger.warning('All data in the current database was dropped')


def _current_fake_server() -> fakeredis.FakeServer:
    if has_app_context():
        server = current_app.extensions.get(_FAKE_SERVER)
        if server is None:
            server = current_app.extensions[_FAKE_SERVER] \
                = fakeredis.FakeServer()
        return server
    return fakeredis.FakeServer()


def _is_true(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes')
    return bool(value)
