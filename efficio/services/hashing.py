"""
Memory-hard hashing of secrets and identifiers.

The hash is argon2i with a fixed cost, rendered as lowercase hex. It is
deliberately slow: it protects stored passwords and emails, and it also turns
sequential account numbers into unguessable identifiers (see
:mod:`efficio.services.ids`).

Hashing is CPU-bound and blocks for several milliseconds. Callers serving
requests run it on a :class:`HashPool` so that the number of concurrent hash
jobs is bounded independently of the number of request threads.
"""

import atexit
import logging
import secrets
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw
from flask import Flask, current_app, has_app_context

from ..exceptions import InternalError

logger = logging.getLogger(__name__)

TIME_COST = 3
MEMORY_COST = 4096     # KiB
PARALLELISM = 1
HASH_LEN = 32
SALT_BYTES = 16

Hasher = Callable[[bytes, bytes], str]

_POOL = 'efficio.hash_pool'


def hash_secret(data: bytes, salt: bytes) -> str:
    """
    Hash ``data`` with ``salt``.

    Parameters
    ----------
    data : bytes
    salt : bytes
        At least 8 bytes.

    Returns
    -------
    str
        64 lowercase hex characters.
    """
    try:
        digest = hash_secret_raw(data, salt, time_cost=TIME_COST,
                                 memory_cost=MEMORY_COST,
                                 parallelism=PARALLELISM, hash_len=HASH_LEN,
                                 type=Type.I)
    except HashingError as e:
        raise InternalError(f'Hashing failed: {e}') from e
    return digest.hex()


def generate_salt() -> str:
    """Generate a random salt as 32 lowercase hex characters."""
    return secrets.token_hex(SALT_BYTES)


class HashPool(object):
    """
    Runs :func:`hash_secret` on a bounded set of worker threads.

    At most ``max_pending`` jobs may be queued or running. A caller that
    cannot get a slot within ``timeout`` seconds fails with
    :class:`.InternalError` rather than piling up behind other requests.
    """

    def __init__(self, workers: int = 4, max_pending: int = 32,
                 timeout: float = 5.0,
                 hash_func: Hasher = hash_secret) -> None:
        self._executor = ThreadPoolExecutor(max_workers=workers,
                                            thread_name_prefix='efficio-hash')
        self._slots = threading.BoundedSemaphore(max(max_pending, workers))
        self._timeout = timeout
        self._hash_func = hash_func

    def hash(self, data: bytes, salt: bytes) -> str:
        """Hash on a worker thread and wait for the result."""
        if not self._slots.acquire(timeout=self._timeout):
            logger.error('Hash pool exhausted')
            raise InternalError('Hashing pool exhausted')
        try:
            return self._executor.submit(self._hash_func, data, salt).result()
        finally:
            self._slots.release()

    def shutdown(self) -> None:
        """Wait for running jobs and stop the workers."""
        self._executor.shutdown(wait=True)


def init_app(app: Flask) -> None:
    """Create the hash pool for an application instance."""
    app.config.setdefault('HASH_WORKERS', '4')
    app.config.setdefault('HASH_MAX_PENDING', '32')
    app.config.setdefault('HASH_QUEUE_TIMEOUT', '5')
    pool = HashPool(
        workers=int(app.config['HASH_WORKERS']),
        max_pending=int(app.config['HASH_MAX_PENDING']),
        timeout=float(app.config['HASH_QUEUE_TIMEOUT'])
    )
    atexit.register(pool.shutdown)
    app.extensions[_POOL] = pool


def current_hasher(app: Optional[Flask] = None) -> Hasher:
    """Get the pooled hasher of the app, or the inline hasher outside one."""
    if app is None and has_app_context():
        app = current_app._get_current_object()     # type: ignore
    if app is not None and _POOL in app.extensions:
        pool: HashPool = app.extensions[_POOL]
        return pool.hash
    return hash_secret
