"""Flask configuration for the Efficio accounts service."""

import os

#################### Storage ####################
REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = os.environ.get('REDIS_PORT', '6379')
REDIS_DATABASE = os.environ.get('REDIS_DATABASE', '0')
REDIS_PASSWORD = os.environ.get('REDIS_PASSWORD', None)

REDIS_FAKE = bool(int(os.environ.get('REDIS_FAKE', '0')))
"""Use the FakeRedis library instead of a redis service.

Useful for testing and development. All requests served by one application
instance share the same in-process fake server."""

#################### Accounts ####################
ACCOUNT_ID_STRATEGY = os.environ.get('ACCOUNT_ID_STRATEGY', 'obfuscated')
"""How account ids are derived from the account counter.

``obfuscated`` passes the counter value through the identifier hasher;
``sequential`` exposes the counter as-is. Pick one per deployment and never
change it while accounts exist."""

SESSION_DURATION = os.environ.get('SESSION_DURATION', '0')
"""Lifetime of a session mapping in seconds. ``0`` disables expiry."""

SESSION_TOKEN_HEADER = os.environ.get('SESSION_TOKEN_HEADER', 'session_token')
"""Request header carrying the opaque session token."""

#################### Hashing ####################
HASH_WORKERS = os.environ.get('HASH_WORKERS', '4')
"""Threads dedicated to the memory-hard hash."""

HASH_MAX_PENDING = os.environ.get('HASH_MAX_PENDING', '32')
"""Maximum number of hash jobs queued or running at once."""

HASH_QUEUE_TIMEOUT = os.environ.get('HASH_QUEUE_TIMEOUT', '5')
"""Seconds to wait for a free slot before failing with an internal error."""

#################### Operations ####################
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

ALLOW_DATA_RESET = bool(int(os.environ.get('ALLOW_DATA_RESET', '0')))
"""Enables the ``reset-data`` maintenance command. Never set in production."""
