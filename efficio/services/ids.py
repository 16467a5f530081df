"""
Identifier allocation for accounts and owned resources.

Accounts are numbered by an atomic counter in the store. Depending on the
deployment the counter value is exposed directly (:class:`SequentialStrategy`)
or passed through :class:`IdentifierHasher` (:class:`ObfuscatedStrategy`),
which hashes it with a salt that is created once and shared through the store
by every service instance. Hashing with the memory-hard password hash makes
the obfuscated ids slow to produce; that cost is accepted in exchange for ids
that reveal neither the number nor the order of accounts.

Stores, aisles and products need no ordering at all and get random UUIDs.
"""

import logging
import re
import uuid
from typing import Callable

import redis

from ..domain import AccountId, AisleId, ProductId, StoreId
from ..exceptions import InternalError
from .hashing import Hasher, generate_salt, hash_secret

logger = logging.getLogger(__name__)

NEXT_USER_ID = 'next_user_id'
USER_ID_SALT = 'user_id_salt'

_HASHED_ID = re.compile(r'^[0-9a-f]{64}$')


def parse_account_id(value: str) -> AccountId:
    """Parse a hashed value into an :class:`AccountId`."""
    if not _HASHED_ID.match(value):
        raise InternalError('Creation of hashed id failed')
    return AccountId(value)


class IdentifierHasher(object):
    """Turns an atomic counter into opaque identifiers."""

    def __init__(self, r: redis.Redis, hasher: Hasher = hash_secret,
                 salt_factory: Callable[[], str] = generate_salt) -> None:
        self.r = r
        self._hasher = hasher
        self._salt_factory = salt_factory

    def get_or_create_salt(self, salt_key: str) -> str:
        """
        Get the salt stored at ``salt_key``, creating it if absent.

        Concurrent first callers may each generate a candidate; only the
        first ``SET NX`` lands, and every caller re-reads the key afterwards
        so all of them hash with the same salt.
        """
        salt = self.r.get(salt_key)
        if salt is None:
            if self.r.set(salt_key, self._salt_factory(), nx=True):
                logger.info('Created identifier salt at %s', salt_key)
            salt = self.r.get(salt_key)
        if salt is None:
            raise InternalError(f'Salt {salt_key} vanished after creation')
        return str(salt)

    def next_id(self, counter_key: str, salt_key: str) -> AccountId:
        """
        Allocate the next opaque identifier.

        Parameters
        ----------
        counter_key : str
            Counter incremented atomically; the first call yields 1.
        salt_key : str
            Key of the salt mixed into the hash.

        Returns
        -------
        :class:`AccountId`
        """
        try:
            counter = int(self.r.incr(counter_key))
            salt = self.get_or_create_salt(salt_key)
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to allocate id: {e}') from e
        return parse_account_id(self.hash_value(counter, salt))

    def hash_value(self, counter: int, salt: str) -> str:
        """Hash a counter value; pure function of ``(counter, salt)``."""
        return self._hasher(str(counter).encode('ascii'),
                            salt.encode('ascii'))


class IdentifierStrategy(object):
    """Allocates account ids. One strategy per deployment."""

    name = ''

    def next_account_id(self) -> AccountId:
        raise NotImplementedError('Implemented in a child class')


class SequentialStrategy(IdentifierStrategy):
    """Exposes the raw counter value."""

    name = 'sequential'

    def __init__(self, r: redis.Redis) -> None:
        self.r = r

    def next_account_id(self) -> AccountId:
        try:
            return AccountId(str(int(self.r.incr(NEXT_USER_ID))))
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to allocate id: {e}') from e


class ObfuscatedStrategy(IdentifierStrategy):
    """Passes the counter value through :class:`IdentifierHasher`."""

    name = 'obfuscated'

    def __init__(self, r: redis.Redis, hasher: Hasher = hash_secret) -> None:
        self.id_hasher = IdentifierHasher(r, hasher)

    def next_account_id(self) -> AccountId:
        return self.id_hasher.next_id(NEXT_USER_ID, USER_ID_SALT)


STRATEGY_NAMES = (SequentialStrategy.name, ObfuscatedStrategy.name)


def strategy_for(name: str, r: redis.Redis,
                 hasher: Hasher = hash_secret) -> IdentifierStrategy:
    """Build the strategy configured as ``ACCOUNT_ID_STRATEGY``."""
    if name == SequentialStrategy.name:
        return SequentialStrategy(r)
    if name == ObfuscatedStrategy.name:
        return ObfuscatedStrategy(r, hasher)
    raise ValueError(f'Unknown account id strategy: {name}')


def _new_uuid() -> str:
    return str(uuid.uuid4())


def new_store_id() -> StoreId:
    return StoreId(_new_uuid())


def new_aisle_id() -> AisleId:
    return AisleId(_new_uuid())


def new_product_id() -> ProductId:
    return ProductId(_new_uuid())
