"""
Case-insensitive username index.

This index is the only authority on whether a username is taken. Names are
lower-cased at this boundary, so ``ToTo`` and ``toto`` share one entry.
"""

import logging
from typing import Optional

import redis

from ..domain import AccountId
from ..exceptions import InternalError

logger = logging.getLogger(__name__)

USERS_LIST = 'users'


def normalize_username(username: str) -> str:
    return username.lower()


class UsernameIndex(object):
    """Maps normalized usernames to account ids in a single store hash."""

    def __init__(self, r: redis.Redis, key: str = USERS_LIST) -> None:
        self.r = r
        self.key = key

    def exists(self, username: str) -> bool:
        try:
            return bool(self.r.hexists(self.key, normalize_username(username)))
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to query username: {e}') from e

    def get(self, username: str) -> Optional[AccountId]:
        """Get the account id for ``username``, or None if unknown."""
        try:
            account_id = self.r.hget(self.key, normalize_username(username))
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to query username: {e}') from e
        return AccountId(account_id) if account_id is not None else None

    def insert(self, username: str, account_id: AccountId) -> bool:
        """
        Claim ``username`` for ``account_id``.

        Returns
        -------
        bool
            False if the name was already claimed; the index is not changed
            in that case.
        """
        try:
            return bool(self.r.hsetnx(self.key, normalize_username(username),
                                      account_id))
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to index username: {e}') from e

    def remove(self, username: str,
               pipe: Optional[redis.client.Pipeline] = None) -> None:
        """
        Release ``username``.

        When ``pipe`` is given the removal is only queued on it, so that it
        commits together with the caller's other writes.
        """
        if pipe is not None:
            pipe.hdel(self.key, normalize_username(username))
            return
        try:
            self.r.hdel(self.key, normalize_username(username))
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to remove username: {e}') from e
