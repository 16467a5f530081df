"""
Session store: maps opaque session tokens to account ids.

Each token lives at ``session:<token>``. A set at ``sessions:<account_id>``
tracks every token mapped to the account so that all of them can be revoked
at once. Writes touching both keys run in one ``MULTI/EXEC`` pipeline.
"""

import logging
import secrets
from typing import Iterable, Optional

import redis

from ..domain import AccountId, SessionToken
from ..exceptions import InternalError, SessionCreationFailed, \
    SessionDeletionFailed, Unauthorized

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def generate_token() -> SessionToken:
    """Generate a random token as 64 lowercase hex characters."""
    return SessionToken(secrets.token_hex(TOKEN_BYTES))


def _session_key(token: str) -> str:
    return f'session:{token}'


def _account_sessions_key(account_id: str) -> str:
    return f'sessions:{account_id}'


def _short(token: str) -> str:
    return f'{token[:8]}...'


class SessionStore(object):
    """
    Creates, resolves and revokes sessions.

    Parameters
    ----------
    r : :class:`redis.Redis`
    duration : int
        Lifetime of a token mapping in seconds; 0 means no expiry.
    """

    def __init__(self, r: redis.Redis, duration: int = 0) -> None:
        self.r = r
        self._duration = duration

    def store(self, token: SessionToken, account_id: AccountId) -> None:
        """Map ``token`` to ``account_id``, replacing any prior mapping."""
        ex = self._duration if self._duration > 0 else None
        try:
            pipe = self.r.pipeline(transaction=True)
            pipe.set(_session_key(token), account_id, ex=ex)
            pipe.sadd(_account_sessions_key(account_id), token)
            pipe.execute()
        except redis.exceptions.ConnectionError as e:
            raise SessionCreationFailed(f'Connection failed: {e}') from e
        except redis.exceptions.RedisError as e:
            raise SessionCreationFailed(f'Failed to create: {e}') from e
        logger.debug('Stored session %s', _short(token))

    def resolve(self, token: Optional[str]) -> AccountId:
        """
        Get the account id the token belongs to.

        Raises
        ------
        :class:`.Unauthorized`
            The token is empty, unknown, revoked or expired.
        """
        if not token:
            raise Unauthorized('Missing session token')
        try:
            account_id = self.r.get(_session_key(token))
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to load session: {e}') from e
        if account_id is None:
            logger.debug('No such session: %s', _short(token))
            raise Unauthorized('Invalid session token')
        return AccountId(account_id)

    def revoke(self, token: str) -> None:
        """Remove one session. Revoking an unknown token is not an error."""
        try:
            account_id = self.r.get(_session_key(token))
            pipe = self.r.pipeline(transaction=True)
            pipe.delete(_session_key(token))
            if account_id is not None:
                pipe.srem(_account_sessions_key(account_id), token)
            pipe.execute()
        except redis.exceptions.ConnectionError as e:
            raise SessionDeletionFailed(f'Connection failed: {e}') from e
        except redis.exceptions.RedisError as e:
            raise SessionDeletionFailed(f'Failed to delete: {e}') from e

    def revoke_all(self, account_id: AccountId,
                   also: Iterable[Optional[str]] = ()) -> None:
        """
        Remove every session of an account.

        Parameters
        ----------
        account_id : :class:`AccountId`
        also : iterable
            Extra tokens known to belong to the account (e.g. the one in its
            record) that are revoked even if missing from the index.
        """
        key = _account_sessions_key(account_id)
        try:
            tokens = set(self.r.smembers(key))
            tokens.update(t for t in also if t)
            pipe = self.r.pipeline(transaction=True)
            for token in tokens:
                pipe.delete(_session_key(token))
            pipe.delete(key)
            pipe.execute()
        except redis.exceptions.ConnectionError as e:
            raise SessionDeletionFailed(f'Connection failed: {e}') from e
        except redis.exceptions.RedisError as e:
            raise SessionDeletionFailed(f'Failed to delete: {e}') from e
        logger.debug('Revoked %i sessions', len(tokens))
