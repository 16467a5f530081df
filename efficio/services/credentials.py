"""
Credential store: the account record.

An account lives in a hash at ``user:<account_id>`` holding the username as
given, the salted hashes of the password and the email with their salts, and
the current session token. Raw passwords and emails are never written; the
:class:`.Secret` holders carrying them are wiped before any method returns.

Uniqueness of usernames is settled by a conditional insert into the
:class:`.UsernameIndex`. The early existence check only spares the cost of
hashing for names that are obviously taken. The account record is always
written before the index entry, so the index never points at a missing
record; a registration that loses the insert race removes the record it wrote
and fails with :class:`.UsernameTaken`.

Registration spans several writes and is not transactional. If the store
fails between the record write and the index insert, the record is left
orphaned: it cannot be logged into because the index is canonical, and is
left for an out-of-band sweep.
"""

import hmac
import logging
from typing import Optional, Tuple

import redis

from ..domain import AccountId, Credentials, Registration, SessionToken
from ..exceptions import InternalError, InvalidCredentials, Unauthorized, \
    UsernameTaken
from .hashing import Hasher, generate_salt, hash_secret
from .ids import IdentifierStrategy
from .sessions import SessionStore, generate_token
from .usernames import UsernameIndex, normalize_username

logger = logging.getLogger(__name__)

USER_NAME = 'username'
USER_PWD = 'password_hash'
USER_SALT_P = 'password_salt'
USER_MAIL = 'email_hash'
USER_SALT_M = 'email_salt'
USER_AUTH = 'session_token'


def user_key(account_id: str) -> str:
    return f'user:{account_id}'


class CredentialStore(object):
    """Creates, verifies and deletes account records."""

    def __init__(self, r: redis.Redis, ids: IdentifierStrategy,
                 usernames: UsernameIndex, sessions: SessionStore,
                 hasher: Hasher = hash_secret) -> None:
        self.r = r
        self.ids = ids
        self.usernames = usernames
        self.sessions = sessions
        self._hash = hasher

    def register(self, registration: Registration) -> SessionToken:
        """
        Create an account and its first session.

        Parameters
        ----------
        registration : :class:`.Registration`
            Its secrets are wiped on return, successful or not.

        Returns
        -------
        :class:`.SessionToken`

        Raises
        ------
        :class:`.UsernameTaken`
        :class:`.InternalError`
        """
        try:
            norm_username = normalize_username(registration.username)
            if self.usernames.exists(norm_username):
                raise UsernameTaken(
                    f'Username {registration.username} is not available.'
                )
            token = generate_token()
            salt_pwd = generate_salt()
            salt_mail = generate_salt()
            hashed_pwd = self._hash(registration.password.reveal(),
                                    salt_pwd.encode('ascii'))
            hashed_mail = self._hash(registration.email.reveal(),
                                     salt_mail.encode('ascii'))
        finally:
            registration.wipe()

        account_id = self.ids.next_account_id()
        key = user_key(account_id)
        try:
            self.r.hset(key, mapping={
                USER_NAME: registration.username,
                USER_PWD: hashed_pwd,
                USER_SALT_P: salt_pwd,
                USER_MAIL: hashed_mail,
                USER_SALT_M: salt_mail,
                USER_AUTH: token,
            })
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to write account: {e}') from e

        if not self.usernames.insert(norm_username, account_id):
            logger.debug('Lost registration race for %s', norm_username)
            try:
                self.r.delete(key)
            except redis.exceptions.RedisError as e:
                raise InternalError(f'Failed to discard account: {e}') from e
            raise UsernameTaken(
                f'Username {registration.username} is not available.'
            )

        self.sessions.store(token, account_id)
        logger.info('Registered account %s', account_id)
        return token

    def verify(self, credentials: Credentials) \
            -> Tuple[SessionToken, AccountId]:
        """
        Check a username and password.

        Unknown usernames and wrong passwords fail identically.

        Returns
        -------
        :class:`.SessionToken`
            The token currently held in the account record.
        :class:`.AccountId`

        Raises
        ------
        :class:`.InvalidCredentials`
        :class:`.InternalError`
        """
        try:
            account_id = self.usernames.get(credentials.username)
            if account_id is None:
                raise InvalidCredentials('Invalid username or password')
            try:
                salt_pwd, stored_pwd, token = self.r.hmget(
                    user_key(account_id), [USER_SALT_P, USER_PWD, USER_AUTH]
                )
            except redis.exceptions.RedisError as e:
                raise InternalError(f'Failed to read account: {e}') from e
            if salt_pwd is None or stored_pwd is None or token is None:
                logger.warning('Username index points at incomplete '
                               'account %s', account_id)
                raise InvalidCredentials('Invalid username or password')
            hashed_pwd = self._hash(credentials.password.reveal(),
                                    salt_pwd.encode('ascii'))
        finally:
            credentials.password.wipe()

        if not hmac.compare_digest(hashed_pwd, stored_pwd):
            raise InvalidCredentials('Invalid username or password')
        return SessionToken(token), account_id

    def exists(self, account_id: AccountId) -> bool:
        try:
            return bool(self.r.exists(user_key(account_id)))
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to read account: {e}') from e

    def current_token(self, account_id: AccountId) -> Optional[SessionToken]:
        """Get the token held in the account record, if any."""
        try:
            token = self.r.hget(user_key(account_id), USER_AUTH)
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to read account: {e}') from e
        return SessionToken(token) if token is not None else None

    def reissue_session(self, account_id: AccountId) -> SessionToken:
        """
        Replace the token held in the account record.

        Sessions mapped to the previous token are left as they are; revoking
        them is up to the caller.
        """
        key = user_key(account_id)
        token = generate_token()
        try:
            if not self.r.exists(key):
                raise Unauthorized('Account no longer exists')
            self.r.hset(key, USER_AUTH, token)
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to write account: {e}') from e
        return token

    def delete(self, account_id: AccountId) -> None:
        """
        Delete the account record and its username index entry.

        Sessions and owned resources must be removed by the caller first.
        """
        key = user_key(account_id)
        try:
            username = self.r.hget(key, USER_NAME)
            pipe = self.r.pipeline(transaction=True)
            if username is not None:
                self.usernames.remove(username, pipe=pipe)
            pipe.delete(key)
            pipe.execute()
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to delete account: {e}') from e
        logger.info('Deleted account %s', account_id)
