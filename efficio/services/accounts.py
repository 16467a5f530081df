"""
Account lifecycle: registration, login, logout, token re-issue, deletion.

After login the session token is the only credential. Every authenticated
operation resolves it to an account id first and fails with
:class:`.Unauthorized` if it cannot.
"""

import logging
from functools import wraps
from typing import Optional, Tuple

import redis
from flask import Flask

from ..context import get_application_config, get_application_global
from ..domain import AccountId, Credentials, Registration, SessionToken
from ..exceptions import InvalidCredentials
from . import datastore, hashing
from .credentials import CredentialStore
from .hashing import Hasher
from .ids import STRATEGY_NAMES, strategy_for
from .resources import ResourceStore
from .sessions import SessionStore
from .usernames import UsernameIndex

logger = logging.getLogger(__name__)


class AccountService(object):
    """Composes the credential, session and resource stores."""

    def __init__(self, credentials: CredentialStore, sessions: SessionStore,
                 resources: ResourceStore) -> None:
        self.credentials = credentials
        self.sessions = sessions
        self.resources = resources

    @classmethod
    def from_connection(cls, r: redis.Redis, strategy: str = 'obfuscated',
                        session_duration: int = 0,
                        hasher: Hasher = hashing.hash_secret) \
            -> 'AccountService':
        """Wire up every store on one connection."""
        sessions = SessionStore(r, duration=session_duration)
        credentials = CredentialStore(r, strategy_for(strategy, r, hasher),
                                      UsernameIndex(r), sessions, hasher)
        return cls(credentials, sessions, ResourceStore(r))

    def register(self, registration: Registration) -> SessionToken:
        """Create an account; returns its first session token."""
        return self.credentials.register(registration)

    def login(self, credentials: Credentials) \
            -> Tuple[SessionToken, AccountId]:
        """Verify credentials and (re)activate the account's session."""
        token, account_id = self.credentials.verify(credentials)
        self.sessions.store(token, account_id)
        # The account may have been deleted since it was verified.
        if not self.credentials.exists(account_id):
            self.sessions.revoke(token)
            raise InvalidCredentials('Invalid username or password')
        logger.debug('Login for account %s', account_id)
        return token, account_id

    def logout(self, token: Optional[str]) -> None:
        self.sessions.resolve(token)
        self.sessions.revoke(token)     # type: ignore

    def authenticate(self, token: Optional[str]) -> AccountId:
        """Resolve a session token to the account it belongs to."""
        return self.sessions.resolve(token)

    def reissue(self, token: Optional[str]) -> SessionToken:
        """Revoke every session of the account and issue a new token."""
        account_id = self.sessions.resolve(token)
        previous = self.credentials.current_token(account_id)
        self.sessions.revoke_all(account_id, also=(previous, token))
        new_token = self.credentials.reissue_session(account_id)
        self.sessions.store(new_token, account_id)
        return new_token

    def delete_account(self, token: Optional[str]) -> None:
        """
        Delete the account, its owned resources and all its sessions.

        The record goes before the sessions: a concurrent login either maps
        its token before the sessions are revoked, or finds the record gone
        once it has mapped it.
        """
        account_id = self.sessions.resolve(token)
        self.resources.delete_all_resources_for_account(account_id)
        current = self.credentials.current_token(account_id)
        self.credentials.delete(account_id)
        self.sessions.revoke_all(account_id, also=(current, token))


def init_app(app: Flask) -> None:
    """Set default configuration parameters for an application instance."""
    app.config.setdefault('ACCOUNT_ID_STRATEGY', 'obfuscated')
    app.config.setdefault('SESSION_DURATION', '0')
    if app.config['ACCOUNT_ID_STRATEGY'] not in STRATEGY_NAMES:
        raise ValueError('Unknown account id strategy: '
                         f'{app.config["ACCOUNT_ID_STRATEGY"]}')
    datastore.init_app(app)
    hashing.init_app(app)


def get_account_service(app: Optional[Flask] = None,
                        r: Optional[redis.Redis] = None) -> AccountService:
    """Get a new service, on a new connection unless ``r`` is given."""
    config = get_application_config(app)
    return AccountService.from_connection(
        r if r is not None else datastore.get_connection(app),
        strategy=config.get('ACCOUNT_ID_STRATEGY', 'obfuscated'),
        session_duration=int(config.get('SESSION_DURATION', '0')),
        hasher=hashing.current_hasher(app)
    )


def current_service() -> AccountService:
    """Get/create :class:`.AccountService` for this context."""
    g = get_application_global()
    if not g:
        return get_account_service()
    if 'accounts' not in g:
        g.accounts = get_account_service(r=datastore.current_connection())
    return g.accounts   # type: ignore


@wraps(AccountService.register)
def register(registration: Registration) -> SessionToken:
    """Create an account; returns its first session token."""
    return current_service().register(registration)


@wraps(AccountService.login)
def login(credentials: Credentials) -> Tuple[SessionToken, AccountId]:
    """Verify credentials and (re)activate the account's session."""
    return current_service().login(credentials)


@wraps(AccountService.logout)
def logout(token: Optional[str]) -> None:
    """Revoke the session identified by ``token``."""
    return current_service().logout(token)


@wraps(AccountService.authenticate)
def authenticate(token: Optional[str]) -> AccountId:
    """Resolve a session token to the account it belongs to."""
    return current_service().authenticate(token)


@wraps(AccountService.reissue)
def reissue(token: Optional[str]) -> SessionToken:
    """Revoke every session of the account and issue a new token."""
    return current_service().reissue(token)


@wraps(AccountService.delete_account)
def delete_account(token: Optional[str]) -> None:
    """Delete the account, its owned resources and all its sessions."""
    return current_service().delete_account(token)
