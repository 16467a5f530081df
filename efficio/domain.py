"""Defines the core data structures for the Efficio accounts service."""

from enum import IntEnum
from typing import NamedTuple, NewType, Optional

AccountId = NewType('AccountId', str)
SessionToken = NewType('SessionToken', str)
StoreId = NewType('StoreId', str)
AisleId = NewType('AisleId', str)
ProductId = NewType('ProductId', str)


class Secret(object):
    """
    Holds a raw credential (password or email) in a wipeable buffer.

    Python strings are immutable and may be interned or copied by the
    interpreter, so wiping cannot be guaranteed for every copy that ever
    existed. What this class does guarantee is that the copy it owns is
    overwritten as soon as :meth:`wipe` is called, when used as a context
    manager, or when the holder is collected.

    .. code-block:: python

       with Secret(form.password.data) as password:
           digest = hash_secret(password.reveal(), salt)

    """

    __slots__ = ('_buffer',)

    def __init__(self, value: str) -> None:
        self._buffer = bytearray(value.encode('utf-8'))

    def reveal(self) -> bytes:
        """Get the raw value. Keep the returned bytes no longer than needed."""
        return bytes(self._buffer)

    def wipe(self) -> None:
        """Overwrite the buffer with zeros and truncate it."""
        for i in range(len(self._buffer)):
            self._buffer[i] = 0
        del self._buffer[:]

    @property
    def wiped(self) -> bool:
        return len(self._buffer) == 0

    def __enter__(self) -> 'Secret':
        return self

    def __exit__(self, *args: object) -> None:
        self.wipe()

    def __del__(self) -> None:
        if hasattr(self, '_buffer'):
            self.wipe()

    def __repr__(self) -> str:
        return 'Secret(****)'


class Registration(NamedTuple):
    """Represents a request to register a new account."""

    username: str
    password: Secret
    email: Secret

    def wipe(self) -> None:
        """Wipe both secrets."""
        self.password.wipe()
        self.email.wipe()


class Credentials(NamedTuple):
    """Username and password submitted at login."""

    username: str
    password: Secret


class Unit(IntEnum):
    """Unit in which a product quantity is expressed."""

    UNIT = 0
    GRAM = 1
    ML = 2

    @classmethod
    def from_value(cls, value: Optional[int]) -> 'Unit':
        """Unknown values fall back to :attr:`UNIT`."""
        try:
            return cls(int(value))  # type: ignore
        except (TypeError, ValueError):
            return cls.UNIT


class StoreSummary(NamedTuple):
    """A store as listed for its owner."""

    store_id: StoreId
    name: str
