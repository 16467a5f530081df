"""
Account-owned resources: stores, their aisles, and the aisles' products.

Only what account deletion needs is provided here: creation, listing, and a
cascading delete of everything an account owns. Every call is scoped by the
account id resolved from the session token.
"""

import logging
from typing import List

import redis

from ..domain import AccountId, AisleId, ProductId, StoreId, StoreSummary, \
    Unit
from ..exceptions import InternalError, PermissionDenied
from .ids import new_aisle_id, new_product_id, new_store_id

logger = logging.getLogger(__name__)


def _stores_key(account_id: str) -> str:
    return f'stores:{account_id}'


def _store_key(store_id: str) -> str:
    return f'store:{store_id}'


def _aisles_key(store_id: str) -> str:
    return f'store:{store_id}:aisles'


def _aisle_key(aisle_id: str) -> str:
    return f'aisle:{aisle_id}'


def _products_key(aisle_id: str) -> str:
    return f'aisle:{aisle_id}:products'


def _product_key(product_id: str) -> str:
    return f'product:{product_id}'


class ResourceStore(object):
    """Stores, aisles and products of each account."""

    def __init__(self, r: redis.Redis) -> None:
        self.r = r

    def create_store(self, account_id: AccountId, name: str) -> StoreId:
        store_id = new_store_id()
        try:
            pipe = self.r.pipeline(transaction=True)
            pipe.hset(_store_key(store_id),
                      mapping={'name': name, 'owner': account_id})
            pipe.sadd(_stores_key(account_id), store_id)
            pipe.execute()
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to create store: {e}') from e
        return store_id

    def list_stores(self, account_id: AccountId) -> List[StoreSummary]:
        """List the stores of an account, sorted by name."""
        try:
            store_ids = sorted(self.r.smembers(_stores_key(account_id)))
            pipe = self.r.pipeline(transaction=False)
            for store_id in store_ids:
                pipe.hget(_store_key(store_id), 'name')
            names = pipe.execute()
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to list stores: {e}') from e
        stores = [StoreSummary(StoreId(store_id), name)
                  for store_id, name in zip(store_ids, names)
                  if name is not None]
        return sorted(stores, key=lambda store: store.name)

    def add_aisle(self, account_id: AccountId, store_id: StoreId, name: str,
                  sort_weight: float = 0.0) -> AisleId:
        try:
            self._check_store_owner(account_id, store_id)
            aisle_id = new_aisle_id()
            pipe = self.r.pipeline(transaction=True)
            pipe.hset(_aisle_key(aisle_id), mapping={
                'name': name,
                'store_id': store_id,
                'sort_weight': sort_weight,
            })
            pipe.sadd(_aisles_key(store_id), aisle_id)
            pipe.execute()
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to create aisle: {e}') from e
        return aisle_id

    def add_product(self, account_id: AccountId, aisle_id: AisleId,
                    name: str, quantity: int = 1,
                    unit: Unit = Unit.UNIT) -> ProductId:
        try:
            store_id = self.r.hget(_aisle_key(aisle_id), 'store_id')
            if store_id is None:
                raise PermissionDenied('No such aisle')
            self._check_store_owner(account_id, StoreId(store_id))
            product_id = new_product_id()
            pipe = self.r.pipeline(transaction=True)
            pipe.hset(_product_key(product_id), mapping={
                'name': name,
                'quantity': quantity,
                'unit': int(unit),
                'is_done': 0,
                'sort_weight': 0.0,
                'aisle_id': aisle_id,
            })
            pipe.sadd(_products_key(aisle_id), product_id)
            pipe.execute()
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to create product: {e}') from e
        return product_id

    def delete_all_resources_for_account(self, account_id: AccountId) -> None:
        """Delete every store of the account with its aisles and products."""
        try:
            keys = [_stores_key(account_id)]
            for store_id in self.r.smembers(_stores_key(account_id)):
                keys += [_store_key(store_id), _aisles_key(store_id)]
                for aisle_id in self.r.smembers(_aisles_key(store_id)):
                    keys += [_aisle_key(aisle_id), _products_key(aisle_id)]
                    keys += [_product_key(product_id) for product_id
                             in self.r.smembers(_products_key(aisle_id))]
            self.r.delete(*keys)
        except redis.exceptions.RedisError as e:
            raise InternalError(f'Failed to delete resources: {e}') from e
        logger.debug('Deleted %i resource keys of %s', len(keys), account_id)

    def _check_store_owner(self, account_id: AccountId,
                           store_id: StoreId) -> None:
        if self.r.hget(_store_key(store_id), 'owner') != account_id:
            raise PermissionDenied('Store does not belong to this account')
