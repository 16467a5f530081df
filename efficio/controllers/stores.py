"""Controllers for the stores, aisles and products owned by an account."""

import logging
from typing import Optional

from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import BadRequest
from wtforms import FloatField, Form, IntegerField, StringField
from wtforms.validators import DataRequired, Length, NumberRange, Optional \
    as OptionalValue

from ..domain import Unit
from ..services import accounts
from .util import OK, ResponseData, form_errors, service_errors

logger = logging.getLogger(__name__)


class NameForm(Form):
    name = StringField('Name', validators=[DataRequired(), Length(max=255)])


class AisleForm(NameForm):
    sort_weight = FloatField('Sort weight', default=0.0,
                             validators=[OptionalValue()])


class ProductForm(NameForm):
    quantity = IntegerField('Quantity', default=1,
                            validators=[OptionalValue(), NumberRange(min=0)])
    unit = IntegerField('Unit', default=int(Unit.UNIT),
                        validators=[OptionalValue()])


def _validated(form: Form) -> Form:
    if not form.validate():
        raise BadRequest(form_errors(form))
    return form


def create_store(token: Optional[str], params: MultiDict) -> ResponseData:
    """Create a store for the authenticated account."""
    with service_errors():
        account_id = accounts.authenticate(token)
        form = _validated(NameForm(params))
        store_id = accounts.current_service().resources.create_store(
            account_id, form.name.data
        )
    return {'store_id': store_id}, OK, {}


def list_stores(token: Optional[str]) -> ResponseData:
    """List the stores of the authenticated account."""
    with service_errors():
        account_id = accounts.authenticate(token)
        stores = accounts.current_service().resources.list_stores(account_id)
    return {'stores': [store._asdict() for store in stores]}, OK, {}


def add_aisle(token: Optional[str], store_id: str,
              params: MultiDict) -> ResponseData:
    """Add an aisle to a store of the authenticated account."""
    with service_errors():
        account_id = accounts.authenticate(token)
        form = _validated(AisleForm(params))
        aisle_id = accounts.current_service().resources.add_aisle(
            account_id, store_id, form.name.data,
            sort_weight=form.sort_weight.data or 0.0
        )
    return {'aisle_id': aisle_id}, OK, {}


def add_product(token: Optional[str], aisle_id: str,
                params: MultiDict) -> ResponseData:
    """Add a product to an aisle of the authenticated account."""
    with service_errors():
        account_id = accounts.authenticate(token)
        form = _validated(ProductForm(params))
        quantity = form.quantity.data
        product_id = accounts.current_service().resources.add_product(
            account_id, aisle_id, form.name.data,
            quantity=1 if quantity is None else quantity,
            unit=Unit.from_value(form.unit.data)
        )
    return {'product_id': product_id}, OK, {}
