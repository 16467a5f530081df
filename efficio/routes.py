"""Provides the HTTP API of the accounts service."""

import logging
from typing import Optional, Tuple

from flask import Blueprint, Response, current_app, jsonify, request, \
    make_response
from werkzeug.datastructures import MultiDict

from .controllers import accounts, stores
from .controllers.util import ResponseData, to_multidict

logger = logging.getLogger(__name__)

blueprint = Blueprint('efficio', __name__, url_prefix='')


def _session_token() -> Optional[str]:
    return request.headers.get(current_app.config['SESSION_TOKEN_HEADER'])


def _params(numeric: Tuple[str, ...] = ()) -> MultiDict:
    return to_multidict(request.get_json(silent=True), numeric=numeric)


def _respond(result: ResponseData) -> Response:
    data, code, headers = result
    return make_response(jsonify(data), code, headers)


@blueprint.route('/user', methods=['POST'])
def register() -> Response:
    """Create an account and return its session token."""
    return _respond(accounts.register(_params()))


@blueprint.route('/user', methods=['DELETE'])
def delete_account() -> Response:
    """Delete the account of the presented session."""
    return _respond(accounts.delete_account(_session_token()))


@blueprint.route('/login', methods=['POST'])
def login() -> Response:
    return _respond(accounts.login(_params()))


@blueprint.route('/logout', methods=['POST'])
def logout() -> Response:
    return _respond(accounts.logout(_session_token()))


@blueprint.route('/session', methods=['POST'])
def reissue() -> Response:
    """Revoke all sessions of the account and issue a new token."""
    return _respond(accounts.reissue(_session_token()))


@blueprint.route('/store', methods=['POST'])
def create_store() -> Response:
    return _respond(stores.create_store(_session_token(), _params()))


@blueprint.route('/stores', methods=['GET'])
def list_stores() -> Response:
    return _respond(stores.list_stores(_session_token()))


@blueprint.route('/store/<store_id>/aisle', methods=['POST'])
def add_aisle(store_id: str) -> Response:
    return _respond(stores.add_aisle(_session_token(), store_id,
                                     _params(numeric=('sort_weight',))))


@blueprint.route('/aisle/<aisle_id>/product', methods=['POST'])
def add_product(aisle_id: str) -> Response:
    return _respond(stores.add_product(_session_token(), aisle_id,
                                       _params(numeric=('quantity', 'unit'))))
