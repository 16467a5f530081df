"""Provides an app factory for the accounts service."""

import logging

import click
from flask import Flask, jsonify
from werkzeug.exceptions import BadRequest, Forbidden, HTTPException, \
    InternalServerError, MethodNotAllowed, NotAcceptable, NotFound, \
    Unauthorized

from . import routes
from .app_logging import setup_logger
from .services import accounts, datastore

logger = logging.getLogger(__name__)


def jsonify_exception(error: HTTPException):
    exc_resp = error.get_response()
    response = jsonify(reason=error.description)
    response.status_code = exc_resp.status_code
    return response


def create_web_app() -> Flask:
    """Initialize an instance of the accounts service."""
    app = Flask('efficio')
    app.config.from_pyfile('config.py')
    setup_logger(app.config['LOG_LEVEL'])

    accounts.init_app(app)

    app.register_blueprint(routes.blueprint)
    for error in (NotFound, BadRequest, Unauthorized, Forbidden,
                  NotAcceptable, MethodNotAllowed, InternalServerError):
        app.errorhandler(error)(jsonify_exception)

    @app.cli.command('reset-data')
    def reset_data() -> None:
        """Drop every key in the configured database."""
        if not app.config['ALLOW_DATA_RESET']:
            raise click.ClickException(
                'Data reset is disabled; set ALLOW_DATA_RESET=1'
            )
        datastore.reset_all(datastore.get_connection(app))
        click.echo('All data dropped.')

    logger.debug('Accounts service ready, ids are %s',
                 app.config['ACCOUNT_ID_STRATEGY'])
    return app
