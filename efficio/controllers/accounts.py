"""
Controllers for registration, login, logout, re-issue and account deletion.

A successful registration or login hands the client an opaque session token.
The client sends it back in the session token header of every later request;
it is the only credential accepted after login.
"""

import logging
from typing import Optional

from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import BadRequest
from wtforms import Form, PasswordField, StringField
from wtforms.validators import DataRequired, Length

from ..domain import Credentials, Registration, Secret
from ..services import accounts
from .util import OK, ResponseData, form_errors, service_errors

logger = logging.getLogger(__name__)


class RegistrationForm(Form):
    """Account registration payload."""

    username = StringField('Username', validators=[DataRequired(),
                                                   Length(max=255)])
    password = PasswordField('Password', validators=[DataRequired()])
    email = StringField('Email', validators=[DataRequired(), Length(max=255)])

    def to_domain(self) -> Registration:
        """Move the secrets into wipeable holders and clear the form."""
        registration = Registration(
            username=str(self.username.data),
            password=Secret(str(self.password.data)),
            email=Secret(str(self.email.data))
        )
        for field in (self.password, self.email):
            field.data = None
            field.raw_data = []
        return registration


class LoginForm(Form):
    """Login payload."""

    username = StringField('Username', validators=[DataRequired()])
    password = PasswordField('Password', validators=[DataRequired()])

    def to_domain(self) -> Credentials:
        credentials = Credentials(username=str(self.username.data),
                                  password=Secret(str(self.password.data)))
        self.password.data = None
        self.password.raw_data = []
        return credentials


def register(params: MultiDict) -> ResponseData:
    """Handle a registration request."""
    form = RegistrationForm(params)
    if not form.validate():
        logger.debug('Registration payload not valid')
        raise BadRequest(form_errors(form))
    with service_errors():
        token = accounts.register(form.to_domain())
    return {'session_token': token}, OK, {}


def login(params: MultiDict) -> ResponseData:
    """Handle a login request."""
    form = LoginForm(params)
    if not form.validate():
        logger.debug('Login payload not valid')
        raise BadRequest('Invalid username or password')
    with service_errors():
        token, _ = accounts.login(form.to_domain())
    return {'session_token': token}, OK, {}


def logout(token: Optional[str]) -> ResponseData:
    """Revoke the session presented with the request."""
    with service_errors():
        accounts.logout(token)
    return {}, OK, {}


def reissue(token: Optional[str]) -> ResponseData:
    """Replace every session of the account with a single new one."""
    with service_errors():
        new_token = accounts.reissue(token)
    return {'session_token': new_token}, OK, {}


def delete_account(token: Optional[str]) -> ResponseData:
    """Delete the account that owns the presented session."""
    with service_errors():
        accounts.delete_account(token)
    return {}, OK, {}
