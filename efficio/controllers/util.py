"""Helpers shared by the controllers."""

import logging
from contextlib import contextmanager
from http import HTTPStatus
from typing import Any, Dict, Iterable, Iterator, Mapping, Tuple

from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import BadRequest, Forbidden, InternalServerError, \
    NotAcceptable, Unauthorized

from .. import exceptions

logger = logging.getLogger(__name__)

ResponseData = Tuple[Dict[str, Any], int, Dict[str, str]]

OK = HTTPStatus.OK.value


def to_multidict(payload: Any, numeric: Iterable[str] = ()) -> MultiDict:
    """
    Turn a decoded JSON body into form data.

    Values must be strings, except for the fields named in ``numeric``,
    which may also be JSON numbers. Anything else (lists, objects, booleans)
    is a bad request.
    """
    if payload is None:
        return MultiDict()
    if not isinstance(payload, Mapping):
        raise BadRequest('Request body must be a JSON object')
    numeric = frozenset(numeric)
    params = MultiDict()
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, str):
            params[key] = value
        elif key in numeric and isinstance(value, (int, float)) \
                and not isinstance(value, bool):
            params[key] = str(value)
        else:
            raise BadRequest(f'Invalid value for {key}')
    return params


def form_errors(form: Any) -> str:
    return '; '.join(f'{name}: {", ".join(errors)}'
                     for name, errors in form.errors.items())


@contextmanager
def service_errors() -> Iterator[None]:
    """Translate service exceptions into HTTP exceptions."""
    try:
        yield
    except exceptions.UsernameTaken as e:
        logger.debug('Username taken: %s', e)
        raise NotAcceptable(str(e)) from e
    except exceptions.InvalidCredentials as e:
        logger.debug('Authentication failed: %s', e)
        raise BadRequest('Invalid username or password') from e
    except exceptions.Unauthorized as e:
        logger.debug('Unauthorized: %s', e)
        raise Unauthorized('Invalid session token') from e
    except exceptions.PermissionDenied as e:
        logger.debug('Permission denied: %s', e)
        raise Forbidden(str(e)) from e
    except exceptions.InternalError as e:
        logger.exception('Internal error: %s', e)
        raise InternalServerError('Internal error') from e
