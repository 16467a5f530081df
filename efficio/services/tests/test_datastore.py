"""Tests for :mod:`efficio.services.datastore`."""

from unittest import TestCase, mock

import fakeredis
import redis
from flask import Flask

from efficio.exceptions import InternalError
from efficio.services import datastore


class TestGetConnection(TestCase):
    """The configured backend is used."""

    @mock.patch(f'{datastore.__name__}.redis')
    def test_redis(self, mock_redis):
        """A real client is built from the configuration."""
        app = Flask('test')
        app.config.update(REDIS_HOST='redis', REDIS_PORT='1234',
                          REDIS_DATABASE='4', REDIS_PASSWORD='secret')
        datastore.init_app(app)
        datastore.get_connection(app)
        mock_redis.Redis.assert_called_once_with(
            host='redis', port=1234, db=4, password='secret',
            decode_responses=True
        )

    def test_fake_shared_per_app(self):
        """Fake clients of one app see the same data."""
        app = Flask('test')
        app.config['REDIS_FAKE'] = True
        datastore.init_app(app)
        datastore.get_connection(app).set('foo', 'bar')
        self.assertEqual(datastore.get_connection(app).get('foo'), 'bar')

        other = Flask('other')
        other.config['REDIS_FAKE'] = True
        datastore.init_app(other)
        self.assertIsNone(datastore.get_connection(other).get('foo'))

    def test_current_connection_cached(self):
        """One client per application context."""
        app = Flask('test')
        app.config['REDIS_FAKE'] = True
        datastore.init_app(app)
        with app.app_context():
            self.assertIs(datastore.current_connection(),
                          datastore.current_connection())


class TestResetAll(TestCase):
    def test_reset(self):
        r = fakeredis.FakeRedis(server=fakeredis.FakeServer(),
                                decode_responses=True)
        r.set('foo', 'bar')
        datastore.reset_all(r)
        self.assertEqual(r.keys('*'), [])

    def test_connection_failed(self):
        r = mock.MagicMock()
        r.flushdb.side_effect = redis.exceptions.ConnectionError
        with self.assertRaises(InternalError):
            datastore.reset_all(r)
