"""Tests for the accounts service through its HTTP API."""

import os
from unittest import TestCase, mock

from efficio.factory import create_web_app
from efficio.services import datastore


class TestAccountsAPI(TestCase):
    """Exercise the routes against an in-process fake store."""

    def setUp(self):
        with mock.patch.dict(os.environ, {'REDIS_FAKE': '1',
                                          'ALLOW_DATA_RESET': '0',
                                          'LOG_LEVEL': 'ERROR'}):
            self.app = create_web_app()
        self.client = self.app.test_client()

    def _register(self, username='toto', password='pwd', email='m@m.com'):
        return self.client.post('/user', json={'username': username,
                                               'password': password,
                                               'email': email})

    def _auth(self, token):
        return {'session_token': token}

    def test_register_and_login(self):
        """Registration and login return the same session token."""
        response = self._register()
        self.assertEqual(response.status_code, 200)
        token = response.get_json()['session_token']
        self.assertRegex(token, r'^[0-9a-f]{64}$')

        response = self.client.post('/login', json={'username': 'TOTO',
                                                    'password': 'pwd'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['session_token'], token)

    def test_username_taken(self):
        self._register()
        response = self._register(username='ToTo')
        self.assertEqual(response.status_code, 406)
        self.assertIn('reason', response.get_json())

    def test_invalid_registration(self):
        response = self.client.post('/user', json={'username': 'toto'})
        self.assertEqual(response.status_code, 400)
        response = self.client.post('/user', data='not json')
        self.assertEqual(response.status_code, 400)

    def test_structured_fields(self):
        """Non-string credentials are refused, not stringified."""
        response = self.client.post('/user', json={'username': ['a', 'b'],
                                                   'password': {'p': 1},
                                                   'email': True})
        self.assertEqual(response.status_code, 400)
        response = self.client.post('/login', json={'username': "['a', 'b']",
                                                    'password': "{'p': 1}"})
        self.assertEqual(response.status_code, 400)

        token = self._register().get_json()['session_token']
        response = self.client.post('/store', json={'name': ['Shop']},
                                    headers=self._auth(token))
        self.assertEqual(response.status_code, 400)

    def test_bad_login(self):
        """Wrong password and unknown user give the same response."""
        self._register()
        wrong = self.client.post('/login', json={'username': 'toto',
                                                 'password': 'nope'})
        unknown = self.client.post('/login', json={'username': 'tata',
                                                   'password': 'pwd'})
        self.assertEqual(wrong.status_code, 400)
        self.assertEqual(unknown.status_code, 400)
        self.assertEqual(wrong.get_json(), unknown.get_json())

    def test_logout(self):
        token = self._register().get_json()['session_token']
        response = self.client.post('/logout', headers=self._auth(token))
        self.assertEqual(response.status_code, 200)
        response = self.client.get('/stores', headers=self._auth(token))
        self.assertEqual(response.status_code, 401)
        response = self.client.post('/logout', headers=self._auth(token))
        self.assertEqual(response.status_code, 401)

    def test_missing_token(self):
        for method, path in (('post', '/logout'), ('post', '/session'),
                             ('delete', '/user'), ('get', '/stores')):
            response = getattr(self.client, method)(path)
            self.assertEqual(response.status_code, 401, path)

    def test_reissue(self):
        """Only the re-issued token works afterwards."""
        token = self._register().get_json()['session_token']
        response = self.client.post('/session', headers=self._auth(token))
        self.assertEqual(response.status_code, 200)
        new_token = response.get_json()['session_token']
        self.assertNotEqual(new_token, token)

        self.assertEqual(
            self.client.get('/stores', headers=self._auth(token)).status_code,
            401
        )
        self.assertEqual(
            self.client.get('/stores',
                            headers=self._auth(new_token)).status_code,
            200
        )

    def test_stores(self):
        """Stores, aisles and products are scoped to their owner."""
        token = self._register().get_json()['session_token']
        other = self._register(username='tata').get_json()['session_token']

        response = self.client.post('/store', json={'name': 'Shop'},
                                    headers=self._auth(token))
        self.assertEqual(response.status_code, 200)
        store_id = response.get_json()['store_id']

        response = self.client.get('/stores', headers=self._auth(token))
        self.assertEqual(response.get_json(),
                         {'stores': [{'store_id': store_id, 'name': 'Shop'}]})
        response = self.client.get('/stores', headers=self._auth(other))
        self.assertEqual(response.get_json(), {'stores': []})

        response = self.client.post(f'/store/{store_id}/aisle',
                                    json={'name': 'Fruits', 'sort_weight': 1},
                                    headers=self._auth(token))
        self.assertEqual(response.status_code, 200)
        aisle_id = response.get_json()['aisle_id']

        response = self.client.post(f'/store/{store_id}/aisle',
                                    json={'name': 'Fruits'},
                                    headers=self._auth(other))
        self.assertEqual(response.status_code, 403)

        response = self.client.post(f'/aisle/{aisle_id}/product',
                                    json={'name': 'Apples', 'quantity': 3,
                                          'unit': 1},
                                    headers=self._auth(token))
        self.assertEqual(response.status_code, 200)
        self.assertIn('product_id', response.get_json())

        response = self.client.post(f'/aisle/{aisle_id}/product',
                                    json={'name': 'Apples'},
                                    headers=self._auth(other))
        self.assertEqual(response.status_code, 403)

    def test_delete_account(self):
        """Deleting frees the name and invalidates the token."""
        token = self._register().get_json()['session_token']
        self.client.post('/store', json={'name': 'Shop'},
                         headers=self._auth(token))

        response = self.client.delete('/user', headers=self._auth(token))
        self.assertEqual(response.status_code, 200)
        response = self.client.get('/stores', headers=self._auth(token))
        self.assertEqual(response.status_code, 401)
        response = self.client.post('/login', json={'username': 'toto',
                                                    'password': 'pwd'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self._register().status_code, 200)

    def test_not_found(self):
        response = self.client.get('/nowhere')
        self.assertEqual(response.status_code, 404)
        self.assertIn('reason', response.get_json())


class TestResetData(TestCase):
    """The ``reset-data`` command only runs when explicitly enabled."""

    def setUp(self):
        with mock.patch.dict(os.environ, {'REDIS_FAKE': '1',
                                          'ALLOW_DATA_RESET': '0',
                                          'LOG_LEVEL': 'ERROR'}):
            self.app = create_web_app()
        self.runner = self.app.test_cli_runner()
        self.r = datastore.get_connection(self.app)
        self.r.set('foo', 'bar')

    def test_disabled(self):
        result = self.runner.invoke(args=['reset-data'])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIn('ALLOW_DATA_RESET', result.output)
        self.assertEqual(self.r.get('foo'), 'bar')

    def test_enabled(self):
        self.app.config['ALLOW_DATA_RESET'] = True
        result = self.runner.invoke(args=['reset-data'])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIsNone(self.r.get('foo'))
