"""Tests for :mod:`efficio.services.hashing`."""

import threading
from unittest import TestCase, mock

from flask import Flask

from efficio.exceptions import InternalError
from efficio.services import hashing


class TestHashSecret(TestCase):
    """:func:`hashing.hash_secret` is a salted memory-hard hash."""

    def test_hex_digest(self):
        """The digest is 64 lowercase hex characters."""
        digest = hashing.hash_secret(b'pwd', b'00000000')
        self.assertEqual(len(digest), 64)
        self.assertEqual(digest, digest.lower())
        int(digest, 16)

    def test_deterministic(self):
        """Same data and salt always give the same digest."""
        self.assertEqual(hashing.hash_secret(b'1', b'somesaltvalue'),
                         hashing.hash_secret(b'1', b'somesaltvalue'))

    def test_salt_changes_digest(self):
        """Different salts give different digests for the same data."""
        self.assertNotEqual(hashing.hash_secret(b'pwd', b'saltsalt1'),
                            hashing.hash_secret(b'pwd', b'saltsalt2'))

    def test_short_salt(self):
        """Argon2 refuses salts shorter than 8 bytes."""
        with self.assertRaises(InternalError):
            hashing.hash_secret(b'pwd', b'short')

    def test_generate_salt(self):
        """Salts are random 32 character hex strings."""
        salt = hashing.generate_salt()
        self.assertEqual(len(salt), 32)
        self.assertNotEqual(salt, hashing.generate_salt())


class TestHashPool(TestCase):
    """:class:`hashing.HashPool` runs hashes on bounded worker threads."""

    def test_hash(self):
        """The pooled hash equals the inline hash."""
        pool = hashing.HashPool(workers=2)
        try:
            self.assertEqual(pool.hash(b'pwd', b'00000000'),
                             hashing.hash_secret(b'pwd', b'00000000'))
        finally:
            pool.shutdown()

    def test_runs_off_the_calling_thread(self):
        """Hash jobs run on the pool's own threads."""
        seen = []

        def _record(data, salt):
            seen.append(threading.current_thread().name)
            return 'x'

        pool = hashing.HashPool(workers=1, hash_func=_record)
        try:
            pool.hash(b'a', b'b')
        finally:
            pool.shutdown()
        self.assertTrue(seen[0].startswith('efficio-hash'))

    def test_exhausted(self):
        """:class:`.InternalError` is raised when no slot frees up in time."""
        release = threading.Event()
        started = threading.Event()

        def _block(data, salt):
            started.set()
            release.wait(5)
            return 'x'

        pool = hashing.HashPool(workers=1, max_pending=1, timeout=0.05,
                                hash_func=_block)
        first = threading.Thread(target=pool.hash, args=(b'a', b'b'))
        first.start()
        try:
            self.assertTrue(started.wait(5))
            with self.assertRaises(InternalError):
                pool.hash(b'c', b'd')
        finally:
            release.set()
            first.join()
            pool.shutdown()

    def test_errors_propagate(self):
        """Exceptions raised by the hash reach the caller."""
        pool = hashing.HashPool(workers=1)
        try:
            with self.assertRaises(InternalError):
                pool.hash(b'pwd', b'short')
        finally:
            pool.shutdown()


class TestInitApp(TestCase):
    """The app's pool is shut down when the process exits."""

    @mock.patch(f'{hashing.__name__}.atexit')
    def test_shutdown_registered(self, mock_atexit):
        app = Flask('test')
        hashing.init_app(app)
        pool = app.extensions['efficio.hash_pool']
        mock_atexit.register.assert_called_once_with(pool.shutdown)
        self.assertEqual(hashing.current_hasher(app), pool.hash)
        pool.shutdown()
