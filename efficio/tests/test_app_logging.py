"""Tests for :mod:`efficio.app_logging`."""

import json
import logging
from io import StringIO
from unittest import TestCase

from pythonjsonlogger.json import JsonFormatter

from efficio.app_logging import setup_logger


class TestSetupLogger(TestCase):
    """Log records are written as JSON, by a single handler."""

    def setUp(self):
        self.root = logging.getLogger()
        self.level = self.root.level
        self.handlers = list(self.root.handlers)

    def tearDown(self):
        self.root.handlers = self.handlers
        self.root.setLevel(self.level)

    def _json_handlers(self):
        return [h for h in self.root.handlers
                if isinstance(h.formatter, JsonFormatter)]

    def test_idempotent(self):
        setup_logger('debug')
        setup_logger('debug')
        self.assertEqual(len(self._json_handlers()), 1)
        self.assertEqual(self.root.level, logging.DEBUG)

    def test_json_record(self):
        setup_logger('INFO')
        handler, = self._json_handlers()
        stream = StringIO()
        previous = handler.setStream(stream)
        try:
            logging.getLogger('efficio.test').info('Stored session %s', 'abc')
        finally:
            handler.setStream(previous)
        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        self.assertEqual(record['message'], 'Stored session abc')
        self.assertEqual(record['level'], 'INFO')
        self.assertEqual(record['name'], 'efficio.test')
        self.assertIn('timestamp', record)
