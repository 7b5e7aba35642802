"""Unit tests for configuration lookup."""
from __future__ import annotations

import unittest

from backend.config import (
    DevelopmentConfig,
    EphemeralConfig,
    ProductionConfig,
    TestingConfig,
    get_config,
)


class ConfigTestCase(unittest.TestCase):
    def test_lookup_is_case_insensitive_with_development_default(self) -> None:
        self.assertIs(get_config("Production"), ProductionConfig)
        self.assertIs(get_config("testing"), TestingConfig)
        self.assertIs(get_config(None), DevelopmentConfig)
        self.assertIs(get_config("staging"), DevelopmentConfig)

    def test_ephemeral_keeps_records_in_memory(self) -> None:
        values = EphemeralConfig.as_dict()
        self.assertEqual(values["STORAGE_BACKEND"], "memory")
        self.assertIsNone(values["SQLALCHEMY_DATABASE_URI"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
