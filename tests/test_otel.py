import os
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from agro_helper.observability.otel import (
    build_span_attributes,
    init_otel,
    resolve_endpoint,
)

_ENV_KEYS = (
    "OTEL_EXPORTER_OTLP_ENDPOINT",
    "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT",
    "OTEL_EXPORTER_OTLP_LOGS_ENDPOINT",
)


class OtelHelpersTests(unittest.TestCase):
    def setUp(self) -> None:
        self._env_backup = {key: os.environ.get(key) for key in _ENV_KEYS}
        for key in _ENV_KEYS:
            os.environ.pop(key, None)

    def tearDown(self) -> None:
        for key, value in self._env_backup.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value

    def test_span_attributes_are_truncated(self) -> None:
        attrs = build_span_attributes("advisory.input", "абв" * 10, limit=5)
        self.assertEqual(attrs["advisory.input"], "абваб...")
        self.assertEqual(attrs["advisory.input.size"], 30)
        self.assertTrue(attrs["advisory.input.truncated"])

    def test_span_attributes_serialize_mappings(self) -> None:
        attrs = build_span_attributes("p", {"crop": "Рис"})
        self.assertEqual(attrs["p"], '{"crop": "Рис"}')
        self.assertFalse(attrs["p.truncated"])

    def test_http_endpoint_gets_signal_path(self) -> None:
        os.environ["OTEL_EXPORTER_OTLP_ENDPOINT"] = "http://collector:4318/"
        self.assertEqual(
            resolve_endpoint("traces", use_http=True), "http://collector:4318/v1/traces"
        )
        self.assertEqual(resolve_endpoint("logs", use_http=False), "http://collector:4318/")
        os.environ["OTEL_EXPORTER_OTLP_LOGS_ENDPOINT"] = "http://logs:4318/v1/logs"
        self.assertEqual(resolve_endpoint("logs", use_http=True), "http://logs:4318/v1/logs")

    def test_init_without_endpoint_is_noop(self) -> None:
        self.assertIsNone(resolve_endpoint("traces", use_http=True))
        self.assertFalse(init_otel())


if __name__ == "__main__":
    unittest.main()
