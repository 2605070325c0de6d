import json
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from agro_helper.observability.logging_utils import (
    TEXT_LIMIT,
    get_trace_id,
    log_event,
    redact_fields,
    trace_scope,
)


class LoggingUtilsTests(unittest.TestCase):
    def test_trace_scope_binds_and_restores(self) -> None:
        self.assertEqual(get_trace_id(), "unknown")
        with trace_scope("outer") as outer:
            self.assertEqual(outer, "outer")
            with trace_scope() as inner:
                self.assertEqual(len(inner), 32)
                self.assertEqual(get_trace_id(), inner)
            self.assertEqual(get_trace_id(), "outer")
        self.assertEqual(get_trace_id(), "unknown")

    def test_image_payload_is_never_logged(self) -> None:
        fields = redact_fields({"image_base64": "A" * 5000, "endpoint": "analyze-plant"})
        self.assertEqual(fields["image_base64"], "<5000 chars>")
        self.assertEqual(fields["endpoint"], "analyze-plant")

    def test_long_text_is_truncated(self) -> None:
        fields = redact_fields({"prompt": "x" * (TEXT_LIMIT + 50), "size": 12})
        self.assertEqual(len(fields["prompt"]), TEXT_LIMIT + 3)
        self.assertEqual(fields["size"], 12)

    def test_log_event_writes_one_json_line(self) -> None:
        with self.assertLogs("agro_helper.events", level="INFO") as captured:
            with trace_scope("t-1"):
                log_event("advisory_call", endpoint="weather", location="Курск")
        payload = json.loads(captured.records[0].getMessage())
        self.assertEqual(
            payload,
            {"event": "advisory_call", "trace_id": "t-1", "endpoint": "weather", "location": "Курск"},
        )


if __name__ == "__main__":
    unittest.main()
