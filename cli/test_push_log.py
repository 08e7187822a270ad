# cli/test_push_log.py
import unittest
import gzip
import json
import base64

from cli.push_log import create_log_event, create_log_batch, encode_awslogs


class TestLogBatchBuilder(unittest.TestCase):

    def test_event_structure_and_content(self):
        """
        Checks that create_log_event builds an event the field extractor understands.
        """
        event = create_log_event("warn", "Disk almost full.", "req-1")

        self.assertIsInstance(event["timestamp"], int)
        fields = event["extractedFields"]
        self.assertEqual(fields["event"], "WARN\tDisk almost full.\n")
        self.assertEqual(fields["request_id"], "req-1")
        self.assertTrue(fields["timestamp"].endswith("Z"))

    def test_event_without_request_id(self):
        event = create_log_event("INFO", "hello")
        self.assertNotIn("request_id", event["extractedFields"])

    def test_batch_embeds_function_and_version(self):
        batch = create_log_batch("services--func", "356", [])

        self.assertEqual(batch["logGroup"], "/aws/lambda/services--func")
        self.assertIn("[356]", batch["logStream"])
        self.assertEqual(batch["logEvents"], [])

    def test_encode_awslogs_is_gzipped_base64(self):
        batch = create_log_batch("services--func", "$LATEST", [create_log_event("INFO", "hi")])

        event = encode_awslogs(batch)

        decoded = json.loads(gzip.decompress(base64.b64decode(event["awslogs"]["data"])))
        self.assertEqual(decoded, batch)


# This allows the test to be run directly
if __name__ == '__main__':
    unittest.main()
