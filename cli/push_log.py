import os
import gzip
import json
import base64
import argparse
import requests
from datetime import datetime, timezone
from dotenv import load_dotenv

# Load environment variables from a .env file for local testing
load_dotenv()

# Function URL (or API Gateway route) of the deployed forwarder
FORWARDER_URL = os.environ.get("FORWARDER_URL")


def create_log_event(level: str, message: str, request_id: str = None) -> dict:
    """
    Creates a single subscription log event, shaped as if a filter pattern had
    extracted `timestamp`, `request_id` and `event` from a Lambda log line.
    """
    now = datetime.now(timezone.utc)
    fields = {
        "timestamp": now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "event": f"{level.upper()}\t{message}\n",
    }
    if request_id:
        fields["request_id"] = request_id
    return {
        "timestamp": int(now.timestamp() * 1000),
        "extractedFields": fields,
    }


def create_log_batch(function_name: str, version: str, log_events: list[dict]) -> dict:
    """Wraps events into a subscription document for `function_name` at `version`."""
    return {
        "logGroup": f"/aws/lambda/{function_name}",
        "logStream": f"{datetime.now(timezone.utc):%Y/%m/%d}/[{version}]0123456789abcdef0123456789abcdef",
        "logEvents": log_events,
    }


def encode_awslogs(document: dict) -> dict:
    """Returns the Lambda event CloudWatch would deliver for `document`."""
    data = gzip.compress(json.dumps(document).encode("utf-8"))
    return {"awslogs": {"data": base64.b64encode(data).decode("ascii")}}


def send_log_batch_to_forwarder(document: dict):
    """
    Sends an already-decoded batch straight to the forwarder.
    """
    if not FORWARDER_URL:
        print("❌ ERROR: FORWARDER_URL environment variable not set. Please create a .env file.")
        return

    print("--- Attempting to send log batch ---")
    print(json.dumps(document, indent=2))
    print("------------------------------------")

    try:
        response = requests.post(FORWARDER_URL, json=document, timeout=30)
        response.raise_for_status()
        print("\n✅ Success! Log batch forwarded.")
        print(f"Status Code: {response.status_code}")
        print(f"Response Body: {response.text}")

    except requests.exceptions.RequestException as e:
        print(f"\n❌ Failed to send log batch.")
        print(f"Error: {e}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Push a synthetic log batch to the DataDog forwarder.")
    parser.add_argument("--function", default="services--func", help="function whose logs are simulated")
    parser.add_argument("--version", default="$LATEST", help="function version embedded in the log stream")
    parser.add_argument("--awslogs", action="store_true", help="print the encoded awslogs event instead of sending")
    args = parser.parse_args()

    print("--- DataDog Forwarder Test CLI ---")

    events = [
        create_log_event("INFO", "Service started successfully.", "1aa49921-c9b8-401c-9f3a-f22989ab8505"),
        create_log_event("WARN", "API response time exceeded threshold.", "1aa49921-c9b8-401c-9f3a-f22989ab8505"),
        create_log_event("ERROR", "Database connection failed: timeout expired."),
    ]
    batch = create_log_batch(args.function, args.version, events)

    if args.awslogs:
        print(json.dumps(encode_awslogs(batch), indent=2))
    else:
        send_log_batch_to_forwarder(batch)
