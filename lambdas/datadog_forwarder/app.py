# lambdas/datadog_forwarder/app.py
"""
Lambda entry point of the DataDog forwarder.

The modules of this directory import each other as a package, so the function
is deployed from the repository root with the handler
`lambdas.datadog_forwarder.app.handler`.
"""
import json
import boto3
import requests
from botocore.exceptions import NoCredentialsError, PartialCredentialsError

from .alias import AliasCache, AliasResolver
from .config import Settings
from .datadog_client import DataDogClient
from .dead_letter import DeadLetterQueue, queue_url_for
from .errors import ConfigurationError
from .pipeline import LogForwarder, service_prefix_for


# The HTTP session and the alias cache live in the global scope so warm invocations
# reuse them. AWS clients are created on first use: botocore resolves credentials
# when a client is built, and that must not happen before the API key is checked.
LAMBDA_CLIENT = None
SQS_CLIENT = None
HTTP_SESSION = requests.Session()
ALIAS_CACHE = AliasCache()


def aws_clients(region: str):
    """Returns the (lambda, sqs) clients, creating them on the first invocation."""
    global LAMBDA_CLIENT, SQS_CLIENT
    try:
        if LAMBDA_CLIENT is None:
            LAMBDA_CLIENT = boto3.client('lambda', region_name=region)
        if SQS_CLIENT is None:
            SQS_CLIENT = boto3.client('sqs', region_name=region)
    except (NoCredentialsError, PartialCredentialsError) as e:
        raise ConfigurationError(f"Missing AWS configuration: {e}") from e
    return LAMBDA_CLIENT, SQS_CLIENT


def build_forwarder(settings: Settings, function_arn: str) -> LogForwarder:
    """Wires the forwarder for one invocation from settings and the shared clients."""
    client = DataDogClient(
        api_key=settings.require_api_key(),
        api_url=settings.api_url,
        session=HTTP_SESSION,
        max_retries=settings.max_retries,
        timeout=settings.timeout,
    )
    lambda_client, sqs_client = aws_clients(settings.aws_region)
    dead_letter = DeadLetterQueue(sqs_client, settings.dead_letter_queue_url or queue_url_for(function_arn))
    return LogForwarder(
        client=client,
        resolver=AliasResolver(lambda_client, ALIAS_CACHE),
        dead_letter=dead_letter,
        service_prefix=service_prefix_for(function_arn),
        level=settings.log_level,
    )


# Lambda handler
def handler(event, context):
    """
    Triggered by a CloudWatch Logs subscription (or called directly with an
    already-decoded batch). Forwards the batch to DataDog.

    Missing AWS credentials, undecodable payloads and failed deliveries raise,
    so the invocation is reported as failed.
    """
    print("--- DataDog Forwarder Lambda Triggered ---")
    settings = Settings()

    try:
        settings.require_api_key()
    except ConfigurationError as e:
        print(f"❌ FATAL: {e}")
        return {
            "statusCode": 500,
            "headers": {"Content-Type": "text/plain"},
            "body": str(e)
        }

    forwarder = build_forwarder(settings, context.invoked_function_arn)
    result = forwarder.run(event)
    print(f"✅ Done. Sent {result['sent']} entries, rejected {result['rejected']}.")
    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(result)
    }
