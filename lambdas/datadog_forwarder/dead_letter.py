# lambdas/datadog_forwarder/dead_letter.py
import json

from botocore.exceptions import BotoCoreError, ClientError

from .errors import DeadLetterForwardingError


class DeadLetterQueue:
    """Parks log lines that could not be classified or delivered in an SQS queue."""

    def __init__(self, sqs_client, queue_url: str, log=print):
        self.sqs_client = sqs_client
        self.queue_url = queue_url
        self.log = log

    def forward(self, items: list[dict]) -> None:
        """
        Sends `items` as one JSON array message.

        Raises:
            DeadLetterForwardingError: If SQS does not accept the message.
        """
        if not items:
            return
        self.log(f"Forwarding {len(items)} item(s) to dead-letter queue: {self.queue_url}")
        try:
            self.sqs_client.send_message(
                QueueUrl=self.queue_url,
                MessageBody=json.dumps(items, default=str),
            )
        except (BotoCoreError, ClientError) as e:
            raise DeadLetterForwardingError(f"Failed to forward {len(items)} item(s) to {self.queue_url}: {e}") from e


def queue_url_for(function_arn: str) -> str:
    """
    Default queue for a function ARN:
    `arn:aws:lambda:us-east-1:123456789012:function:datadog-feeder:1_2_3`
    -> `https://sqs.us-east-1.amazonaws.com/123456789012/datadog-feeder-dlq`
    """
    parts = function_arn.split(":")
    region, account, name = parts[3], parts[4], parts[6]
    return f"https://sqs.{region}.amazonaws.com/{account}/{name}-dlq"
