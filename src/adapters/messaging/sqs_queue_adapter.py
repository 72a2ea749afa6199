from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping

from botocore.exceptions import ClientError

from src.adapters.aws import sqs_client
from src.app.ports.output import IFixQueue

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SQSFixQueue(IFixQueue):
    """SQS transport for raw GPS fixes (supports LocalStack via env).

    Env vars:
      - SQS_QUEUE_URL
      - ENDPOINT_URL (preferred for LocalStack)
      - USE_LOCALSTACK, LOCALSTACK_ENDPOINT_URL, AWS_REGION (legacy)

    Messages are deleted once received; bodies that are not JSON objects are
    logged and dropped.
    """

    queue_url: str | None = None

    def _queue_url(self) -> str:
        value = self.queue_url or os.getenv("SQS_QUEUE_URL")
        if not value:
            raise RuntimeError("Missing SQS_QUEUE_URL")
        return value

    def publish_fix(self, message: Mapping[str, Any]) -> str:
        resp = sqs_client().send_message(
            QueueUrl=self._queue_url(), MessageBody=json.dumps(dict(message))
        )
        return str(resp.get("MessageId", ""))

    def consume_fixes(
        self, *, max_messages: int = 1, wait_time_s: int = 10
    ) -> list[Mapping[str, Any]]:
        sqs = sqs_client()

        try:
            resp = sqs.receive_message(
                QueueUrl=self._queue_url(),
                MaxNumberOfMessages=max(1, min(10, int(max_messages))),
                WaitTimeSeconds=max(0, min(20, int(wait_time_s))),
            )
        except ClientError as exc:
            # LocalStack race: the worker may poll before the init script creates the queue.
            code = exc.response.get("Error", {}).get("Code")
            if code in {"AWS.SimpleQueueService.NonExistentQueue", "QueueDoesNotExist"}:
                return []
            raise

        bodies: list[Mapping[str, Any]] = []
        for msg in resp.get("Messages", []) or []:
            receipt = msg.get("ReceiptHandle")
            if receipt:
                sqs.delete_message(QueueUrl=self._queue_url(), ReceiptHandle=receipt)

            raw_body = msg.get("Body")
            if raw_body is None:
                continue
            try:
                decoded = json.loads(raw_body)
            except json.JSONDecodeError:
                logger.warning("Dropping non-JSON fix message %s", msg.get("MessageId"))
                continue
            if not isinstance(decoded, dict):
                logger.warning("Dropping fix message %s: not an object", msg.get("MessageId"))
                continue
            bodies.append(decoded)

        return bodies
