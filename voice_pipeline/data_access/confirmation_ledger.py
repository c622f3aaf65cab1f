"""
Cross-instance exactly-once guard for preview confirmation.

Each process keeps its own TaskStore, so two instances could both see the
same preview as pending. Before confirming, an instance claims the preview id
in a DynamoDB table with a conditional put; only the first claim succeeds.

Table layout:
    previewId (S, partition key), taskId, householdId, claimedAt
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .dynamodb_client import DynamoDBClient
from .exceptions import ConditionalCheckFailedError

logger = logging.getLogger(__name__)


class ConfirmationLedger:
    """
    Claims preview ids in DynamoDB.

    Attributes:
        table_name: Ledger table name
        client: DynamoDB client

    Examples:
        >>> ledger = ConfirmationLedger('VoiceTaskConfirmations')
        >>> ledger.claim('prev_1', 'task_1', 'household_1')
        True
        >>> ledger.claim('prev_1', 'task_2', 'household_1')
        False
    """

    def __init__(
        self,
        table_name: str,
        client: Optional[DynamoDBClient] = None,
        region: str = 'us-east-1'
    ):
        self.table_name = table_name
        self.client = client or DynamoDBClient(region=region)

    def claim(self, preview_id: str, task_id: str, household_id: str) -> bool:
        """
        Claim a preview for confirmation.

        Returns:
            True if this caller won the claim, False if it was already claimed

        Raises:
            DynamoDBError: On DynamoDB failures other than a lost claim
        """
        item = {
            'previewId': preview_id,
            'taskId': task_id,
            'householdId': household_id,
            'claimedAt': datetime.now(timezone.utc).isoformat(),
        }

        try:
            self.client.retry_with_backoff(
                lambda: self.client.put_item(
                    table_name=self.table_name,
                    item=item,
                    condition_expression='attribute_not_exists(previewId)'
                )
            )
        except ConditionalCheckFailedError:
            logger.info(f"Preview {preview_id} already claimed by another confirmation")
            return False

        logger.debug(f"Preview {preview_id} claimed for task {task_id}")
        return True

    def release(self, preview_id: str, task_id: str) -> None:
        """
        Drop a claim, only if it is still held for task_id.

        Used when the local confirmation does not go through after a claim.
        """
        try:
            self.client.delete_item(
                table_name=self.table_name,
                key={'previewId': preview_id},
                condition_expression='taskId = :task_id',
                expression_attribute_values={':task_id': task_id}
            )
        except ConditionalCheckFailedError:
            logger.warning(f"Claim on {preview_id} is no longer held by {task_id}")

    def get_claim(self, preview_id: str) -> Optional[Dict[str, Any]]:
        return self.client.get_item(self.table_name, {'previewId': preview_id})
