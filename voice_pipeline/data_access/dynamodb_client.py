"""
Thin DynamoDB client used by the confirmation ledger.
"""

import logging
import random
import time
from typing import Any, Callable, Dict, Optional

import boto3
from botocore.exceptions import ClientError

from .exceptions import ConditionalCheckFailedError, DynamoDBError, RetryableError

logger = logging.getLogger(__name__)


RETRYABLE_ERROR_CODES = {
    'ProvisionedThroughputExceededException',
    'ThrottlingException',
    'RequestLimitExceeded',
    'InternalServerError',
    'ServiceUnavailable',
}


def _translate_client_error(e: ClientError, action: str, table_name: str) -> DynamoDBError:
    code = e.response['Error']['Code']
    if code == 'ConditionalCheckFailedException':
        return ConditionalCheckFailedError("Conditional check failed")
    if code in RETRYABLE_ERROR_CODES:
        return RetryableError(f"Transient failure to {action} in {table_name}: {code}")
    logger.error(f"Error trying to {action} in {table_name}: {e}")
    return DynamoDBError(f"Failed to {action}: {e}")


class DynamoDBClient:
    """
    DynamoDB table access with conditional writes and retry on throttling.

    Errors are translated: a lost condition raises ConditionalCheckFailedError,
    throttling raises RetryableError, anything else raises DynamoDBError.
    """

    def __init__(self, region: str = 'us-east-1'):
        """
        Initialize DynamoDB client.

        Args:
            region: AWS region for DynamoDB
        """
        self.dynamodb = boto3.resource('dynamodb', region_name=region)

    def get_table(self, table_name: str):
        return self.dynamodb.Table(table_name)

    def get_item(
        self,
        table_name: str,
        key: Dict[str, Any],
        consistent_read: bool = True
    ) -> Optional[Dict[str, Any]]:
        """
        Get an item by primary key.

        Returns:
            Item dict or None if not found

        Raises:
            DynamoDBError: On DynamoDB errors
        """
        try:
            response = self.get_table(table_name).get_item(
                Key=key,
                ConsistentRead=consistent_read
            )
            return response.get('Item')
        except ClientError as e:
            raise _translate_client_error(e, 'get item', table_name) from e

    def put_item(
        self,
        table_name: str,
        item: Dict[str, Any],
        condition_expression: Optional[str] = None
    ) -> None:
        """
        Put an item, optionally guarded by a condition.

        Raises:
            ConditionalCheckFailedError: If the condition check fails
            DynamoDBError: On other DynamoDB errors
        """
        kwargs: Dict[str, Any] = {'Item': item}
        if condition_expression:
            kwargs['ConditionExpression'] = condition_expression

        try:
            self.get_table(table_name).put_item(**kwargs)
        except ClientError as e:
            raise _translate_client_error(e, 'put item', table_name) from e

    def delete_item(
        self,
        table_name: str,
        key: Dict[str, Any],
        condition_expression: Optional[str] = None,
        expression_attribute_values: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Delete an item, optionally guarded by a condition.

        Raises:
            ConditionalCheckFailedError: If the condition check fails
            DynamoDBError: On other DynamoDB errors
        """
        kwargs: Dict[str, Any] = {'Key': key}
        if condition_expression:
            kwargs['ConditionExpression'] = condition_expression
        if expression_attribute_values:
            kwargs['ExpressionAttributeValues'] = expression_attribute_values

        try:
            self.get_table(table_name).delete_item(**kwargs)
        except ClientError as e:
            raise _translate_client_error(e, 'delete item', table_name) from e

    def retry_with_backoff(
        self,
        operation: Callable[[], Any],
        max_retries: int = 3,
        base_delay: float = 0.2
    ) -> Any:
        """
        Run an operation, retrying RetryableError with exponential backoff.

        Args:
            operation: Callable to run
            max_retries: Maximum attempts
            base_delay: Initial delay in seconds

        Returns:
            Operation result

        Raises:
            RetryableError: If every attempt was throttled
            DynamoDBError: Non-transient failures, immediately
        """
        for attempt in range(max_retries):
            try:
                return operation()
            except RetryableError as e:
                if attempt == max_retries - 1:
                    raise

                delay = base_delay * (2 ** attempt)
                sleep_time = delay + random.uniform(0, 0.1 * delay)
                logger.warning(
                    f"Retry attempt {attempt + 1}/{max_retries} "
                    f"after {sleep_time:.2f}s: {e}"
                )
                time.sleep(sleep_time)
