"""
Data access layer for the DynamoDB confirmation ledger.
"""

from .exceptions import DynamoDBError, ConditionalCheckFailedError, RetryableError
from .dynamodb_client import DynamoDBClient
from .confirmation_ledger import ConfirmationLedger

__all__ = [
    'DynamoDBError',
    'ConditionalCheckFailedError',
    'RetryableError',
    'DynamoDBClient',
    'ConfirmationLedger',
]
