"""
Exceptions raised by the confirmation ledger's DynamoDB access.
"""


class DynamoDBError(Exception):
    """Base exception for DynamoDB operations."""
    pass


class ConditionalCheckFailedError(DynamoDBError):
    """Raised when a conditional write loses (the item already exists)."""
    pass


class RetryableError(DynamoDBError):
    """Raised for throttling and other transient DynamoDB failures."""
    pass
