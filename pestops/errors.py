"""Exceptions for Pest Ops Workforce Analytics"""
from config import ERROR_MESSAGES


class RecordFetchError(Exception):
    """A query against the record store failed"""

    def __init__(self, entity: str, cause: Exception = None):
        self.entity = entity
        self.cause = cause
        self.user_message = ERROR_MESSAGES['fetch_failed'].format(entity=entity)
        detail = f": {cause}" if cause else ""
        super().__init__(f"{self.user_message}{detail}")


class AggregationError(Exception):
    """The analytics payload could not be computed; nothing partial is returned"""

    def __init__(self, reason: str, cause: Exception = None):
        self.reason = reason
        self.cause = cause
        self.user_message = ERROR_MESSAGES['aggregation_failed'].format(reason=reason)
        super().__init__(self.user_message)
