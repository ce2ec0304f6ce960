"""
Domain exceptions for analytics app.

Exception Hierarchy:
    AnalyticsServiceError (base)
    ├── InvalidDateRangeError
    ├── InvalidParameterError
    └── MissingParameterError

Usage:
    from apps.analytics.exceptions import InvalidDateRangeError

    if start_date > end_date:
        raise InvalidDateRangeError("Start date must be before end date")
"""


class AnalyticsServiceError(Exception):
    """
    Base exception for all analytics service errors.

    Views catch this to turn any analytics error into a 400:

        try:
            data = RetailAnalytics.delivered_by_grade(start, end)
        except AnalyticsServiceError as e:
            return Response({'error': str(e)}, status=400)
    """

    pass


class InvalidDateRangeError(AnalyticsServiceError):
    """
    Raised when date range is invalid.

    Typically when start_date is after end_date.
    """

    pass


class MissingParameterError(AnalyticsServiceError):
    """
    Raised when a required parameter is missing.

    Example:
        raise MissingParameterError("Start date and end date are required")
    """

    pass


class InvalidParameterError(AnalyticsServiceError):
    """
    Raised when a parameter is out of range.

    Example:
        raise InvalidParameterError("Weeks must be a number between 1 and 52")
    """

    pass
