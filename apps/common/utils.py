"""
Common utility functions for API responses
"""
from rest_framework.response import Response
from rest_framework import status


def success_response(data=None, message="Success", status_code=status.HTTP_200_OK):
    """
    Standard success response envelope: {success, data, message}
    """
    response_data = {
        "success": True,
        "message": message,
    }
    if data is not None:
        response_data["data"] = data
    return Response(response_data, status=status_code)


def error_response(message="Error", error="error", data=None, status_code=status.HTTP_400_BAD_REQUEST):
    """
    Standard error response envelope: {success, data, message, error}

    ``error`` is a stable machine-readable code, ``data`` carries any
    structured details (shortfall, missing badge ids, field errors).
    """
    response_data = {
        "success": False,
        "message": message,
        "error": error,
    }
    if data:
        response_data["data"] = data
    return Response(response_data, status=status_code)
