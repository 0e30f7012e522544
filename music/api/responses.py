from rest_framework import status as http_status
from rest_framework.response import Response


def api_response(data=None, message="Success", status=http_status.HTTP_200_OK, **kwargs):
    """Wrap *data* in the {statusCode, data, message, success} envelope."""
    return Response(
        {
            "statusCode": status,
            "data": data,
            "message": message,
            "success": status < 400,
        },
        status=status,
        **kwargs,
    )
