# manpro\core\responses.py
from rest_framework import status as http_status
from rest_framework.response import Response


def success_response(data=None, message=None, status=http_status.HTTP_200_OK):
    body = {'status': 'success'}
    if message is not None:
        body['message'] = message
    if data is not None:
        body['data'] = data
    return Response(body, status=status)
