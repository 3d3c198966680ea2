from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler


class BadRequest(APIException):
    """A request that is well formed but breaks a business rule."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Bad request.'
    default_code = 'bad_request'


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'conflict'


def api_exception_handler(exc, context):
    """
    DRF's handler, with every error body shaped as a dict carrying
    ``detail`` (or per-field errors) plus ``status_code``.
    """
    response = exception_handler(exc, context)
    if response is None:
        return response

    if isinstance(response.data, list):
        detail = response.data[0] if len(response.data) == 1 else response.data
        response.data = {'detail': detail}
    elif isinstance(response.data, dict) and list(response.data) == ['non_field_errors']:
        errors = response.data['non_field_errors']
        response.data = {'detail': errors[0] if len(errors) == 1 else errors}

    if isinstance(response.data, dict):
        response.data['status_code'] = response.status_code
    return response
