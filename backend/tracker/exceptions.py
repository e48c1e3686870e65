"""
Domain exceptions and the API exception handler.

Every error leaves the API in one envelope:
    {"error": {"code": "...", "message": "...", "messages": [...], "details": {...}}}
"""
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status, exceptions as drf_exceptions
import logging

logger = logging.getLogger(__name__)


class MilestoneOrderError(drf_exceptions.APIException):
    """A milestone toggle that would break chronological completion."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Milestones must be completed in order.'
    default_code = 'milestone_order'


class InvalidRuleConfig(drf_exceptions.APIException):
    """Automation rule config does not match its type."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid automation rule configuration.'
    default_code = 'invalid_rule_config'


class RuleRunningError(drf_exceptions.APIException):
    """An automation rule cannot be edited while a poller holds its claim."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Rule is running; try again once it finishes.'
    default_code = 'rule_running'


def _collect_messages_from_response_data(response_data):
    """Build a list of human-readable messages from DRF error response data."""
    messages = []
    if isinstance(response_data, dict):
        # DRF returns {'field': ['msg']} or {'detail': 'msg'}
        if 'detail' in response_data and not isinstance(response_data.get('detail'), (dict, list)):
            messages.append(str(response_data['detail']))
        for field, value in response_data.items():
            if field == 'detail':
                continue
            if isinstance(value, (list, tuple)) and value:
                msg = str(value[0])
            else:
                msg = str(value)
            if field == 'non_field_errors':
                messages.append(msg)
                continue
            field_label = str(field).replace('_', ' ').capitalize()
            messages.append(f"{field_label}: {msg}")
    elif isinstance(response_data, (list, tuple)):
        for v in response_data:
            if v:
                messages.append(str(v))
    elif response_data:
        messages.append(str(response_data))
    return messages


def custom_exception_handler(exc, context):
    """
    Render DRF exceptions in the project's error envelope.

    Returns:
        Response with format:
        {
            "error": {
                "code": "error_code",
                "message": "User-friendly error message",
                "details": {...}  # Optional field-specific errors
            }
        }
    """
    view = context.get('view') if isinstance(context, dict) else None
    logger.debug(f"custom_exception_handler invoked: exc={exc!r}, view={view!r}")

    response = exception_handler(exc, context)

    if response is not None:
        # Auth failures always surface as 401 so clients can re-auth
        if isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
            response.status_code = status.HTTP_401_UNAUTHORIZED

        messages = _collect_messages_from_response_data(response.data)
        custom_response_data = {
            'error': {
                'code': get_error_code(exc, response.status_code),
                'message': (messages[0] if messages else get_error_message(exc, response.data)),
            }
        }
        if messages:
            custom_response_data['error']['messages'] = messages

        if isinstance(response.data, dict):
            details = {}
            for field, errors in response.data.items():
                if field == 'detail':
                    continue
                if isinstance(errors, list):
                    details[field] = errors[0] if errors else 'Invalid value'
                else:
                    details[field] = str(errors)

            if details:
                custom_response_data['error']['details'] = details

        response.data = custom_response_data
    else:
        logger.error(f"Unhandled exception: {exc}", exc_info=True)

        response = Response(
            {
                'error': {
                    'code': 'internal_server_error',
                    'message': 'An unexpected error occurred. Please try again later.',
                }
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return response


def get_error_code(exc, status_code):
    """Generate error code from exception."""
    if hasattr(exc, 'default_code'):
        return exc.default_code

    code_map = {
        400: 'bad_request',
        401: 'unauthorized',
        403: 'forbidden',
        404: 'not_found',
        405: 'method_not_allowed',
        409: 'conflict',
        429: 'too_many_requests',
        500: 'internal_server_error',
    }

    return code_map.get(status_code, 'error')


def get_error_message(exc, response_data):
    """Extract user-friendly error message."""
    if hasattr(exc, 'detail'):
        detail = exc.detail
        if isinstance(detail, dict):
            for value in detail.values():
                if isinstance(value, list) and value:
                    return str(value[0])
                return str(value)
        return str(detail)

    if isinstance(response_data, dict):
        if 'detail' in response_data:
            return str(response_data['detail'])
        for value in response_data.values():
            if isinstance(value, list) and value:
                return str(value[0])
            return str(value)

    return 'An error occurred'
