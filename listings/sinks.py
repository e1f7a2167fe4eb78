# listings/sinks.py

from rest_framework.exceptions import NotAuthenticated
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

HOME_PATH = '/'
SIGN_IN_PATH = '/sign-in'
PROFILE_PATH = '/profile'


def category_path(listing_type, listing_id):
    return f"/category/{listing_type}/{listing_id}"


class ResponseSink:
    """
    Collects toast-style messages and a navigation target while a request is
    handled, then renders them into the API response.
    """

    def __init__(self):
        self.messages = []
        self.redirect = None

    def notify(self, level, text):
        self.messages.append({'level': level, 'text': text})

    def success(self, text):
        self.notify('success', text)

    def error(self, text):
        self.notify('error', text)

    def info(self, text):
        self.notify('info', text)

    def navigate(self, path):
        self.redirect = path

    def response(self, status_code, **payload):
        data = {'messages': self.messages, 'redirect': self.redirect}
        data.update({key: value for key, value in payload.items() if value is not None})
        return Response(data, status=status_code)


def exception_handler(exc, context):
    """DRF's handler, plus a sign-in redirect for anonymous callers."""
    response = drf_exception_handler(exc, context)
    if response is not None and isinstance(exc, NotAuthenticated):
        response.data['redirect'] = SIGN_IN_PATH
    return response
