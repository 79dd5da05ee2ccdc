from rest_framework.permissions import SAFE_METHODS
from rest_framework.throttling import SimpleRateThrottle


class _ClientRateThrottle(SimpleRateThrottle):
    """Keyed on the client address whether or not the caller is signed in.

    Only writes count against the rate.
    """

    def allow_request(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return super().allow_request(request, view)

    def get_cache_key(self, request, view):
        return self.cache_format % {'scope': self.scope, 'ident': self.get_ident(request)}


class LoginRateThrottle(_ClientRateThrottle):
    scope = 'login'


class RegisterRateThrottle(_ClientRateThrottle):
    scope = 'register'
