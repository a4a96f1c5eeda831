from functools import wraps

from flask import g, request

from filegate.common.context import get_context
from filegate.common.response import fail
from filegate.services.user_service import UserService


def token_required():
    """校验 Authorization: Bearer <token>，通过后身份放在 g.identity"""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            ctx = get_context()
            identity, err = UserService.resolve(ctx.session, request.headers.get('Authorization'))
            if err:
                return fail(err)
            g.identity = identity
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def get_current_identity():
    return g.identity
