from flask import Blueprint

from filegate.common.auth import get_current_identity, token_required
from filegate.common.context import get_context
from filegate.common.response import fail, success
from filegate.services.user_service import UserService

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/me', methods=['GET'])
@token_required()
def profile():
    return success(UserService.get_profile(get_current_identity()))


@auth_bp.route('/me/token', methods=['POST'])
@token_required()
def regenerate_token():
    # 新 token 只在这里返回一次
    token, err = UserService.regenerate_token(get_context().session, get_current_identity().id)
    if err:
        return fail(err)
    return success({"token": token}, msg="Token regenerated; the previous token no longer works.")
