import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from filegate.common import errors
from filegate.models.user import User, generate_api_token

logger = logging.getLogger(__name__)

BEARER_PREFIX = 'bearer'


@dataclass(frozen=True)
class Identity:
    """调用方身份，不包含 token 本身"""
    id: int
    name: str
    is_admin: bool

    @classmethod
    def from_user(cls, user):
        return cls(id=user.id, name=user.name, is_admin=bool(user.is_admin))


def extract_bearer_token(auth_header):
    """'Bearer <token>' -> token；格式不对返回 None"""
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != BEARER_PREFIX:
        return None
    return parts[1]


class UserService:
    @staticmethod
    def resolve(session, auth_header):
        """Authorization 头 -> (Identity, None) 或 (None, ServiceError)"""
        token = extract_bearer_token(auth_header)
        if token is None:
            return None, errors.unauthenticated('Authentication token not provided.')
        try:
            user = session.query(User).filter_by(api_token=token).first()
        except SQLAlchemyError:
            logger.exception("Token lookup failed")
            session.rollback()
            return None, errors.internal('Token lookup failed.')
        if user is None:
            return None, errors.invalid_credential('Invalid or expired token.')
        return Identity.from_user(user), None

    @staticmethod
    def create_user(session, name, is_admin=False):
        user = User(name=name, is_admin=is_admin, api_token=generate_api_token())
        session.add(user)
        session.commit()
        logger.info("Created user %s (admin=%s)", user.id, is_admin)
        return user

    @staticmethod
    def regenerate_token(session, user_id):
        """生成新 token，旧 token 立即失效；返回新 token"""
        user = session.get(User, user_id)
        if user is None:
            return None, errors.not_found('User not found.')
        try:
            user.api_token = generate_api_token()
            session.commit()
        except SQLAlchemyError:
            logger.exception("Token regeneration failed for user %s", user_id)
            session.rollback()
            return None, errors.internal('Token regeneration failed.')
        logger.info("Regenerated token for user %s", user_id)
        return user.api_token, None

    @staticmethod
    def get_profile(identity):
        return {"id": identity.id, "name": identity.name, "isAdmin": identity.is_admin}
