from sqlalchemy import exists

from filegate.models.bucket import Membership


class AccessPolicy:
    """
    权限判断。成员关系需要查库，可能抛 SQLAlchemyError，由调用方处理。
    - 写（上传）：管理员或 bucket 成员
    - 读（info/下载）：管理员、文件上传者或 bucket 成员
    - 删除：管理员或文件上传者（成员关系不授予删除权）
    """

    @staticmethod
    def is_member(session, identity, bucket_id):
        return session.query(
            exists().where(
                Membership.user_id == identity.id,
                Membership.bucket_id == bucket_id,
            )
        ).scalar()

    @staticmethod
    def can_write(session, identity, bucket):
        if identity.is_admin:
            return True
        return AccessPolicy.is_member(session, identity, bucket.id)

    @staticmethod
    def can_access(session, identity, file):
        if identity.is_admin or file.user_id == identity.id:
            return True
        return AccessPolicy.is_member(session, identity, file.bucket_id)

    @staticmethod
    def can_delete(identity, file):
        return identity.is_admin or file.user_id == identity.id
