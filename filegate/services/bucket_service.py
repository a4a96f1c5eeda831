import logging

from filegate.models.bucket import Bucket, Membership

logger = logging.getLogger(__name__)


class BucketService:
    """管理类操作：登记 bucket、授予成员权限（无 HTTP 入口）"""

    @staticmethod
    def create_bucket(session, name):
        bucket = Bucket(name=name)
        session.add(bucket)
        session.commit()
        logger.info("Registered bucket %s", name)
        return bucket

    @staticmethod
    def get_by_name(session, name):
        return session.query(Bucket).filter_by(name=name).first()

    @staticmethod
    def add_member(session, user, bucket):
        exists = session.get(Membership, (user.id, bucket.id))
        if exists is None:
            session.add(Membership(user_id=user.id, bucket_id=bucket.id))
            session.commit()
            logger.info("Granted user %s access to bucket %s", user.id, bucket.name)
        return True

    @staticmethod
    def remove_member(session, user, bucket):
        membership = session.get(Membership, (user.id, bucket.id))
        if membership is None:
            return False
        session.delete(membership)
        session.commit()
        logger.info("Revoked user %s access to bucket %s", user.id, bucket.name)
        return True
