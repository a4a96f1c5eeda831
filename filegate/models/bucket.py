from filegate.models.base import BaseModel, utcnow
from filegate.common.db import db


class Bucket(BaseModel):
    """元数据库中的 bucket，name 同时也是对象存储中的 bucket 名"""
    __tablename__ = 'buckets'

    name = db.Column(db.String(63), unique=True, nullable=False, index=True)

    files = db.relationship('File', back_populates='bucket', lazy='dynamic')
    members = db.relationship('User', secondary='memberships', back_populates='buckets', lazy='dynamic')

    def __repr__(self):
        return f'<Bucket {self.id} {self.name!r}>'


class Membership(db.Model):
    """用户-bucket 授权关系：存在即拥有非管理员的上传/读取权限"""
    __tablename__ = 'memberships'

    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    bucket_id = db.Column(db.Integer, db.ForeignKey('buckets.id', ondelete='CASCADE'), primary_key=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f'<Membership user={self.user_id} bucket={self.bucket_id}>'
