import secrets

from filegate.models.base import BaseModel
from filegate.common.db import db


def generate_api_token():
    """64 位十六进制的随机 token"""
    return secrets.token_hex(32)


class User(BaseModel):
    __tablename__ = 'users'

    name = db.Column(db.String(128), nullable=False)
    api_token = db.Column(db.String(64), unique=True, nullable=False, index=True, default=generate_api_token)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)

    files = db.relationship('File', back_populates='owner', lazy='dynamic')
    buckets = db.relationship('Bucket', secondary='memberships', back_populates='members', lazy='dynamic')

    def __repr__(self):
        return f'<User {self.id} {self.name!r} admin={self.is_admin}>'
