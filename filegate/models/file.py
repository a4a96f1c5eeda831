from sqlalchemy import UniqueConstraint

from filegate.models.base import BaseModel
from filegate.common.db import db


class File(BaseModel):
    __tablename__ = 'files'

    original_name = db.Column(db.String(512), nullable=False)
    # 对象存储中的 key（可包含路径段），在同一个 bucket 内唯一
    unique_name = db.Column(db.String(1024), nullable=False)
    mime_type = db.Column(db.String(255), nullable=False)
    size_bytes = db.Column(db.BigInteger, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    bucket_id = db.Column(db.Integer, db.ForeignKey('buckets.id'), nullable=False, index=True)

    owner = db.relationship('User', back_populates='files')
    bucket = db.relationship('Bucket', back_populates='files')

    __table_args__ = (
        UniqueConstraint('bucket_id', 'unique_name', name='uq_files_bucket_key'),
    )

    def __repr__(self):
        return f'<File {self.id} bucket={self.bucket_id} key={self.unique_name!r}>'
