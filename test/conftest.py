import io
from types import SimpleNamespace

import boto3
import pytest
from moto import mock_aws

from filegate.app import create_app
from filegate.common.context import EXTENSION_KEY
from filegate.common.db import db
from filegate.services.bucket_service import BucketService
from filegate.services.storage.s3_storage import S3Storage
from filegate.services.user_service import UserService

BUCKET = "docs"
PUBLIC_BASE = "http://files.test"

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    "PUBLIC_FILE_URL_BASE": PUBLIC_BASE,
    "MAX_CONTENT_LENGTH": 64 * 1024,
}


@pytest.fixture
def s3_client():
    """moto 模拟的 S3，预先创建 docs bucket"""
    with mock_aws():
        client = boto3.client(
            "s3",
            region_name="us-east-1",
            aws_access_key_id="testing",
            aws_secret_access_key="testing",
        )
        client.create_bucket(Bucket=BUCKET)
        yield client


@pytest.fixture
def storage(s3_client):
    return S3Storage(client=s3_client)


@pytest.fixture
def test_app(storage):
    app = create_app(TEST_CONFIG, storage=storage)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(test_app):
    return test_app.test_client()


@pytest.fixture
def ctx(test_app):
    return test_app.extensions[EXTENSION_KEY]


@pytest.fixture
def seed(test_app):
    """admin；alice、bob 为 docs 成员；mallory 无任何关系"""
    session = db.session
    bucket = BucketService.create_bucket(session, BUCKET)
    admin = UserService.create_user(session, "admin", is_admin=True)
    alice = UserService.create_user(session, "alice")
    bob = UserService.create_user(session, "bob")
    mallory = UserService.create_user(session, "mallory")
    BucketService.add_member(session, alice, bucket)
    BucketService.add_member(session, bob, bucket)
    return SimpleNamespace(bucket=bucket, admin=admin, alice=alice, bob=bob, mallory=mallory)


def auth_headers(user):
    return {"Authorization": f"Bearer {user.api_token}"}


def upload(client, user, name="hello.txt", content=b"hello world", bucket=BUCKET,
           path=None, replace=None, content_type="text/plain"):
    data = {"file": (io.BytesIO(content), name, content_type), "bucketName": bucket}
    if path is not None:
        data["path"] = path
    if replace is not None:
        data["replace"] = "true" if replace else "false"
    return client.post("/file/upload", headers=auth_headers(user), data=data, content_type="multipart/form-data")
