import logging

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from filegate.services.storage.base_storage import BaseStorage, ObjectNotFound, StorageError

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {'404', 'NoSuchKey', 'NotFound'}
STREAM_CHUNK_SIZE = 64 * 1024


def _error_code(err):
    return str(err.response.get('Error', {}).get('Code', ''))


class S3ObjectStream:
    """包装 boto3 StreamingBody：按块迭代，close() 释放底层连接"""

    def __init__(self, body, bucket, key):
        self._body = body
        self.bucket = bucket
        self.key = key

    def __iter__(self):
        try:
            for chunk in self._body.iter_chunks(chunk_size=STREAM_CHUNK_SIZE):
                yield chunk
        except (BotoCoreError, ClientError, OSError) as e:
            raise StorageError(f"stream of {self.bucket}/{self.key} failed: {e}") from e

    def close(self):
        self._body.close()


class S3Storage(BaseStorage):
    """S3 兼容的对象存储（AWS S3 / MinIO），bucket 由调用方指定"""

    def __init__(self, client=None, endpoint_url=None, access_key=None, secret_key=None, region='us-east-1'):
        if client is None:
            client = boto3.client(
                's3',
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
                # MinIO 使用 path-style 寻址
                config=BotoConfig(signature_version='s3v4', s3={'addressing_style': 'path'}),
            )
        self.s3 = client

    def bucket_exists(self, bucket):
        try:
            self.s3.head_bucket(Bucket=bucket)
            return True
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES | {'NoSuchBucket'}:
                return False
            raise StorageError(f"head_bucket {bucket} failed: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"head_bucket {bucket} failed: {e}") from e

    def object_exists(self, bucket, key):
        try:
            self.stat_object(bucket, key)
            return True
        except ObjectNotFound:
            return False

    def stat_object(self, bucket, key):
        try:
            resp = self.s3.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                raise ObjectNotFound(f"{bucket}/{key}") from e
            raise StorageError(f"head_object {bucket}/{key} failed: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"head_object {bucket}/{key} failed: {e}") from e
        return resp['ContentLength']

    def put_object(self, bucket, key, data, content_type):
        try:
            self.s3.put_object(Bucket=bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"put_object {bucket}/{key} failed: {e}") from e
        logger.debug("put_object %s/%s (%d bytes)", bucket, key, len(data))

    def open_object(self, bucket, key):
        try:
            resp = self.s3.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                raise ObjectNotFound(f"{bucket}/{key}") from e
            raise StorageError(f"get_object {bucket}/{key} failed: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"get_object {bucket}/{key} failed: {e}") from e
        return S3ObjectStream(resp['Body'], bucket, key)

    def remove_object(self, bucket, key):
        # S3 对不存在的 key 删除也返回 204；MinIO 个别版本会返回 NoSuchKey
        try:
            self.s3.delete_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                raise ObjectNotFound(f"{bucket}/{key}") from e
            raise StorageError(f"delete_object {bucket}/{key} failed: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"delete_object {bucket}/{key} failed: {e}") from e

    def list_keys(self, bucket, prefix=''):
        paginator = self.s3.get_paginator('list_objects_v2')
        try:
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                for obj in page.get('Contents', []):
                    yield obj['Key']
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"list_objects_v2 {bucket} failed: {e}") from e
