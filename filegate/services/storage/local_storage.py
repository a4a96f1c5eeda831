# services/storage/local_storage.py
import os

from filegate.services.storage.base_storage import BaseStorage, ObjectNotFound, StorageError

STREAM_CHUNK_SIZE = 64 * 1024
# 清洗后的文件名不会包含 ~，临时文件不会与真实 key 冲突
TMP_SUFFIX = ".~part"


class LocalObjectStream:
    def __init__(self, fh):
        self._fh = fh

    def __iter__(self):
        try:
            for chunk in iter(lambda: self._fh.read(STREAM_CHUNK_SIZE), b""):
                yield chunk
        except OSError as e:
            raise StorageError(f"read of {self._fh.name} failed: {e}") from e

    def close(self):
        self._fh.close()


class LocalStorage(BaseStorage):
    """
    开发用的本地目录存储：<root>/<bucket>/<key>
    bucket 目录需要预先创建（与对象存储一致，不自动建 bucket）。
    Content-Type 只记录在元数据库中，本地不保存。
    """

    def __init__(self, root="./storage"):
        self.root = os.path.abspath(root)

    def _bucket_dir(self, bucket):
        path = os.path.abspath(os.path.join(self.root, bucket))
        if os.path.dirname(path) != self.root:
            raise StorageError(f"invalid bucket name: {bucket!r}")
        return path

    def _object_path(self, bucket, key):
        bucket_dir = self._bucket_dir(bucket)
        path = os.path.abspath(os.path.join(bucket_dir, key))
        # key 不能逃逸出 bucket 目录
        if not path.startswith(bucket_dir + os.sep):
            raise StorageError(f"invalid object key: {key!r}")
        return path

    def create_bucket(self, bucket):
        os.makedirs(self._bucket_dir(bucket), exist_ok=True)

    def bucket_exists(self, bucket):
        return os.path.isdir(self._bucket_dir(bucket))

    def object_exists(self, bucket, key):
        return os.path.isfile(self._object_path(bucket, key))

    def stat_object(self, bucket, key):
        path = self._object_path(bucket, key)
        try:
            return os.path.getsize(path)
        except FileNotFoundError as e:
            raise ObjectNotFound(f"{bucket}/{key}") from e
        except OSError as e:
            raise StorageError(f"stat {bucket}/{key} failed: {e}") from e

    def put_object(self, bucket, key, data, content_type):
        if not self.bucket_exists(bucket):
            raise StorageError(f"bucket {bucket} does not exist")
        path = self._object_path(bucket, key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            # 先写临时文件再替换，读者不会看到半截内容
            tmp_path = f"{path}{TMP_SUFFIX}"
            with open(tmp_path, 'wb') as f:
                f.write(data)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"write {bucket}/{key} failed: {e}") from e

    def open_object(self, bucket, key):
        path = self._object_path(bucket, key)
        try:
            return LocalObjectStream(open(path, 'rb'))
        except FileNotFoundError as e:
            raise ObjectNotFound(f"{bucket}/{key}") from e
        except OSError as e:
            raise StorageError(f"open {bucket}/{key} failed: {e}") from e

    def remove_object(self, bucket, key):
        path = self._object_path(bucket, key)
        try:
            os.remove(path)
        except FileNotFoundError as e:
            raise ObjectNotFound(f"{bucket}/{key}") from e
        except OSError as e:
            raise StorageError(f"remove {bucket}/{key} failed: {e}") from e

    def list_keys(self, bucket, prefix=''):
        bucket_dir = self._bucket_dir(bucket)
        for dirpath, _, filenames in os.walk(bucket_dir):
            for name in filenames:
                if name.endswith(TMP_SUFFIX):
                    continue
                rel = os.path.relpath(os.path.join(dirpath, name), bucket_dir)
                key = rel.replace(os.sep, '/')
                if key.startswith(prefix):
                    yield key
