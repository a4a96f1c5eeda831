# services/storage/base_storage.py
from abc import ABC, abstractmethod


class StorageError(Exception):
    """对象存储操作失败（非“不存在”类错误）"""


class ObjectNotFound(StorageError):
    """bucket 中不存在该对象"""


class BaseStorage(ABC):
    """
    对象存储接口，按 (bucket, key) 寻址。
    "not found" 统一抛 ObjectNotFound，其余失败抛 StorageError，
    由调用方决定“不存在”是成功（删除）还是 404（下载）。
    """

    @abstractmethod
    def bucket_exists(self, bucket):
        pass

    @abstractmethod
    def object_exists(self, bucket, key):
        pass

    @abstractmethod
    def stat_object(self, bucket, key):
        """Return the object's size in bytes. Raises ObjectNotFound."""
        pass

    @abstractmethod
    def put_object(self, bucket, key, data, content_type):
        pass

    @abstractmethod
    def open_object(self, bucket, key):
        """Return an iterator of byte chunks with a close() method. Raises ObjectNotFound."""
        pass

    @abstractmethod
    def remove_object(self, bucket, key):
        """Raises ObjectNotFound if the backend reports the object missing."""
        pass

    @abstractmethod
    def list_keys(self, bucket, prefix=''):
        """Yield every object key in the bucket under prefix."""
        pass
