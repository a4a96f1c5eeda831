# services/file_service.py
"""
Upload / delete / info / download pipelines.

Every pipeline returns (result, None) or (None, ServiceError). The object
store is always mutated before the metadata store; the two are not updated
atomically, so a failure between the steps leaves drift that
ReconcileService.find_drift can report.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from filegate.common import errors
from filegate.models.bucket import Bucket
from filegate.models.file import File
from filegate.models.user import User
from filegate.services.access_policy import AccessPolicy
from filegate.services.bucket_service import BucketService
from filegate.services.name_resolver import (
    build_key,
    generated_name,
    resolve_unique_key,
    sanitize_filename,
    sanitize_path,
)
from filegate.services.storage.base_storage import ObjectNotFound, StorageError

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = 'application/octet-stream'


def _valid_location(bucket_name, key):
    # JSON 请求体里的参数可能是任意类型
    return isinstance(bucket_name, str) and isinstance(key, str) and bool(bucket_name) and bool(key)


def _file_query(session, bucket_name, key):
    # key 按 bucket 名联查，避免误操作其他 bucket 下的同名 key
    return (
        session.query(File)
        .join(Bucket, File.bucket_id == Bucket.id)
        .filter(File.unique_name == key, Bucket.name == bucket_name)
    )


class FileService:
    @staticmethod
    def upload(ctx, identity, bucket_name, data, original_name, mime_type=None, path='', replace=False):
        if data is None:
            return None, errors.invalid_request("No file uploaded (field 'file' is required).", 'FILE_REQUIRED')
        if not bucket_name:
            return None, errors.invalid_request("Bucket name not provided (field 'bucketName' is required).",
                                                'BUCKET_NAME_REQUIRED')
        session, storage = ctx.session, ctx.storage
        mime_type = mime_type or DEFAULT_MIME_TYPE

        # 1. bucket 必须已登记在元数据库，且调用方有写权限
        try:
            bucket = BucketService.get_by_name(session, bucket_name)
            if bucket is None:
                return None, errors.not_found(f'Bucket "{bucket_name}" not found or not allowed.', 'BUCKET_NOT_FOUND')
            if not AccessPolicy.can_write(session, identity, bucket):
                return None, errors.forbidden('User is not allowed to upload to this bucket.')
        except SQLAlchemyError:
            logger.exception("Bucket lookup failed for %s", bucket_name)
            session.rollback()
            return None, errors.internal('Bucket lookup failed.')

        # 2. 对象存储中也必须存在该 bucket（防止元数据与存储不一致）
        try:
            if not storage.bucket_exists(bucket_name):
                logger.warning("Upload to bucket %s which is missing from storage", bucket_name)
                return None, errors.not_found(f'Bucket "{bucket_name}" does not exist in storage.',
                                              'STORAGE_BUCKET_NOT_FOUND')
        except StorageError:
            logger.exception("bucket_exists failed for %s", bucket_name)
            return None, errors.storage_fault('Storage bucket check failed.')

        # 3. 清洗路径与文件名
        safe_path = sanitize_path(path)
        safe_name = sanitize_filename(original_name)
        if not safe_name:
            safe_name = generated_name(original_name)
            logger.warning("Filename %r sanitized to nothing, using %s", original_name, safe_name)
        candidate_key = build_key(safe_path, safe_name)

        # 4. 确定最终 key：replace 覆盖原 key，否则找一个不冲突的 key
        existing = None
        try:
            if replace:
                key = candidate_key
                existing = session.query(File).filter_by(unique_name=key, bucket_id=bucket.id).first()
            else:
                key = resolve_unique_key(storage, bucket_name, candidate_key)
        except SQLAlchemyError:
            logger.exception("File lookup failed for %s/%s", bucket_name, candidate_key)
            session.rollback()
            return None, errors.internal('File lookup failed.')
        except StorageError:
            logger.exception("Key resolution failed for %s/%s", bucket_name, candidate_key)
            return None, errors.storage_fault('Could not check object existence in storage.')

        # 5. 先写对象存储
        size = len(data)
        try:
            storage.put_object(bucket_name, key, data, mime_type)
        except StorageError:
            logger.exception("Object write failed for %s/%s", bucket_name, key)
            return None, errors.storage_fault('Object write failed.')

        # 6. 再写元数据；此时对象已写入，元数据失败不影响本次请求结果
        created = existing is None
        file_id = None
        metadata_synced = True
        try:
            if existing is not None:
                existing.original_name = original_name
                existing.mime_type = mime_type
                existing.size_bytes = size
                existing.user_id = identity.id  # 记录最后一次上传者
                record = existing
            else:
                record = File(
                    original_name=original_name,
                    unique_name=key,
                    mime_type=mime_type,
                    size_bytes=size,
                    user_id=identity.id,
                    bucket_id=bucket.id,
                )
                session.add(record)
            session.commit()
            file_id = record.id
        except IntegrityError:
            # 并发上传解析到同一个 key：对象已被覆盖，元数据行属于先提交的一方
            session.rollback()
            metadata_synced = False
            logger.error("Metadata drift: key %s/%s already claimed by another upload", bucket_name, key)
        except SQLAlchemyError:
            session.rollback()
            metadata_synced = False
            logger.exception("Metadata drift: object %s/%s written but metadata write failed", bucket_name, key)

        if metadata_synced:
            logger.info("%s %s/%s (%d bytes) by user %s",
                        "Stored" if created else "Replaced", bucket_name, key, size, identity.id)

        return {
            "fileId": file_id,
            "fileName": key,
            "originalName": original_name,
            "mimeType": mime_type,
            "size": size,
            "bucket": bucket_name,
            "url": ctx.public_url(bucket_name, key),
            # 只有真正新建了元数据行才算 created
            "created": created and metadata_synced,
            "metadataSynced": metadata_synced,
        }, None

    @staticmethod
    def delete(ctx, identity, bucket_name, key):
        if not _valid_location(bucket_name, key):
            return None, errors.invalid_request('Fields "bucketName" and "path" are required and must be strings.')
        session, storage = ctx.session, ctx.storage

        try:
            record = _file_query(session, bucket_name, key).first()
        except SQLAlchemyError:
            logger.exception("File lookup failed for %s/%s", bucket_name, key)
            session.rollback()
            return None, errors.internal('File lookup failed.')
        if record is None:
            return None, errors.not_found('File not found in database for this bucket and path.', 'FILE_NOT_FOUND')

        if not AccessPolicy.can_delete(identity, record):
            return None, errors.forbidden('User is not allowed to delete this file.')

        # 对象已不存在也算成功：目标状态（对象不存在）已经达成
        try:
            storage.remove_object(bucket_name, key)
            logger.info("Removed object %s/%s", bucket_name, key)
        except ObjectNotFound:
            logger.warning("Object %s/%s already missing from storage, removing metadata only", bucket_name, key)
        except StorageError:
            logger.exception("Object removal failed for %s/%s", bucket_name, key)
            return None, errors.storage_fault('Object removal failed.')

        try:
            session.delete(record)
            session.commit()
        except SQLAlchemyError:
            logger.exception("Metadata drift: object %s/%s removed but row delete failed", bucket_name, key)
            session.rollback()
            return None, errors.internal('Metadata delete failed.')

        logger.info("Deleted file %s/%s by user %s", bucket_name, key, identity.id)
        return {}, None

    @staticmethod
    def find_and_authorize(ctx, identity, bucket_name, key, source='body'):
        """info 与下载共用：查找文件记录并校验读权限"""
        if not _valid_location(bucket_name, key):
            return None, errors.invalid_request(
                f'Parameters "bucketName" and "path" are required and must be strings ({source}).')
        session = ctx.session
        try:
            row = (
                _file_query(session, bucket_name, key)
                .outerjoin(User, File.user_id == User.id)
                .with_entities(File, Bucket, User)
                .first()
            )
            if row is None:
                return None, errors.not_found('File not found in database for this bucket and path.',
                                              'FILE_NOT_FOUND')
            record, bucket, uploader = row
            if not AccessPolicy.can_access(session, identity, record):
                return None, errors.forbidden('User is not allowed to access this file.')
        except SQLAlchemyError:
            logger.exception("File lookup failed for %s/%s", bucket_name, key)
            session.rollback()
            return None, errors.internal('File lookup failed.')
        return (record, bucket, uploader), None

    @staticmethod
    def info(ctx, identity, bucket_name, key):
        found, err = FileService.find_and_authorize(ctx, identity, bucket_name, key, source='body')
        if err:
            return None, err
        record, bucket, uploader = found
        return {
            "fileId": record.id,
            "path": record.unique_name,
            "originalName": record.original_name,
            "mimeType": record.mime_type,
            "size": record.size_bytes,
            "bucket": bucket.name,
            "uploadedAt": record.created_at.isoformat(),
            "lastModified": record.updated_at.isoformat(),
            "uploader": uploader.name if uploader else None,
            "url": ctx.public_url(bucket.name, record.unique_name),
        }, None

    @staticmethod
    def download(ctx, identity, bucket_name, key):
        """返回下载所需的头信息与对象流；流由调用方负责 close()"""
        found, err = FileService.find_and_authorize(ctx, identity, bucket_name, key, source='query')
        if err:
            return None, err
        record, bucket, _ = found

        storage = ctx.storage
        try:
            size = storage.stat_object(bucket.name, record.unique_name)
            stream = storage.open_object(bucket.name, record.unique_name)
        except ObjectNotFound:
            # 可能是并发删除，或元数据与存储不一致
            logger.warning("Object %s/%s missing from storage during download", bucket.name, record.unique_name)
            return None, errors.not_found('File not found in storage.', 'STORAGE_OBJECT_NOT_FOUND')
        except StorageError:
            logger.exception("Could not open %s/%s for download", bucket.name, record.unique_name)
            return None, errors.storage_fault('Error accessing the file in storage.')

        return {
            "downloadName": sanitize_filename(record.original_name) or 'download',
            "mimeType": record.mime_type,
            "size": size,
            "bucket": bucket.name,
            "key": record.unique_name,
            "stream": stream,
        }, None
