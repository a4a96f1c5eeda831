import logging

from sqlalchemy.exc import SQLAlchemyError

from filegate.common import errors
from filegate.models.file import File
from filegate.services.bucket_service import BucketService
from filegate.services.storage.base_storage import StorageError

logger = logging.getLogger(__name__)


class ReconcileService:
    @staticmethod
    def find_drift(ctx, identity, bucket_name):
        """
        对比某个 bucket 的元数据与对象存储，只读不修复：
        - missingObjects: 有元数据行但对象不存在
        - orphanObjects: 有对象但没有元数据行
        """
        if not identity.is_admin:
            return None, errors.forbidden('Only administrators can inspect storage drift.')
        if not bucket_name:
            return None, errors.invalid_request('Parameter "bucketName" is required (query).')
        session = ctx.session
        try:
            bucket = BucketService.get_by_name(session, bucket_name)
            if bucket is None:
                return None, errors.not_found(f'Bucket "{bucket_name}" not found.', 'BUCKET_NOT_FOUND')
            recorded = {
                key for (key,) in session.query(File.unique_name).filter(File.bucket_id == bucket.id)
            }
        except SQLAlchemyError:
            logger.exception("Metadata scan failed for bucket %s", bucket_name)
            session.rollback()
            return None, errors.internal('Metadata scan failed.')

        try:
            stored = set(ctx.storage.list_keys(bucket_name))
        except StorageError:
            logger.exception("Object listing failed for bucket %s", bucket_name)
            return None, errors.storage_fault('Object listing failed.')

        missing = sorted(recorded - stored)
        orphans = sorted(stored - recorded)
        if missing or orphans:
            logger.warning("Bucket %s drift: %d missing objects, %d orphan objects",
                           bucket_name, len(missing), len(orphans))
        return {
            "bucket": bucket_name,
            "missingObjects": missing,
            "orphanObjects": orphans,
        }, None
