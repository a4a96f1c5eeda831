from filegate.services.storage.local_storage import LocalStorage
from filegate.services.storage.s3_storage import S3Storage


def build_storage(config):
    """根据配置选择存储后端"""
    if config.get("STORAGE_BACKEND", "s3") == "local":
        return LocalStorage(root=config.get("LOCAL_STORAGE_ROOT", "./storage"))
    return S3Storage(
        endpoint_url=config.get("S3_ENDPOINT_URL"),
        access_key=config.get("S3_ACCESS_KEY"),
        secret_key=config.get("S3_SECRET_KEY"),
        region=config.get("S3_REGION", "us-east-1"),
    )
