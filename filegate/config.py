import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'super-secret')

    # 元数据库（生产环境用 PostgreSQL，开发默认 SQLite）
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///filegate.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # 存储后端选择：s3 或 local
    STORAGE_BACKEND = os.getenv('STORAGE_BACKEND', 's3')

    # S3 / MinIO
    S3_ENDPOINT_URL = os.getenv('S3_ENDPOINT_URL')  # e.g. http://minio:9000
    S3_ACCESS_KEY = os.getenv('S3_ACCESS_KEY')
    S3_SECRET_KEY = os.getenv('S3_SECRET_KEY')
    S3_REGION = os.getenv('S3_REGION', 'us-east-1')

    # local 后端的根目录，每个 bucket 一个子目录
    LOCAL_STORAGE_ROOT = os.getenv('LOCAL_STORAGE_ROOT', './storage')

    # 公开访问地址：<base>/<bucketName>/<key>
    PUBLIC_FILE_URL_BASE = os.getenv('PUBLIC_FILE_URL_BASE', 'http://localhost:5000/files')

    # 上传大小上限（字节），超出由 werkzeug 拒绝
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', str(50 * 1024 * 1024)))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    # text 或 json
    LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')
