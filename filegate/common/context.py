from dataclasses import dataclass

from flask import current_app

EXTENSION_KEY = 'filegate'


@dataclass
class GatewayContext:
    """
    启动时构建一次的依赖集合，按引用传入每个 pipeline：
    - session: 元数据库会话（Flask-SQLAlchemy 的 scoped session）
    - storage: 对象存储后端（BaseStorage 实现）
    - public_url_base: 公开访问地址前缀
    """
    session: object
    storage: object
    public_url_base: str

    def public_url(self, bucket_name, key):
        return f"{self.public_url_base.rstrip('/')}/{bucket_name}/{key}"


def get_context() -> GatewayContext:
    return current_app.extensions[EXTENSION_KEY]
