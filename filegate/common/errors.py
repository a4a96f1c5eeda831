import enum
from dataclasses import dataclass
from typing import Optional


class ErrorKind(enum.Enum):
    """错误类型，value 为 (HTTP 状态码, 机器可读代码)"""
    INVALID_REQUEST = (400, 'INVALID_REQUEST')
    UNAUTHENTICATED = (401, 'UNAUTHENTICATED')
    INVALID_CREDENTIAL = (403, 'INVALID_CREDENTIAL')
    FORBIDDEN = (403, 'FORBIDDEN')
    NOT_FOUND = (404, 'NOT_FOUND')
    STORAGE_FAULT = (500, 'STORAGE_FAULT')
    INTERNAL = (500, 'INTERNAL')

    @property
    def status(self) -> int:
        return self.value[0]

    @property
    def code(self) -> str:
        return self.value[1]


GENERIC_SERVER_MESSAGE = 'An unexpected server error occurred.'


@dataclass(frozen=True)
class ServiceError:
    """服务层返回的错误值（不抛异常），由路由层映射为 HTTP 响应"""
    kind: ErrorKind
    message: str
    code: Optional[str] = None

    @property
    def status(self) -> int:
        return self.kind.status

    def public_message(self) -> str:
        # 5xx 不向调用方暴露内部细节
        if self.status >= 500:
            return GENERIC_SERVER_MESSAGE
        return self.message

    def public_code(self) -> Optional[str]:
        if self.status >= 500:
            return None
        return self.code or self.kind.code


def invalid_request(message, code=None):
    return ServiceError(ErrorKind.INVALID_REQUEST, message, code)


def unauthenticated(message):
    return ServiceError(ErrorKind.UNAUTHENTICATED, message)


def invalid_credential(message):
    return ServiceError(ErrorKind.INVALID_CREDENTIAL, message)


def forbidden(message):
    return ServiceError(ErrorKind.FORBIDDEN, message)


def not_found(message, code=None):
    return ServiceError(ErrorKind.NOT_FOUND, message, code)


def storage_fault(message):
    return ServiceError(ErrorKind.STORAGE_FAULT, message)


def internal(message):
    return ServiceError(ErrorKind.INTERNAL, message)
