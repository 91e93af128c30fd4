"""
Error taxonomy shared by services and routers.

Services raise these; the handlers registered in ``app.main`` render every one
of them as ``{"message": ...}`` with the matching HTTP status.
"""
from typing import Any, Dict, Optional

from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Lỗi máy chủ nội bộ"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Thiếu thông tin bắt buộc"


class Conflict(AppError):
    # Duplicates are reported as plain bad requests
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Email đã được sử dụng"


class MissingOwner(ValidationError):
    default_message = "Bất động sản không có chủ sở hữu"


class SelfMessage(ValidationError):
    default_message = "Không thể gửi tin nhắn cho chính mình"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Chưa đăng nhập"


class InvalidToken(Unauthenticated):
    default_message = "Token không hợp lệ hoặc đã hết hạn"


class Revoked(Unauthenticated):
    default_message = "Token đã bị thu hồi"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Không có quyền thực hiện thao tác này"


class Banned(Forbidden):
    default_message = (
        "Tài khoản của bạn đã bị khóa do vi phạm điều khoản dịch vụ. "
        "Vui lòng liên hệ admin để được hỗ trợ."
    )

    def to_body(self) -> Dict[str, Any]:
        return {"message": self.message, "isBanned": True}


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Không tìm thấy dữ liệu"


class Internal(AppError):
    pass
