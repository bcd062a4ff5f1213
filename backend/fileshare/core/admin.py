# fileshare/core/admin.py
import secrets

from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from fastapi import Request
from fileshare.core.security import create_access_token, decode_token
from fileshare.core.config import settings
from fileshare.models.user import User
from fileshare.models.file_record import FileRecord


class AdminAuth(AuthenticationBackend):
    """Single operator account configured through ADMIN__ADMIN_USERNAME / ADMIN__ADMIN_PASSWORD"""

    async def login(self, request: Request) -> bool:
        form = await request.form()
        username, password = form.get("username", ""), form.get("password", "")

        expected = settings.admin.ADMIN_PASSWORD.get_secret_value()
        if secrets.compare_digest(str(username), settings.admin.ADMIN_USERNAME) and \
                secrets.compare_digest(str(password), expected):
            request.session.update({"token": create_access_token({"sub": "admin", "scope": "admin"})})
            return True
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        token = request.session.get("token")
        if not token:
            return False
        try:
            payload = decode_token(token)
        except ValueError:
            return False
        return payload.get("scope") == "admin"


class UserAdmin(ModelView, model=User):
    column_list = [User.id, User.username, User.email, User.created_at]
    column_searchable_list = [User.username, User.email]
    column_sortable_list = [User.id, User.created_at]
    can_create = False
    can_edit = False
    icon = "fa-solid fa-user"


class FileRecordAdmin(ModelView, model=FileRecord):
    column_list = [
        FileRecord.id,
        FileRecord.original_name,
        FileRecord.uploaded_by,
        FileRecord.file_size,
        FileRecord.mime_type,
        FileRecord.is_public,
        FileRecord.expires_at,
        FileRecord.created_at,
    ]
    column_searchable_list = [FileRecord.original_name]
    column_sortable_list = [FileRecord.id, FileRecord.created_at, FileRecord.file_size]
    # rows and blobs must go away together, that goes through DELETE /files/{id}
    can_create = False
    can_edit = False
    can_delete = False
    icon = "fa-solid fa-file"


def setup_admin(app, engine) -> bool:
    """Mount /admin when an admin password is configured"""
    if settings.admin.ADMIN_PASSWORD is None:
        return False

    authentication_backend = AdminAuth(secret_key=settings.security.JWT_SECRET_KEY.get_secret_value())
    admin = Admin(app, engine, authentication_backend=authentication_backend, title="FileShare Admin")

    admin.add_view(UserAdmin)
    admin.add_view(FileRecordAdmin)
    return True
