"""Admin authentication.

Two credential types are accepted on admin routes, tried in a fixed
order: the static ``X-Admin-Password`` header and a JWT bearer token.
The static password only ever grants the standard ``admin`` role.
"""

import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

import bcrypt
import jwt
from sqlalchemy import or_
from sqlalchemy.orm import Session

from shared.core import get_logger
from storefront.application.schemas import AdminCreate
from storefront.core_settings import get_settings
from storefront.domain.errors import ForbiddenError, NotFoundError, UnauthorizedError, ValidationError
from storefront.domain.models import Admin

logger = get_logger(__name__)

ADMIN_ROLE = "admin"
SUPERADMIN_ROLE = "superadmin"
STATIC_IDENTITY = "admin"
BEARER_PREFIX = "Bearer "

@dataclass(frozen=True)
class AdminPrincipal:
    identity: str
    username: str
    role: str

    @property
    def is_static(self) -> bool:
        return self.identity == STATIC_IDENTITY

    @property
    def is_superadmin(self) -> bool:
        return self.role == SUPERADMIN_ROLE

STATIC_PRINCIPAL = AdminPrincipal(identity=STATIC_IDENTITY, username="admin", role=ADMIN_ROLE)

def create_access_token(principal: AdminPrincipal, expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": principal.identity,
        "username": principal.username,
        "role": principal.role,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes or settings.JWT_EXPIRES_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

def decode_access_token(token: str) -> Optional[dict]:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except jwt.PyJWTError:
        return None

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")

def check_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False

class Authenticator(ABC):
    @abstractmethod
    def authenticate(self, headers: Mapping[str, str]) -> Optional[AdminPrincipal]:
        """Return a principal, ``None`` when this credential type is absent, or raise UnauthorizedError."""

class StaticSecretAuthenticator(Authenticator):
    header = "x-admin-password"

    def __init__(self, password: str):
        self.password = password

    def authenticate(self, headers: Mapping[str, str]) -> Optional[AdminPrincipal]:
        supplied = headers.get(self.header)
        if not supplied or not self.password:
            return None
        if secrets.compare_digest(supplied.encode("utf-8"), self.password.encode("utf-8")):
            return STATIC_PRINCIPAL
        logger.warning("Admin static password rejected")
        return None

class JwtAuthenticator(Authenticator):
    def authenticate(self, headers: Mapping[str, str]) -> Optional[AdminPrincipal]:
        auth_header = headers.get("authorization")
        if not auth_header or not auth_header.startswith(BEARER_PREFIX):
            return None
        token_data = decode_access_token(auth_header[len(BEARER_PREFIX):])
        if not token_data or not token_data.get("sub"):
            logger.warning("Admin bearer token rejected")
            raise UnauthorizedError("Invalid authentication token")
        return AdminPrincipal(
            identity=str(token_data["sub"]),
            username=token_data.get("username", ""),
            role=token_data.get("role", ADMIN_ROLE),
        )

class AuthenticatorChain:
    def __init__(self, authenticators: list[Authenticator]):
        self.authenticators = authenticators

    def authenticate(self, headers: Mapping[str, str]) -> AdminPrincipal:
        for authenticator in self.authenticators:
            principal = authenticator.authenticate(headers)
            if principal is not None:
                return principal
        raise UnauthorizedError("Authentication required")

def require_superadmin(principal: AdminPrincipal, message: str = "Superadmin privileges required") -> None:
    if not principal.is_superadmin:
        raise ForbiddenError(message)

class AdminService:
    def __init__(self, db: Session):
        self.db = db

    def login(self, username: Optional[str], password: str) -> dict:
        settings = get_settings()
        if settings.ADMIN_PASSWORD and secrets.compare_digest(password.encode("utf-8"), settings.ADMIN_PASSWORD.encode("utf-8")):
            return {
                "token": create_access_token(STATIC_PRINCIPAL),
                "admin": {"username": STATIC_PRINCIPAL.username, "role": STATIC_PRINCIPAL.role},
            }

        admin = self.db.query(Admin).filter(Admin.username == username).first() if username else None
        if not admin or not check_password(password, admin.password_hash):
            logger.warning("Admin login failed", extra={'extra_fields': {'username': username}})
            raise UnauthorizedError("Invalid credentials")

        principal = AdminPrincipal(identity=str(admin.id), username=admin.username, role=admin.role)
        logger.info("Admin logged in", extra={'extra_fields': {'username': admin.username}})
        return {"token": create_access_token(principal), "admin": admin}

    def create_admin(self, actor: AdminPrincipal, data: AdminCreate) -> Admin:
        require_superadmin(actor, "Only superadmin can create new admins")
        existing = self.db.query(Admin).filter(
            or_(Admin.username == data.username, Admin.email == data.email)
        ).first()
        if existing:
            raise ValidationError("Admin with this username or email already exists")
        admin = Admin(
            username=data.username,
            email=data.email,
            password_hash=hash_password(data.password),
            role=data.role,
        )
        self.db.add(admin)
        self.db.commit()
        self.db.refresh(admin)
        logger.info("Admin created", extra={'extra_fields': {'username': admin.username, 'role': admin.role}})
        return admin

    def _load(self, principal: AdminPrincipal) -> Admin:
        admin = self.db.get(Admin, int(principal.identity)) if principal.identity.isdigit() else None
        if not admin:
            raise NotFoundError("Admin not found")
        return admin

    def me(self, principal: AdminPrincipal) -> dict:
        if principal.is_static:
            return {"username": principal.username, "role": principal.role}
        admin = self._load(principal)
        return {"id": admin.id, "username": admin.username, "email": admin.email, "role": admin.role}

    def change_password(self, principal: AdminPrincipal, current_password: str, new_password: str) -> None:
        if principal.is_static:
            raise ValidationError("Cannot change password for default admin")
        admin = self._load(principal)
        if not check_password(current_password, admin.password_hash):
            raise UnauthorizedError("Current password is incorrect")
        admin.password_hash = hash_password(new_password)
        self.db.commit()
        logger.info("Admin password changed", extra={'extra_fields': {'username': admin.username}})
