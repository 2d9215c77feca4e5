from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from storefront.api.deps import get_db, require_admin
from storefront.application.auth import AdminPrincipal, AdminService
from storefront.application.schemas import AdminCreate, AdminRead, ChangePasswordRequest, LoginRequest

router = APIRouter(prefix="/admin", tags=["admin"])

@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    result = AdminService(db).login(payload.username, payload.password)
    admin = result["admin"]
    return {
        "success": True,
        "token": result["token"],
        "admin": admin if isinstance(admin, dict) else AdminRead.model_validate(admin),
    }

@router.post("/create", status_code=201)
def create_admin(payload: AdminCreate, db: Session = Depends(get_db), principal: AdminPrincipal = Depends(require_admin)):
    """Superadmins only; the role check happens in the service."""
    admin = AdminService(db).create_admin(principal, payload)
    return {"success": True, "admin": AdminRead.model_validate(admin)}

@router.get("/me")
def me(db: Session = Depends(get_db), principal: AdminPrincipal = Depends(require_admin)):
    return {"success": True, "admin": AdminService(db).me(principal)}

@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    principal: AdminPrincipal = Depends(require_admin),
):
    AdminService(db).change_password(principal, payload.current_password, payload.new_password)
    return {"success": True, "message": "Password changed successfully"}
