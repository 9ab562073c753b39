# auth/dependencies.py
from fastapi import Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pymongo.database import Database
from bson import ObjectId
from bson.errors import InvalidId
import logging
from duroos.deps import get_db
from duroos.auth.jwt import decode_token

logger = logging.getLogger(__name__)

ADMIN_ROLES = ("admin", "editor")

bearer_scheme = HTTPBearer(auto_error=False)

def _find_admin(db: Database, admin_id: str):
    try:
        oid = ObjectId(admin_id)
    except (InvalidId, TypeError):
        return None
    return db.admins.find_one({"_id": oid}, {"passwordHash": 0})

async def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Database = Depends(get_db),
):
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        payload = decode_token(credentials.credentials)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    admin = await run_in_threadpool(_find_admin, db, payload["sub"])
    if not admin or not admin.get("isActive", True):
        logger.warning(f"Token presented for unknown or inactive admin {payload['sub']}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin not found or inactive")
    return admin

def require_role(*roles: str):
    async def role_checker(admin=Depends(get_current_admin)):
        if admin.get("role") not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return admin
    return role_checker
