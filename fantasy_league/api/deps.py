from typing import Generator
from fastapi import Depends, HTTPException, status, Request
from jose import JWTError
from sqlalchemy.orm import Session

from fantasy_league.db.session import SessionLocal
from fantasy_league.core import security
from fantasy_league.db.session import transaction
from fantasy_league.models.user import User
from fantasy_league.services.engine import GameEngine, get_engine
from fantasy_league.services.users import get_or_create_user

def get_db() -> Generator:
    try:
        db = SessionLocal()
        yield db
    finally:
        db.close()

def get_game_engine() -> GameEngine:
    return get_engine()

def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Reads the 'access_token' cookie and resolves the identity provider's user id.
    Unknown ids get a local user row on first contact.
    """
    token_str = request.cookies.get("access_token")

    if not token_str:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated (missing cookie)",
        )

    # The cookie holds "Bearer eyJhbGci..."
    try:
        scheme, token = token_str.split()
        if scheme.lower() != "bearer":
            raise HTTPException(status_code=401, detail="Invalid token format")

        user_id = security.decode_subject(token)

        if user_id is None:
            raise HTTPException(status_code=401, detail="Invalid token (no subject)")

    except (JWTError, ValueError):
        raise HTTPException(status_code=401, detail="Token expired or invalid")

    with transaction(db):
        user = get_or_create_user(db, user_id)
    return user

def get_current_active_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=403, detail="The user does not have admin privileges"
        )
    return current_user
