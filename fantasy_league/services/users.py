from sqlalchemy.orm import Session

from fantasy_league.models.user import User


def get_or_create_user(db: Session, user_id: str) -> User:
    """Users are owned by the identity provider; a local row appears on first contact."""
    user = db.query(User).filter(User.id == user_id).first()
    if user:
        return user
    user = User(id=user_id, is_admin=False)
    db.add(user)
    db.flush()
    return user
