# server/models/user.py

from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from . import Base


# -------------------------------
# Role Model
# -------------------------------

class Role(Base):
    """
    Fixed set of roles (ADMIN, USER), seeded on startup.
    """
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)


# -------------------------------
# User Model
# -------------------------------

class User(Base):
    """
    Database model for application users.
    Stores username and hashed password for authentication, plus the role
    used by the authorization gate.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)

    role = relationship("Role", lazy="joined")
    calendar = relationship("Calendar", back_populates="user", uselist=False)

    def to_public(self) -> dict:
        return {"id": self.id, "username": self.username}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "role": {"id": self.role.id, "name": self.role.name} if self.role else None,
        }
