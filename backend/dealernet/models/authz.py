from __future__ import annotations
from sqlalchemy.orm import declarative_base, relationship, Mapped, mapped_column
from sqlalchemy import String, Integer, Boolean, ForeignKey, DateTime, text
from typing import Optional

Base = declarative_base()


class Role(Base):
    __tablename__ = 'roles'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # canonical role identifier, e.g. 'territory_manager'; rules live in constants.roles
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    is_system: Mapped[bool] = mapped_column(Boolean, default=True)
    users = relationship('User', back_populates='role')
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))


class User(Base):
    __tablename__ = 'users'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    role_id: Mapped[int] = mapped_column(ForeignKey('roles.id'), nullable=False, index=True)
    region_id: Mapped[Optional[int]] = mapped_column(ForeignKey('regions.id', ondelete='SET NULL'), index=True)
    area_id: Mapped[Optional[int]] = mapped_column(ForeignKey('areas.id', ondelete='SET NULL'), index=True)
    territory_id: Mapped[Optional[int]] = mapped_column(ForeignKey('territories.id', ondelete='SET NULL'), index=True)
    # users <-> dealers reference each other (dealer.manager_id); break the cycle with ALTER
    dealer_id: Mapped[Optional[int]] = mapped_column(ForeignKey('dealers.id', ondelete='SET NULL', use_alter=True, name='fk_users_dealer_id'), index=True)
    manager_id: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id', ondelete='SET NULL'), index=True)
    role = relationship('Role', back_populates='users')
    manager = relationship('User', remote_side='User.id')
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))

    def set_password(self, raw: str):
        from werkzeug.security import generate_password_hash
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        from werkzeug.security import check_password_hash
        return check_password_hash(self.password_hash, raw)

    @property
    def role_name(self) -> Optional[str]:
        return self.role.name if self.role else None
