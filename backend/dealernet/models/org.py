from __future__ import annotations
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Float, ForeignKey, DateTime, func
from typing import Optional

from .authz import Base


class Region(Base):
    __tablename__ = 'regions'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    areas = relationship('Area', back_populates='region', cascade='all, delete-orphan')
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Area(Base):
    __tablename__ = 'areas'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    region_id: Mapped[int] = mapped_column(ForeignKey('regions.id', ondelete='CASCADE'), nullable=False, index=True)
    region = relationship('Region', back_populates='areas')
    territories = relationship('Territory', back_populates='area', cascade='all, delete-orphan')
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Territory(Base):
    __tablename__ = 'territories'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    area_id: Mapped[int] = mapped_column(ForeignKey('areas.id', ondelete='CASCADE'), nullable=False, index=True)
    area = relationship('Area', back_populates='territories')
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Dealer(Base):
    __tablename__ = 'dealers'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    dealer_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    business_name: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    contact_person: Mapped[Optional[str]] = mapped_column(String(128))
    email: Mapped[Optional[str]] = mapped_column(String(150))
    phone_number: Mapped[Optional[str]] = mapped_column(String(32))
    address: Mapped[Optional[str]] = mapped_column(String(255))
    city: Mapped[Optional[str]] = mapped_column(String(64))
    state: Mapped[Optional[str]] = mapped_column(String(64))
    pincode: Mapped[Optional[str]] = mapped_column(String(16))
    gst_number: Mapped[Optional[str]] = mapped_column(String(32))
    lat: Mapped[Optional[float]] = mapped_column(Float)
    lng: Mapped[Optional[float]] = mapped_column(Float)
    region_id: Mapped[Optional[int]] = mapped_column(ForeignKey('regions.id', ondelete='SET NULL'), index=True)
    area_id: Mapped[Optional[int]] = mapped_column(ForeignKey('areas.id', ondelete='SET NULL'), index=True)
    territory_id: Mapped[Optional[int]] = mapped_column(ForeignKey('territories.id', ondelete='SET NULL'), index=True)
    manager_id: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id', ondelete='SET NULL'), index=True)
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

__all__ = ['Region', 'Area', 'Territory', 'Dealer']
