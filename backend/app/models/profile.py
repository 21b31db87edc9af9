# backend/app/models/profile.py
"""
Read-only views of the onboarding profiles.

Profiles are owned by onboarding; messaging only reads them to resolve
display names for the conversation list.
"""

from sqlalchemy import Column, String

from ..database import Base


class BuyerProfile(Base):
    __tablename__ = "buyer_profiles"

    id = Column(String(64), primary_key=True)
    phone_number = Column(String(32), nullable=True)
    full_name = Column(String(255), nullable=True)


class ManufacturerProfile(Base):
    __tablename__ = "manufacturer_profiles"

    id = Column(String(64), primary_key=True)
    phone_number = Column(String(32), nullable=True)
    unit_name = Column(String(255), nullable=True)
