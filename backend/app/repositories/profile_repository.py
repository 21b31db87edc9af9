# backend/app/repositories/profile_repository.py
"""
Profile Repository: display-name lookups for conversation counterparts.
"""

from typing import Dict, List

from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_BUYER_DISPLAY_NAME, DEFAULT_MANUFACTURER_DISPLAY_NAME
from ..core.enums import ParticipantRole
from ..models.profile import BuyerProfile, ManufacturerProfile
from .base_repository import BaseRepository


class ProfileRepository(BaseRepository[BuyerProfile]):
    """Reads buyer and manufacturer profiles in batches."""

    def __init__(self, db: Session):
        super().__init__(db, BuyerProfile)

    def get_display_names(self, role: ParticipantRole, user_ids: List[str]) -> Dict[str, str]:
        """
        Map user id to display name for every id with a profile.

        Manufacturers are named by their unit; buyers by full name, then
        phone number.
        """
        if not user_ids:
            return {}
        names: Dict[str, str] = {}
        if ParticipantRole(role) == ParticipantRole.MANUFACTURER:
            rows = (
                self.db.query(ManufacturerProfile.id, ManufacturerProfile.unit_name)
                .filter(ManufacturerProfile.id.in_(user_ids))
                .all()
            )
            for user_id, unit_name in rows:
                names[user_id] = unit_name or DEFAULT_MANUFACTURER_DISPLAY_NAME
        else:
            rows = (
                self.db.query(BuyerProfile.id, BuyerProfile.full_name, BuyerProfile.phone_number)
                .filter(BuyerProfile.id.in_(user_ids))
                .all()
            )
            for user_id, full_name, phone_number in rows:
                names[user_id] = full_name or phone_number or DEFAULT_BUYER_DISPLAY_NAME
        return names
