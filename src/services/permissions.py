from __future__ import annotations

from typing import List, Optional, Sequence

from src.schemas.permissions import PermissionScope, UserPermissions
from src.shared.channels import ADMIN_ROLE, ALL_BRANDS, ALL_CHANNELS, key_set, normalize_key


class PermissionResolver:
    """Turns a user's role and permission lists into the brand/channel universe for reporting."""

    def resolve(
        self,
        permissions: Optional[UserPermissions],
        all_brands: Sequence[str],
        all_channels: Sequence[str],
    ) -> PermissionScope:
        if permissions is None:
            return PermissionScope(
                available_brands=list(all_brands),
                available_channels=list(all_channels),
                brands_unrestricted=True,
                channels_unrestricted=True,
            )

        is_admin = permissions.role == ADMIN_ROLE
        brands_unrestricted = is_admin or ALL_BRANDS in permissions.brands
        channels_unrestricted = is_admin or ALL_CHANNELS in permissions.channels
        return PermissionScope(
            available_brands=(
                list(all_brands)
                if brands_unrestricted
                else _permitted(all_brands, permissions.brands)
            ),
            available_channels=(
                list(all_channels)
                if channels_unrestricted
                else _permitted(all_channels, permissions.channels)
            ),
            brands_unrestricted=brands_unrestricted,
            channels_unrestricted=channels_unrestricted,
        )


def _permitted(known: Sequence[str], granted: Sequence[str]) -> List[str]:
    granted_keys = key_set(granted)
    return [name for name in known if normalize_key(name) in granted_keys]
