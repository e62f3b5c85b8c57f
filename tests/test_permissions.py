from __future__ import annotations

from src.schemas.permissions import UserPermissions
from src.services.permissions import PermissionResolver
from src.shared.channels import ALL_BRANDS, ALL_CHANNELS

BRANDS = ["LifePro", "PetCove", "Home & Garden"]
CHANNELS = ["Amazon", "TikTok", "DTC-Shopify"]


def test_missing_permissions_grant_everything():
    scope = PermissionResolver().resolve(None, BRANDS, CHANNELS)
    assert scope.available_brands == BRANDS
    assert scope.brands_unrestricted
    assert scope.channels_unrestricted


def test_admin_is_unrestricted():
    scope = PermissionResolver().resolve(UserPermissions(role="Admin"), BRANDS, CHANNELS)
    assert scope.available_channels == CHANNELS
    assert scope.brands_unrestricted and scope.channels_unrestricted


def test_restricted_user_gets_intersection_by_key():
    permissions = UserPermissions(
        role="Sales",
        brands=["home and garden", "Unknown"],
        channels=["dtc shopify", "amazon"],
    )
    scope = PermissionResolver().resolve(permissions, BRANDS, CHANNELS)
    assert scope.available_brands == ["Home & Garden"]
    assert scope.available_channels == ["Amazon", "DTC-Shopify"]
    assert not scope.brands_unrestricted


def test_all_entries_lift_one_axis():
    permissions = UserPermissions(role="Sales", brands=[ALL_BRANDS], channels=["TikTok"])
    scope = PermissionResolver().resolve(permissions, BRANDS, CHANNELS)
    assert scope.brands_unrestricted
    assert scope.available_brands == BRANDS
    assert scope.available_channels == ["TikTok"]

    permissions = UserPermissions(role="Sales", brands=["PetCove"], channels=[ALL_CHANNELS])
    scope = PermissionResolver().resolve(permissions, BRANDS, CHANNELS)
    assert scope.available_brands == ["PetCove"]
    assert scope.channels_unrestricted
