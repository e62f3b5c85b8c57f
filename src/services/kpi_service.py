from __future__ import annotations

from datetime import date
from typing import Callable, Optional

from src.analytics.kpis import compute_kpis
from src.core.errors import PermissionDeniedError
from src.schemas.kpi import KpiResult, View, ViewSelector
from src.schemas.permissions import UserPermissions
from src.services.permissions import PermissionResolver
from src.services.sales_data_service import SalesDataService
from src.shared.channels import ALL_BRANDS, is_company_total, key_set, normalize_key
from src.shared.time import PeriodCalendar, view_years


class KpiService:
    def __init__(
        self,
        data_service: SalesDataService,
        permission_resolver: PermissionResolver,
        calendar: Optional[PeriodCalendar] = None,
        today_provider: Optional[Callable[[], date]] = None,
    ) -> None:
        self.data_service = data_service
        self.permission_resolver = permission_resolver
        self.calendar = calendar or PeriodCalendar()
        self.today_provider = today_provider or date.today

    def build_selector(
        self,
        view: View,
        brand: str = ALL_BRANDS,
        permissions: Optional[UserPermissions] = None,
    ) -> ViewSelector:
        scope = self.permission_resolver.resolve(
            permissions,
            self.data_service.list_brands(),
            self.data_service.list_channels(),
        )
        if (
            not is_company_total(brand)
            and not scope.brands_unrestricted
            and normalize_key(brand) not in key_set(scope.available_brands)
        ):
            raise PermissionDeniedError(f"Brand '{brand}' is not available for this user")
        return ViewSelector(
            view=view,
            brand=brand,
            available_brands=scope.available_brands,
            available_channels=scope.available_channels,
            brands_unrestricted=scope.brands_unrestricted,
            channels_unrestricted=scope.channels_unrestricted,
        )

    def get_kpis(
        self,
        view: View,
        brand: str = ALL_BRANDS,
        permissions: Optional[UserPermissions] = None,
    ) -> KpiResult:
        selector = self.build_selector(view, brand, permissions)
        return compute_kpis(
            self.data_service.load_sales_data(),
            selector,
            self.data_service.load_target_years(view_years(view)),
            today=self.today_provider(),
            calendar=self.calendar,
        )
