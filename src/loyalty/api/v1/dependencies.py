"""Service providers for API endpoints.

Services are built per request from the storage and token objects the
application created at startup.
"""

from typing import Annotated

from fastapi import Depends, Request

from loyalty.core.config import Settings
from loyalty.repositories import UnitOfWorkFactory
from loyalty.services.entitlements import EntitlementService
from loyalty.services.exchange import ExchangeCoordinator
from loyalty.services.users import UserService
from loyalty.services.vouchers import VoucherService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_uow_factory(request: Request) -> UnitOfWorkFactory:
    return request.app.state.uow_factory


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
UowFactoryDep = Annotated[UnitOfWorkFactory, Depends(get_uow_factory)]


def get_user_service(
    request: Request, settings: SettingsDep, uow_factory: UowFactoryDep
) -> UserService:
    return UserService(
        uow_factory,
        request.app.state.jwt_service,
        bcrypt_rounds=settings.bcrypt_rounds,
    )


def get_voucher_service(
    settings: SettingsDep, uow_factory: UowFactoryDep
) -> VoucherService:
    return VoucherService(uow_factory, code_attempts=settings.voucher_code_attempts)


def get_exchange_coordinator(
    settings: SettingsDep, uow_factory: UowFactoryDep
) -> ExchangeCoordinator:
    return ExchangeCoordinator(
        uow_factory,
        code_attempts=settings.voucher_code_attempts,
        valid_days=settings.exchange_voucher_valid_days,
    )


def get_entitlement_service(
    settings: SettingsDep, uow_factory: UowFactoryDep
) -> EntitlementService:
    return EntitlementService(
        uow_factory,
        default_uses=settings.redeem_default_uses,
        refresh_attempts=settings.refresh_attempts,
    )


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
VoucherServiceDep = Annotated[VoucherService, Depends(get_voucher_service)]
ExchangeDep = Annotated[ExchangeCoordinator, Depends(get_exchange_coordinator)]
EntitlementServiceDep = Annotated[EntitlementService, Depends(get_entitlement_service)]
