from fastapi import Request

from repositories.orders_repository import SupabaseOrderRepository
from services.order_listing_service import OrderListingService, OrderLookup
from services.orders_service import OrderService
from supabase_client import get_supabase


def get_order_repository() -> SupabaseOrderRepository:
    return SupabaseOrderRepository(get_supabase())


def get_order_service(request: Request) -> OrderService:
    return OrderService(get_order_repository(), request.app.state.wallet_issuer)


def get_listing_service() -> OrderListingService:
    return OrderListingService(get_order_repository())


def get_order_lookup() -> OrderLookup:
    return OrderLookup(get_order_repository())
