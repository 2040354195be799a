import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env")

WALLET_NETWORKS = ("mainnet", "testnet", "regtest", "signet")


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def _get_list(name: str, fallback: str = "") -> List[str]:
    raw_value = os.getenv(name, fallback)
    if not raw_value:
        return []
    return [item.strip() for item in raw_value.split(",") if item.strip()]


def _get_network(name: str, fallback: str) -> str:
    value = os.getenv(name, fallback).strip().lower()
    if value not in WALLET_NETWORKS:
        raise RuntimeError(f"Unsupported wallet network in {name}: {value}")
    return value


@dataclass(frozen=True)
class Settings:
    supabase_url: str = _require_env("SUPABASE_URL")
    supabase_service_role_key: str = _require_env("SUPABASE_SERVICE_ROLE_KEY")
    encryption_key: str = _require_env("ENCRYPTION_KEY")
    wallet_rpc_url: str = _require_env("WALLET_RPC_URL")
    wallet_rpc_user: str = _require_env("WALLET_RPC_USER")
    wallet_rpc_password_encrypted: str = _require_env("WALLET_RPC_PASSWORD_ENCRYPTED")
    wallet_network: str = _get_network("WALLET_NETWORK", "testnet")
    wallet_address_label: str = os.getenv("WALLET_ADDRESS_LABEL", "storefront")
    wallet_rpc_timeout_seconds: float = float(
        os.getenv("WALLET_RPC_TIMEOUT_SECONDS", "10")
    )
    admin_role: str = os.getenv("ADMIN_ROLE", "Admin")
    orders_table: str = os.getenv("ORDERS_TABLE", "orders")
    order_items_table: str = os.getenv("ORDER_ITEMS_TABLE", "order_items")
    allowed_origins: List[str] = field(
        default_factory=lambda: _get_list("ALLOWED_ORIGINS", "*")
    )


settings = Settings()
