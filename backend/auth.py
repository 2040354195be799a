from typing import Any, Dict, List

import httpx
from fastapi import Depends, Header, HTTPException, status

from config import settings
from models import Caller, Role


def _role_claims(user: Dict[str, Any]) -> List[str]:
    metadata = user.get("app_metadata") or {}
    roles = metadata.get("roles")
    if isinstance(roles, list):
        return [str(role) for role in roles]
    role = metadata.get("role")
    return [str(role)] if role else []


class SupabaseAuthorizationGate:
    def __init__(
        self,
        base_url: str = settings.supabase_url,
        api_key: str = settings.supabase_service_role_key,
        admin_claim: str = settings.admin_role,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.admin_claim = admin_claim

    async def _fetch_user(self, access_token: str) -> dict:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "apikey": self.api_key,
        }
        url = f"{self.base_url}/auth/v1/user"
        async with httpx.AsyncClient(timeout=10) as client:
            response = await client.get(url, headers=headers)
        if response.status_code != 200:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid auth token"
            )
        return response.json()

    def to_caller(self, user: Dict[str, Any]) -> Caller:
        user_id = user.get("id")
        if not user_id:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user profile"
            )
        username = (user.get("user_metadata") or {}).get("username") or user.get("email") or user_id
        return Caller(
            user_id=user_id,
            username=username,
            roles=Role.from_claims(_role_claims(user), admin_claim=self.admin_claim),
        )

    async def resolve(self, access_token: str) -> Caller:
        user = await self._fetch_user(access_token)
        return self.to_caller(user)


def get_authorization_gate() -> SupabaseAuthorizationGate:
    return SupabaseAuthorizationGate()


async def get_current_caller(
    authorization: str | None = Header(default=None, convert_underscores=False),
    gate: SupabaseAuthorizationGate = Depends(get_authorization_gate),
) -> Caller:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing auth token"
        )
    token = authorization.split(" ", 1)[1]
    return await gate.resolve(token)
