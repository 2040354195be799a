import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import orders_router
from config import settings
from wallet import build_wallet_credentials, create_address_issuer

logger = logging.getLogger("storefront")

app = FastAPI(title="Storefront Orders API")

if settings.allowed_origins == ["*"]:
    allow_origins = ["*"]
else:
    allow_origins = settings.allowed_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(orders_router)


@app.on_event("startup")
async def _on_startup() -> None:
    creds = build_wallet_credentials()
    app.state.wallet_issuer = create_address_issuer(creds)
    logger.info("Wallet issuer ready on %s (%s)", creds.network, creds.rpc_url)
    if allow_origins == ["*"]:
        logger.warning(
            "CORS is set to allow all origins with credentials; set ALLOWED_ORIGINS to explicit values for local dev."
        )


@app.on_event("shutdown")
async def _on_shutdown() -> None:
    issuer = getattr(app.state, "wallet_issuer", None)
    if issuer is not None:
        await issuer.aclose()
