"""
Credential endpoints.

Let the front-end see whether a key must be chosen and supply one.
"""

from fastapi import APIRouter, Depends

from shared.credentials import ApiKeyStore
from shared.logging import get_logger
from api_gateway.dependencies import get_credential_store
from api_gateway.schemas import CredentialRequest, CredentialStatusResponse

logger = get_logger(__name__)

router = APIRouter()


async def _status(credentials: ApiKeyStore) -> CredentialStatusResponse:
    return CredentialStatusResponse(
        has_selected_api_key=await credentials.has_selected_api_key(),
        selection_requested=credentials.selection_requested
    )


@router.get("/credentials", response_model=CredentialStatusResponse)
async def get_credentials(credentials: ApiKeyStore = Depends(get_credential_store)):
    return await _status(credentials)


@router.post("/credentials", response_model=CredentialStatusResponse)
async def select_credentials(
    body: CredentialRequest,
    credentials: ApiKeyStore = Depends(get_credential_store)
):
    """
    Select the API key used for remote calls.

    Raises:
        ValidationError: If the key is blank
    """
    await credentials.select_key(body.api_key)
    return await _status(credentials)
