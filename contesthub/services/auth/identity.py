from abc import ABC, abstractmethod
from typing import Optional
from google.oauth2 import id_token
from google.auth import exceptions as google_exceptions
from google.auth.transport import requests
from starlette.concurrency import run_in_threadpool

from contesthub.core.exceptions import UnauthorizedError, UpstreamError


class IdentityProvider(ABC):
    """Turns a bearer credential into a verified email"""

    @abstractmethod
    async def verify(self, token: Optional[str]) -> str:
        """
        Verify a bearer credential.

        Returns:
            The verified email of the caller

        Raises:
            UnauthorizedError: credential missing or invalid
            UpstreamError: the provider could not be reached
        """
        pass


class FirebaseIdentityProvider(IdentityProvider):
    """Verifies Firebase ID tokens issued to the client application"""

    def __init__(self, project_id: str):
        self.project_id = project_id
        self._request = requests.Request()

    def _verify_sync(self, token: str) -> dict:
        return id_token.verify_firebase_token(token, self._request, audience=self.project_id)

    async def verify(self, token: Optional[str]) -> str:
        if not token:
            raise UnauthorizedError()

        try:
            # Certificate fetch and signature check are blocking
            claims = await run_in_threadpool(self._verify_sync, token)
        except google_exceptions.TransportError as e:
            print(f"[ERROR] Identity provider unreachable: {e}")
            raise UpstreamError("Identity provider unavailable")
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            print(f"[WARN] Firebase token verification failed: {e}")
            raise UnauthorizedError()

        email = (claims or {}).get("email")
        if not email:
            raise UnauthorizedError()

        return email
