from typing import Optional, Dict, Any
import logging
import time

import google.auth.transport.requests
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import id_token as google_id_token
from google.oauth2 import service_account

from ...core.config import settings
from ...application.ports.primary_identity import PrimaryIdentity, PrimaryIdentityProvider, StaffDirectory


logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/projects/{project_id}/accounts:update"
FIREBASE_SCOPES = [
    "https://www.googleapis.com/auth/cloud-platform",
    "https://www.googleapis.com/auth/identitytoolkit",
]


def _load_credentials() -> Optional[service_account.Credentials]:
    if not settings.FIREBASE_CLIENT_EMAIL or not settings.FIREBASE_PRIVATE_KEY or not settings.FIREBASE_PROJECT_ID:
        logger.warning("Firebase credentials are not configured; remote sign-out disabled")
        return None
    try:
        return service_account.Credentials.from_service_account_info({
            "type": "service_account",
            "project_id": settings.FIREBASE_PROJECT_ID,
            "private_key": settings.FIREBASE_PRIVATE_KEY,
            "client_email": settings.FIREBASE_CLIENT_EMAIL,
            "token_uri": "https://oauth2.googleapis.com/token",
        }, scopes=FIREBASE_SCOPES)
    except Exception as e:
        logger.error(f"Failed to load Firebase service account: {e}")
        return None


def extract_identity_from_claims(claims: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """Extract uid, email and role custom claim from Firebase claims."""
    return {
        "uid": claims.get("user_id") or claims.get("uid") or claims.get("sub"),
        "email": claims.get("email"),
        "role": claims.get("role"),
    }


class FirebasePrimaryIdentityProvider(PrimaryIdentityProvider):
    """Staff-side sign-in backed by Firebase Authentication.

    ID tokens are verified against Google's public certificates. The role
    comes from the ``role`` custom claim when present, otherwise from the
    staff directory. Signing out revokes the account's refresh tokens through
    the Identity Toolkit API, which needs a service account.
    """

    def __init__(self, staff_directory: Optional[StaffDirectory] = None, project_id: Optional[str] = None,
                 credentials: Optional[service_account.Credentials] = None):
        self.staff_directory = staff_directory
        self.project_id = project_id or settings.FIREBASE_PROJECT_ID
        self._credentials = credentials
        self._request = google.auth.transport.requests.Request()

    @property
    def credentials(self) -> Optional[service_account.Credentials]:
        if self._credentials is None:
            self._credentials = _load_credentials()
        return self._credentials

    def resolve(self, id_token: str) -> Optional[PrimaryIdentity]:
        if not self.project_id:
            logger.warning("FIREBASE_PROJECT_ID is not set; cannot verify ID tokens")
            return None
        try:
            claims = google_id_token.verify_firebase_token(id_token, self._request, audience=self.project_id)
        except Exception as e:
            logger.warning(f"Firebase token verification failed: {e}")
            return None
        if not claims:
            return None
        info = extract_identity_from_claims(claims)
        if not info["uid"]:
            return None
        role = info["role"]
        if role is None and self.staff_directory is not None:
            role = self.staff_directory.get_role(info["uid"])
        return PrimaryIdentity(uid=info["uid"], email=info["email"], role=role)

    def sign_out(self, uid: str) -> None:
        if self.credentials is None:
            return
        session = AuthorizedSession(self.credentials)
        response = session.post(
            IDENTITY_TOOLKIT_URL.format(project_id=self.project_id),
            json={"localId": uid, "validSince": str(int(time.time()))},
            timeout=15,
        )
        response.raise_for_status()
        logger.info(f"Revoked refresh tokens for {uid}")
