"""
Docker API client construction.

Builds an authenticated ``httpx.Client`` for a host address. With TLS enabled
the pool's credentials reference is resolved against a ``CredentialStore`` and
applied either as HTTP basic auth or as a client certificate.
"""

import ssl
from typing import Dict, Optional, Union

import httpx
from pydantic import BaseModel, Field

from .config import CloudConfig
from .errors import CredentialsError
from .logging import get_logger

logger = get_logger(__name__)


class UsernamePasswordCredentials(BaseModel):
    """Basic-auth credentials sent to a TLS-protected Docker API."""

    username: str
    password: str = Field(repr=False)


class CertificateCredentials(BaseModel):
    """Client certificate (PEM) used for mutual TLS."""

    cert_file: str
    key_file: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)


Credentials = Union[UsernamePasswordCredentials, CertificateCredentials]


class CredentialStore:
    """In-memory lookup of credentials by id."""

    def __init__(self, credentials: Optional[Dict[str, Credentials]] = None):
        self._credentials: Dict[str, Credentials] = dict(credentials or {})

    def add(self, credentials_id: str, credentials: Credentials):
        self._credentials[credentials_id] = credentials

    def lookup(self, credentials_id: str) -> Optional[Credentials]:
        return self._credentials.get(credentials_id)


class DockerClientFactory:
    """Given a host address, return a client for that host's Docker API."""

    def __init__(self, config: CloudConfig, credentials: Optional[CredentialStore] = None):
        self.config = config
        self.credentials = credentials or CredentialStore()

    def base_url(self, host: str) -> str:
        scheme = "https" if self.config.tls_enabled else "http"
        return f"{scheme}://{host}:{self.config.docker_port}"

    def build(self, host: str, transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
        auth = None
        verify: Union[bool, ssl.SSLContext] = True

        if self.config.tls_enabled:
            # Docker hosts are addressed by whatever name the pool lists, so
            # certificates are checked but host names are not.
            verify = ssl.create_default_context()
            verify.check_hostname = False

            if self.config.credentials_id:
                auth = self._apply_credentials(self.config.credentials_id, verify)

        return httpx.Client(
            base_url=self.base_url(host),
            auth=auth,
            verify=verify,
            timeout=self.config.client_timeout_seconds,
            transport=transport,
        )

    def _apply_credentials(self, credentials_id: str, context: ssl.SSLContext):
        credentials = self.credentials.lookup(credentials_id)

        if credentials is None:
            raise CredentialsError(credentials_id, "not found")

        if isinstance(credentials, UsernamePasswordCredentials):
            return httpx.BasicAuth(credentials.username, credentials.password)

        try:
            context.load_cert_chain(
                credentials.cert_file, credentials.key_file, credentials.password
            )
        except (OSError, ssl.SSLError) as e:
            raise CredentialsError(credentials_id, f"cannot load certificate: {e}") from e

        logger.debug("Loaded client certificate", credentials_id=credentials_id)
        return None
