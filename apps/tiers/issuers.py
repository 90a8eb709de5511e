"""
Mint/burn seam for tier NFTs.

The engine never talks to a chain directly. It asks a ``TierIssuer`` to burn
or mint the token of a tier level, always through ``IssuerClient`` so every
call runs on a shared worker pool behind a timeout-bounded, cancellable
handle. Issuers must be idempotent per ``(request_key, operation)``: a retried
upgrade repeats calls that may already have succeeded remotely.
"""
import hashlib
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout

import certifi
import requests
from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)

BURN = 'burn'
MINT = 'mint'


class IssuerError(Exception):
    """Mint/burn call failed"""


class IssuerTimeout(IssuerError):
    """Mint/burn call did not finish within the configured timeout"""


class TierIssuer:
    """Interface of a tier token issuer"""

    def burn(self, request_key, user_id, level):
        """Revoke the token of ``level`` held by the user, return a reference"""
        raise NotImplementedError

    def mint(self, request_key, user_id, level):
        """Issue the token of ``level`` to the user, return a reference"""
        raise NotImplementedError


class LocalTierIssuer(TierIssuer):
    """Issuer used when no chain integration is configured"""

    @staticmethod
    def _reference(operation, request_key, level):
        digest = hashlib.sha256(request_key.encode("utf-8")).hexdigest()[:16]
        return f"local-{operation}-{digest}-{level}"

    def burn(self, request_key, user_id, level):
        reference = self._reference(BURN, request_key, level)
        logger.info(f"Burned tier {level} token for user {user_id} ({reference})")
        return reference

    def mint(self, request_key, user_id, level):
        reference = self._reference(MINT, request_key, level)
        logger.info(f"Minted tier {level} token for user {user_id} ({reference})")
        return reference


class HttpTierIssuer(TierIssuer):
    """Issuer backed by a remote mint/burn HTTP service"""

    def __init__(self):
        self.base_url = settings.TIER_ISSUER_URL.rstrip('/')
        self.api_key = settings.TIER_ISSUER_API_KEY
        self.verify_ssl = certifi.where()

        if not self.base_url:
            raise ValueError(
                "Tier issuer URL is missing. Please set TIER_ISSUER_URL in environment variables."
            )

    def burn(self, request_key, user_id, level):
        return self._call(BURN, request_key, user_id, level)

    def mint(self, request_key, user_id, level):
        return self._call(MINT, request_key, user_id, level)

    def _call(self, operation, request_key, user_id, level):
        url = f"{self.base_url}/{operation}"
        payload = {'request_key': request_key, 'user_id': user_id, 'level': level}
        headers = {'Authorization': f"Bearer {self.api_key}"} if self.api_key else {}

        try:
            response = requests.post(
                url,
                json=payload,
                headers=headers,
                timeout=settings.TIER_ISSUER_TIMEOUT_SECONDS,
                verify=self.verify_ssl,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise IssuerError(f"{operation} request failed: {e}") from e
        except ValueError as e:
            raise IssuerError(f"Invalid {operation} response from issuer") from e

        reference = data.get('reference')
        if not reference:
            raise IssuerError(f"Issuer returned no {operation} reference")
        return reference


class IssuerCall:
    """Handle of one in-flight issuer call"""

    def __init__(self, future, operation, request_key):
        self._future = future
        self.operation = operation
        self.request_key = request_key
        self.abandoned = False

    def done(self):
        return self._future.done()

    def cancel(self):
        """
        Stop waiting for the call. A call already running keeps going on its
        worker; idempotent issuers make its late completion harmless.
        """
        self.abandoned = True
        return self._future.cancel()

    def result(self, timeout=None):
        try:
            return self._future.result(timeout=timeout)
        except FutureTimeout:
            self.cancel()
            raise IssuerTimeout(
                f"{self.operation} for {self.request_key[:16]} timed out after {timeout}s"
            )
        except IssuerError:
            raise
        except Exception as e:
            raise IssuerError(f"{self.operation} failed: {e}") from e


_executor = None
_executor_lock = threading.Lock()


def _get_executor():
    global _executor
    if _executor is None:
        with _executor_lock:
            if _executor is None:
                _executor = ThreadPoolExecutor(
                    max_workers=getattr(settings, 'TIER_ISSUER_MAX_WORKERS', 8),
                    thread_name_prefix='tier-issuer',
                )
    return _executor


class IssuerClient:
    """Runs issuer calls on the shared pool and waits for them with a bound"""

    def __init__(self, issuer=None, timeout=None):
        self.issuer = issuer if issuer is not None else import_string(settings.TIER_ISSUER_BACKEND)()
        self.timeout = timeout if timeout is not None else settings.TIER_ISSUER_TIMEOUT_SECONDS

    def submit(self, operation, request_key, user_id, level) -> IssuerCall:
        if operation not in (BURN, MINT):
            raise ValueError(f"Unknown issuer operation {operation!r}")
        method = getattr(self.issuer, operation)
        future = _get_executor().submit(method, request_key, user_id, level)
        return IssuerCall(future, operation, request_key)

    def burn(self, request_key, user_id, level):
        return self.submit(BURN, request_key, user_id, level).result(self.timeout)

    def mint(self, request_key, user_id, level):
        return self.submit(MINT, request_key, user_id, level).result(self.timeout)
