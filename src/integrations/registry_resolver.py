"""
Identity resolver for images in a remote registry (Registry HTTP API v2).

Fetches the image manifest without pulling layers. Transient failures are
retried here, inside the capability, according to ErrorClassifier.
"""

import logging
import re
from typing import Optional

import requests

from constants import (
    API_REQUEST_TIMEOUT,
    DEFAULT_PLATFORM,
    MANIFEST_LIST_MEDIA_TYPES,
    MANIFEST_MEDIA_TYPES,
    REGISTRY_BACKOFF_BASE,
    REGISTRY_MAX_ATTEMPTS,
    REGISTRY_MAX_BACKOFF,
)
from core.context import ScanContext
from core.error_classification import ErrorCategory, ErrorClassifier
from core.exceptions import ResolverError
from core.models import ImageIdentity
from core.scanner_interface import ImageResolver
from utils.image_utils import ImageReference, parse_image_reference, parse_platform

logger = logging.getLogger(__name__)

_CHALLENGE_PARAM = re.compile(r'(\w+)="([^"]*)"')


class RegistryImageResolver(ImageResolver):
    """
    Resolves image identity from registry manifests.

    The image ID is the config blob digest and layer IDs are the layer blob
    digests, in manifest order (base layer first). Multi-platform indexes
    are narrowed to the requested platform.
    """

    def __init__(
        self,
        image: str,
        platform: str = DEFAULT_PLATFORM,
        session: Optional[requests.Session] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        max_attempts: int = REGISTRY_MAX_ATTEMPTS,
    ):
        """
        Initialize registry resolver.

        Args:
            image: Image reference
            platform: Platform to select from multi-platform indexes
            session: HTTP session, a new one is created when omitted
            username: Registry username for token requests (optional)
            password: Registry password or token (optional)
            max_attempts: Attempts per request for retryable failures
        """
        self.image = image
        self.reference: ImageReference = parse_image_reference(image)
        self.platform = parse_platform(platform)
        self.session = session or requests.Session()
        self.username = username
        self.password = password
        self.max_attempts = max_attempts

    def name(self) -> str:
        return "registry"

    def resolve(self, ctx: ScanContext) -> ImageIdentity:
        """
        Fetch the manifest for the image and build its identity.

        Raises:
            ResolverError: If the manifest cannot be fetched or is malformed
            ScanCancelledError: If the context is cancelled
        """
        token: Optional[str] = None
        manifest, token = self._fetch_manifest(ctx, self.reference.reference, token)
        media_type = manifest.get("mediaType", "")

        if media_type in MANIFEST_LIST_MEDIA_TYPES or "manifests" in manifest:
            digest = self._select_platform(manifest)
            logger.debug(f"Selected {digest} for {self.platform} from index of {self.image}")
            manifest, token = self._fetch_manifest(ctx, digest, token)

        try:
            config_digest = manifest["config"]["digest"]
            layer_ids = [layer["digest"] for layer in manifest["layers"]]
        except (KeyError, TypeError) as e:
            raise ResolverError(self.image, f"unsupported manifest: missing {e}") from e

        return ImageIdentity(
            name=self.image,
            id=config_digest,
            layer_ids=layer_ids,
        )

    def _select_platform(self, index: dict) -> str:
        for entry in index.get("manifests") or []:
            if self.platform.matches(entry.get("platform") or {}):
                return entry["digest"]
        raise ResolverError(self.image, f"no manifest for platform {self.platform}")

    def _manifest_url(self, reference: str) -> str:
        ref = self.reference
        return f"https://{ref.api_host}/v2/{ref.repository}/manifests/{reference}"

    def _fetch_manifest(
        self,
        ctx: ScanContext,
        reference: str,
        token: Optional[str],
    ) -> tuple[dict, Optional[str]]:
        """
        GET a manifest, negotiating a bearer token and retrying as classified.

        Returns:
            Tuple of (manifest, bearer token in use)
        """
        url = self._manifest_url(reference)
        accept = ", ".join(MANIFEST_LIST_MEDIA_TYPES + MANIFEST_MEDIA_TYPES)

        for attempt in range(1, self.max_attempts + 1):
            ctx.check()
            headers = {"Accept": accept}
            if token:
                headers["Authorization"] = f"Bearer {token}"

            status_code = None
            try:
                response = self.session.get(
                    url,
                    headers=headers,
                    timeout=ctx.bound(API_REQUEST_TIMEOUT),
                )
                status_code = response.status_code

                if status_code == 401 and "WWW-Authenticate" in response.headers:
                    new_token = self._fetch_token(ctx, response.headers["WWW-Authenticate"])
                    if new_token and new_token != token:
                        token = new_token
                        continue

                response.raise_for_status()
            except requests.RequestException as e:
                classified = ErrorClassifier.classify(str(e), status_code)
                if not classified.retry_recommended or attempt == self.max_attempts:
                    raise ResolverError(self.image, _describe(classified.category, e)) from e

                delay = min(
                    max(classified.retry_delay, REGISTRY_BACKOFF_BASE * (2 ** (attempt - 1))),
                    REGISTRY_MAX_BACKOFF,
                )
                logger.warning(
                    f"Registry request for {self.image} failed ({classified.category.value}), "
                    f"retrying in {delay:.0f}s (attempt {attempt}/{self.max_attempts})"
                )
                ctx.wait(delay)
                continue

            try:
                return response.json(), token
            except ValueError as e:
                raise ResolverError(self.image, f"invalid manifest JSON: {e}") from e

        raise ResolverError(self.image, f"authentication failed after {self.max_attempts} attempts")

    def _fetch_token(self, ctx: ScanContext, challenge: str) -> Optional[str]:
        """
        Obtain a bearer token for a WWW-Authenticate challenge.

        Returns:
            Token string, or None for non-bearer challenges
        """
        scheme, _, params_str = challenge.partition(" ")
        if scheme.lower() != "bearer":
            return None

        params = dict(_CHALLENGE_PARAM.findall(params_str))
        realm = params.pop("realm", None)
        if not realm:
            return None
        if "scope" not in params:
            params["scope"] = f"repository:{self.reference.repository}:pull"

        auth = (self.username, self.password) if self.username else None
        try:
            response = self.session.get(
                realm,
                params=params,
                auth=auth,
                timeout=ctx.bound(API_REQUEST_TIMEOUT),
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise ResolverError(self.image, f"token request failed: {e}") from e

        return data.get("token") or data.get("access_token")


def _describe(category: ErrorCategory, error: Exception) -> str:
    if category == ErrorCategory.PERMANENT_NOT_FOUND:
        return f"manifest not found or access denied: {error}"
    if category == ErrorCategory.PERMANENT_INFRASTRUCTURE:
        return f"registry unreachable: {error}"
    return str(error)
