"""OCS capabilities: server theming."""

import logging
from typing import Optional

from nextcloud_webdav.models.account import WebDAVAccount, normalize_account
from nextcloud_webdav.models.theme import OCSTheme

from .base import BaseWebDAVClient, nextcloud_base_url

logger = logging.getLogger(__name__)

CAPABILITIES_PATH = "ocs/v1.php/cloud/capabilities"


class OCSMixin(BaseWebDAVClient):
    """Client for the OCS capabilities API."""

    async def get_nextcloud_theme(
        self, account: WebDAVAccount, password: str
    ) -> Optional[OCSTheme]:
        """Get the theme information from a server that supports OCS (including Nextcloud).

        Returns:
            The server theme, or None if the response has no theming section

        Raises:
            InvalidCredentialsError: If the account or credentials are unusable
            UnsupportedError: If the base URL is not a Nextcloud WebDAV URL
            WebDAVError: If the server rejects the request
        """
        unwrapped = normalize_account(account)
        url = f"{nextcloud_base_url(unwrapped)}/{CAPABILITIES_PATH}"
        request = self._build_request(
            "GET", "", unwrapped, password, url=url, headers={"OCS-APIRequest": "true"}
        )
        response = await self._make_request(request)

        theme = OCSTheme.from_capabilities_xml(response.content)
        if theme is None:
            logger.debug(f"No theming capabilities reported by {url}")
        return theme

    async def get_nextcloud_color_hex(
        self, account: WebDAVAccount, password: str
    ) -> Optional[str]:
        """Theme color of the server as a hex color starting with #."""
        theme = await self.get_nextcloud_theme(account, password)
        return theme.color_hex if theme else None
