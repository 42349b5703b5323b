"""Pydantic model for Nextcloud OCS theming capabilities."""

import logging
import xml.etree.ElementTree as ET
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class OCSTheme(BaseModel):
    """Theming information from a server that supports OCS (including Nextcloud)."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, description="Name of the server")
    url: Optional[str] = Field(None, description="URL of the server")
    slogan: Optional[str] = Field(None, description="Slogan of the server")
    color_hex: Optional[str] = Field(
        None, alias="color", description="Theme color as a hex code starting with #"
    )
    element_color_hex: Optional[str] = Field(None, alias="color-element")
    bright_element_color_hex: Optional[str] = Field(
        None,
        alias="color-element-bright",
        description="Element color for light backgrounds",
    )
    dark_element_color_hex: Optional[str] = Field(
        None,
        alias="color-element-dark",
        description="Element color for dark backgrounds",
    )
    logo: Optional[str] = Field(None, description="URL of the logo")
    background: Optional[str] = Field(None, description="URL of the background image")
    plain_background: Optional[str] = Field(None, alias="background-plain")
    default_background: Optional[str] = Field(None, alias="background-default")

    @field_validator("*", mode="before")
    @classmethod
    def empty_as_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_capabilities_xml(cls, content: bytes) -> Optional["OCSTheme"]:
        """Parse an `ocs/v1.php/cloud/capabilities` response.

        Returns None when the body is not XML or has no theming section.
        """
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            logger.debug(f"Capabilities response is not XML: {e}")
            return None

        theming = root.find("./data/capabilities/theming")
        if theming is None:
            return None

        values = {child.tag: child.text for child in theming}
        fields = {
            alias
            for name, info in cls.model_fields.items()
            for alias in (name, info.alias)
            if alias
        }
        return cls.model_validate({k: v for k, v in values.items() if k in fields})
