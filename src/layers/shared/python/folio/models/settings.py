"""Site settings model.

Settings are stored as one item per key. Only the keys declared on
SiteSettings are recognized; anything else read from the table or sent by
a client is ignored.

DynamoDB keys:
    PK: SETTINGS
    SK: KEY#{key}
"""

from typing import Any

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field


class SiteSettings(PydanticBaseModel):
    """Typed site configuration with defaults."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", validate_assignment=True)

    site_name: str = Field(default="My Site", alias="siteName", max_length=200)
    site_tagline: str = Field(
        default="Notes, projects and writing",
        alias="siteTagline",
        max_length=300,
    )
    site_description: str = Field(
        default="A personal site and blog.",
        alias="siteDescription",
        max_length=1000,
    )
    site_logo: str | None = Field(None, alias="siteLogo")
    site_favicon: str | None = Field(None, alias="siteFavicon")
    default_meta_title: str = Field(
        default="My Site",
        alias="defaultMetaTitle",
        max_length=300,
    )
    default_meta_description: str = Field(
        default="Writing and projects.",
        alias="defaultMetaDescription",
        max_length=1000,
    )
    default_og_image: str | None = Field(None, alias="defaultOgImage")
    social_twitter: str | None = Field(None, alias="socialTwitter")
    social_linkedin: str | None = Field(None, alias="socialLinkedin")
    social_github: str | None = Field(None, alias="socialGithub")
    social_youtube: str | None = Field(None, alias="socialYoutube")
    google_analytics_id: str | None = Field(None, alias="googleAnalyticsId", max_length=50)
    custom_head_code: str | None = Field(None, alias="customHeadCode", max_length=20000)
    custom_body_code: str | None = Field(None, alias="customBodyCode", max_length=20000)
    theme: str = Field(default="dark", max_length=50)

    @classmethod
    def allowed_keys(cls) -> dict[str, str]:
        """Map every accepted key (alias or field name) to its field name."""
        keys: dict[str, str] = {}
        for name, field in cls.model_fields.items():
            keys[name] = name
            if field.alias:
                keys[field.alias] = name
        return keys

    @classmethod
    def split_known(cls, values: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
        """Split raw key/value pairs into recognized fields and ignored keys.

        Args:
            values: Raw key/value pairs (aliases or field names).

        Returns:
            Tuple of ({field_name: value}, [ignored keys]).
        """
        allowed = cls.allowed_keys()
        known: dict[str, Any] = {}
        ignored: list[str] = []
        for key, value in values.items():
            field_name = allowed.get(key)
            if field_name is None:
                ignored.append(key)
            else:
                known[field_name] = value
        return known, ignored

    @classmethod
    def from_pairs(cls, values: dict[str, Any]) -> "SiteSettings":
        """Build settings from stored pairs, falling back to defaults."""
        known, _ = cls.split_known(values)
        return cls.model_validate(known)
