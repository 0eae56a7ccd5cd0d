"""
Twake Drive credentials: a static API token and OAuth2 against the
instance's Cozy Stack authorization server.
"""
from typing import Any, ClassVar, Dict, List

from src.node_sdk.credentials import BearerTokenCredential, OAuth2ApiCredential

from .transport import DRIVE_ACCEPT, ROOT_DIR_ID


INSTANCE_URL_PROPERTY: Dict[str, Any] = {
    "name": "instanceUrl",
    "displayName": "Instance URL",
    "type": "string",
    "default": "",
    "required": True,
    "placeholder": "https://yourinstance.mycozy.cloud or https://yourinstance.twake.linagora.com",
    "description": "Base URL of the Twake instance, without trailing slash",
}

DRIVE_TEST_REQUEST: Dict[str, Any] = {
    "method": "GET",
    "baseURL": '={{$self["instanceUrl"]}}',
    "url": f"/files/{ROOT_DIR_ID}",
    "headers": {"Accept": DRIVE_ACCEPT},
}


class TwakeDriveApiCredential(BearerTokenCredential):
    """Twake Drive API token credential"""

    name = "twakeDriveApi"
    display_name = "Twake Drive API"
    documentation_url = "https://github.com/cozy/cozy-stack/tree/master/docs"

    properties = [
        INSTANCE_URL_PROPERTY,
        {
            "name": "apiToken",
            "displayName": "API Token",
            "type": "string",
            "default": "",
            "typeOptions": {"password": True},
            "description": "API token for authorization",
        },
    ]

    test_request = DRIVE_TEST_REQUEST


class TwakeDriveOAuth2ApiCredential(OAuth2ApiCredential):
    """Twake Drive OAuth2 credential implementation"""

    name = "twakeDriveOAuth2Api"
    display_name = "Twake Drive OAuth2 API"
    documentation_url = "https://github.com/cozy/cozy-stack/blob/master/docs/auth.md#what-about-oauth2"
    icon = "file:icon.svg"
    extends = ["oAuth2Api"]

    @staticmethod
    def _build_properties() -> List[Dict[str, Any]]:
        """Build Twake-specific properties based on parent"""
        hidden = {
            "grantType": "authorizationCode",
            "scope": "io.cozy.files",
            "authentication": "body",
            "authQueryParameters": "",
        }
        endpoints = {
            "authUrl": ('={{$self["instanceUrl"]}}/auth/authorize', "Format: instance URL + /auth/authorize"),
            "accessTokenUrl": ('={{$self["instanceUrl"]}}/auth/access_token', "Format: instance URL + /auth/access_token"),
        }

        modified_props = [INSTANCE_URL_PROPERTY]
        for prop in OAuth2ApiCredential.properties:
            prop_copy = prop.copy()
            name = prop_copy["name"]

            if name in hidden:
                prop_copy.pop("options", None)
                prop_copy.update({"type": "hidden", "default": hidden[name]})
            elif name in endpoints:
                default, hint = endpoints[name]
                prop_copy.update({"default": default, "hint": hint})

            modified_props.append(prop_copy)

        return modified_props

    properties: ClassVar[List[Dict[str, Any]]] = _build_properties()

    test_request = DRIVE_TEST_REQUEST
