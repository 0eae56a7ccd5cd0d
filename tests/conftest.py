"""Pytest configuration and fixtures."""
import os
import time
from typing import Any, Dict, List, Optional

import pytest

from tests.helpers import INSTANCE_URL

# Set test environment variables
os.environ["NODE_SDK_ENV"] = "test"
os.environ["NODE_SDK_LOG_FORMAT"] = "text"


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Reload settings from the environment for every test."""
    from src.node_sdk.settings import reset_settings as reset_sdk_settings
    from nodepacks.twake_drive.settings import reset_settings as reset_pack_settings

    reset_sdk_settings()
    reset_pack_settings()
    yield
    reset_sdk_settings()
    reset_pack_settings()


@pytest.fixture
def api_token_credentials():
    return {"twakeDriveApi": {"instanceUrl": INSTANCE_URL + "/", "apiToken": "test-token"}}


@pytest.fixture
def oauth2_credentials():
    return {
        "twakeDriveOAuth2Api": {
            "instanceUrl": INSTANCE_URL,
            "clientId": "client-123",
            "clientSecret": "secret-456",
            "oauthTokenData": {
                "access_token": "old-access",
                "refresh_token": "refresh-1",
                "expires_at": time.time() + 3600,
            },
        }
    }


@pytest.fixture
def make_node(api_token_credentials):
    """Factory for a TwakeDriveNode bound to a test execution context."""
    from src.node_sdk.basenode import NodeExecutionContext
    from nodepacks.twake_drive import CREDENTIAL_CLASSES, TwakeDriveNode

    def factory(
        parameters: Optional[Dict[str, Any]] = None,
        input_data: Optional[List[Dict[str, Any]]] = None,
        credentials: Optional[Dict[str, Dict[str, Any]]] = None,
        continue_on_fail: bool = False,
        on_credentials_updated=None,
    ):
        params = {"authentication": "apiToken", **(parameters or {})}
        context = NodeExecutionContext(
            parameters=params,
            credentials=credentials if credentials is not None else api_token_credentials,
            input_data=input_data if input_data is not None else [{"json": {}}],
            workflow_id="wf-test",
            node_name="Twake Drive",
            continue_on_fail=continue_on_fail,
            credential_types=CREDENTIAL_CLASSES,
            on_credentials_updated=on_credentials_updated,
        )
        node = TwakeDriveNode()
        node.set_context(context)
        return node

    return factory
