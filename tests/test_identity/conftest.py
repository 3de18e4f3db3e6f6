import pytest

import sys, os
target_path = os.path.abspath(os.path.join(os.path.dirname(os.path.abspath(__file__)), "../.."))
if target_path not in sys.path:
    sys.path.insert(0, target_path)

from trust_identity.identity import TenantConfig, new_tenant_config


@pytest.fixture(scope="module")
def tenant() -> TenantConfig:
    return new_tenant_config()


@pytest.fixture(scope="module")
def other_tenant() -> TenantConfig:
    return new_tenant_config()
