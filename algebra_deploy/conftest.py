import copy

import pytest

import algebra_deploy.core.config as deploy_config
from algebra_deploy.testing.fake_chain import fake_chain  # noqa: F401


@pytest.fixture
def restore_global_config():
    original = copy.deepcopy(deploy_config.CONFIG)
    yield
    deploy_config.set_config(original)
