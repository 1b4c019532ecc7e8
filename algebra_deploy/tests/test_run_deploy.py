from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from loguru import logger

from algebra_deploy import run_deploy
from algebra_deploy.core.clients.ChainClient import Web3ChainClient
from algebra_deploy.core.utils.addresses import compute_create_address
from algebra_deploy.testing.fake_chain import DEPLOYER, FakeChainClient


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    # main() points a sink at the captured stderr
    logger.remove()


@pytest.fixture
def chain() -> FakeChainClient:
    chain = FakeChainClient(nonce=2)
    chain.chain_id = 31337
    return chain


@pytest.fixture
def record(tmp_path):
    path = tmp_path / "deploys.json"
    path.write_text(json.dumps({"wnative": "0x01"}))
    return path


def test_success_exits_zero_and_prints_addresses(
    chain, record, capsys, restore_global_config
):
    with patch.object(Web3ChainClient, "from_config", return_value=chain) as from_config:
        code = run_deploy.main(["--record", str(record), "--chain", "hardhat"])

    assert code == 0
    assert from_config.call_args.kwargs["chain_id"] == 31337
    out = capsys.readouterr().out
    factory = compute_create_address(DEPLOYER, 2)
    assert f"factory: {factory}" in out
    assert f"poolDeployer: {compute_create_address(DEPLOYER, 3)}" in out
    saved = json.loads(record.read_text())
    assert saved["wnative"] == "0x01"
    assert saved["factory"] == factory


def test_failure_exits_one_with_error_on_stderr(chain, record, capsys, restore_global_config):
    chain.fail_submit.add("AlgebraPoolDeployer")

    with patch.object(Web3ChainClient, "from_config", return_value=chain):
        code = run_deploy.main(["--record", str(record)])

    assert code == 1
    err = capsys.readouterr().err
    assert "Error: AlgebraPoolDeployer failed" in err
    assert json.loads(record.read_text()) == {"wnative": "0x01"}


def test_missing_record_exits_one(chain, tmp_path, capsys, restore_global_config):
    with patch.object(Web3ChainClient, "from_config", return_value=chain):
        code = run_deploy.main(["--record", str(tmp_path / "nope.json")])

    assert code == 1
    assert "address record not found" in capsys.readouterr().err
    assert chain.submissions == []


def test_missing_explicit_config_exits_one(tmp_path, capsys, restore_global_config):
    code = run_deploy.main(["--config", str(tmp_path / "config.json")])

    assert code == 1
    assert "Config file not found" in capsys.readouterr().err


def test_dry_run_sends_nothing(chain, record, capsys, restore_global_config):
    with patch.object(Web3ChainClient, "from_config", return_value=chain):
        code = run_deploy.main(["--dry-run", "--record", str(record)])

    assert code == 0
    out = capsys.readouterr().out
    assert compute_create_address(DEPLOYER, 3) in out
    assert "setVaultFactory" in out
    assert chain.submissions == []
    assert json.loads(record.read_text()) == {"wnative": "0x01"}


def test_unknown_chain_name_exits_one(capsys, restore_global_config):
    assert run_deploy.main(["--chain", "atlantis"]) == 1
    assert "Unknown chain" in capsys.readouterr().err


def test_dry_run_with_deployer_needs_no_key(chain, capsys, restore_global_config):
    with (
        patch.object(Web3ChainClient, "read_only", return_value=chain) as read_only,
        patch.object(Web3ChainClient, "from_config") as from_config,
    ):
        code = run_deploy.main(
            ["--dry-run", "--deployer", DEPLOYER, "--chain", "hardhat"]
        )

    assert code == 0
    from_config.assert_not_called()
    assert read_only.call_args.args == (DEPLOYER,)
    assert read_only.call_args.kwargs["chain_id"] == 31337
    assert compute_create_address(DEPLOYER, 3) in capsys.readouterr().out
    assert chain.submissions == []


def test_deployer_without_dry_run_exits_one(capsys, restore_global_config):
    with patch.object(Web3ChainClient, "read_only") as read_only:
        code = run_deploy.main(["--deployer", DEPLOYER, "--chain", "hardhat"])

    assert code == 1
    read_only.assert_not_called()
    assert "--deployer only works with --dry-run" in capsys.readouterr().err
