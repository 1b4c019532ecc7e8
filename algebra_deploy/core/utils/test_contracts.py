import json
from pathlib import Path

import pytest
from eth_utils import function_signature_to_4byte_selector

from algebra_deploy.core.utils.contracts import (
    ArtifactStore,
    build_deploy_transaction,
    encode_call,
    parse_artifact,
)

DEPLOYER = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
POOL_DEPLOYER = "0x5fbdb2315678afecb367f032d93f642f64180aa3"

FACTORY_ABI = [
    {
        "type": "constructor",
        "inputs": [{"name": "_poolDeployer", "type": "address"}],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "setVaultFactory",
        "inputs": [{"name": "newVaultFactory", "type": "address"}],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
]


def _write_artifact(root: Path, name: str, abi: list, bytecode: str = "0x6060") -> Path:
    path = root / "contracts" / f"{name}.sol" / f"{name}.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"contractName": name, "abi": abi, "bytecode": bytecode}))
    (path.parent / f"{name}.dbg.json").write_text("{}")
    return path


def test_artifact_store_finds_hardhat_layout(tmp_path):
    path = _write_artifact(tmp_path, "AlgebraFactory", FACTORY_ABI)
    store = ArtifactStore(tmp_path)

    artifact = store.load("AlgebraFactory")

    assert artifact.path == path
    assert artifact.bytecode == "0x6060"
    assert artifact.constructor_inputs()[0]["type"] == "address"
    assert artifact.has_function("setVaultFactory")
    assert store.load("AlgebraFactory") is artifact


def test_artifact_store_missing_and_ambiguous(tmp_path):
    store = ArtifactStore(tmp_path)
    with pytest.raises(FileNotFoundError, match="No artifact named"):
        store.load("AlgebraFactory")

    _write_artifact(tmp_path, "AlgebraFactory", FACTORY_ABI)
    dup = tmp_path / "contracts" / "test" / "AlgebraFactory.json"
    dup.parent.mkdir(parents=True)
    dup.write_text(json.dumps({"abi": [], "bytecode": "0x01"}))
    with pytest.raises(ValueError, match="Ambiguous"):
        store.load("AlgebraFactory")


def test_artifact_store_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError, match="Artifacts directory not found"):
        ArtifactStore(tmp_path / "nope").load("AlgebraFactory")


def test_parse_artifact_rejects_unusable_bytecode():
    with pytest.raises(ValueError, match="empty bytecode"):
        parse_artifact({"abi": [], "bytecode": "0x"}, name="IAlgebraFactory")
    with pytest.raises(ValueError, match="unlinked"):
        parse_artifact(
            {"abi": [], "bytecode": "0x60__$abcdef$__60"}, name="UsesLibrary"
        )
    with pytest.raises(ValueError, match="no ABI"):
        parse_artifact({"bytecode": "0x60"}, name="Broken")


def test_parse_artifact_accepts_solc_object_shape():
    artifact = parse_artifact(
        {"abi": [], "bytecode": {"object": "6080"}}, name="AlgebraVaultFactoryStub"
    )
    assert artifact.bytecode == "0x6080"


def test_build_deploy_transaction_appends_encoded_constructor_args():
    artifact = parse_artifact({"abi": FACTORY_ABI, "bytecode": "0x6060"}, name="AlgebraFactory")

    tx = build_deploy_transaction(
        artifact, [POOL_DEPLOYER], from_address=DEPLOYER.lower(), chain_id=31337
    )

    assert tx["chainId"] == 31337
    assert tx["from"] == DEPLOYER
    assert tx["value"] == 0
    assert "to" not in tx and "nonce" not in tx and "gas" not in tx
    data = tx["data"].lower()
    assert data.startswith("0x6060")
    assert data[len("0x6060") :] == "0" * 24 + POOL_DEPLOYER[2:]


def test_build_deploy_transaction_checks_arity():
    artifact = parse_artifact({"abi": FACTORY_ABI, "bytecode": "0x6060"}, name="AlgebraFactory")
    with pytest.raises(ValueError, match="Expected 1 arguments"):
        build_deploy_transaction(artifact, [], from_address=DEPLOYER, chain_id=1)


def test_encode_call_set_vault_factory():
    stub = "0xe7f1725e7734ce288f8367e1bb143e90bb3f0512"
    tx = encode_call(
        target=POOL_DEPLOYER,
        abi=FACTORY_ABI,
        fn_name="setVaultFactory",
        args=[stub],
        from_address=DEPLOYER,
        chain_id=1,
    )

    selector = function_signature_to_4byte_selector("setVaultFactory(address)").hex()
    data = tx["data"].lower()
    assert data.startswith("0x" + selector)
    assert data.endswith(stub[2:])
    assert tx["to"] == "0x5FbDB2315678afecb367f032d93F642f64180aa3"


def test_encode_call_unknown_function():
    with pytest.raises(ValueError, match="not found"):
        encode_call(
            target=POOL_DEPLOYER,
            abi=FACTORY_ABI,
            fn_name="owner",
            args=[],
            from_address=DEPLOYER,
            chain_id=1,
        )
