import pytest

from algebra_deploy.core.utils.addresses import compute_create_address, same_address

HARDHAT_ACCOUNT_0 = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


@pytest.mark.parametrize(
    "nonce,expected",
    [
        (0, "0x5FbDB2315678afecb367f032d93F642f64180aa3"),
        (1, "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"),
        (2, "0x9fE46736679d2D9a65F0992F2272dE9f3c7fa6e0"),
        (3, "0xCf7Ed3AccA5a467e9e704C703E8D87F634fB0Fc9"),
    ],
)
def test_matches_hardhat_default_account_deployments(nonce, expected):
    assert compute_create_address(HARDHAT_ACCOUNT_0, nonce) == expected


def test_reference_vectors_from_lowercase_sender():
    sender = "0x6ac7ea33f8831ea9dcc53393aaa88b25a785dbf0"
    got = [compute_create_address(sender, n).lower() for n in range(4)]
    assert got == [
        "0xcd234a471b72ba2f1ccf0a70fcaba648a5eecd8d",
        "0x343c43a37d37dff08ae8c4a11544c718abb4fcf8",
        "0xf778b86fa74e846c4f0a1fbd1335fe81c00a0c91",
        "0xfffd933a0bc612844eaf0c6fe3e5b8e9b6c1d19c",
    ]


def test_large_nonce_is_deterministic():
    a = compute_create_address(HARDHAT_ACCOUNT_0, 1_000_000)
    assert a == compute_create_address(HARDHAT_ACCOUNT_0.lower(), 1_000_000)
    assert a != compute_create_address(HARDHAT_ACCOUNT_0, 1_000_001)


def test_rejects_bad_nonce():
    with pytest.raises(ValueError, match="non-negative"):
        compute_create_address(HARDHAT_ACCOUNT_0, -1)
    with pytest.raises(TypeError):
        compute_create_address(HARDHAT_ACCOUNT_0, True)


def test_same_address_ignores_case():
    addr = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
    assert same_address(addr, addr.lower())
    assert not same_address(addr, "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512")
    assert not same_address(addr, None)
