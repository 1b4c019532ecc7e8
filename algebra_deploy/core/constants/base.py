GAS_BUFFER_MULTIPLIER = 1.1
SUGGESTED_PRIORITY_FEE_MULTIPLIER = 1.5
SUGGESTED_GAS_PRICE_MULTIPLIER = 1.5
MAX_BASE_FEE_GROWTH_MULTIPLIER = 2

# Receipt polling (seconds)
RECEIPT_POLL_INTERVAL = 0.1

# Hardhat artifact names of the core contracts
ARTIFACT_FACTORY = "AlgebraFactory"
ARTIFACT_POOL_DEPLOYER = "AlgebraPoolDeployer"
ARTIFACT_VAULT = "AlgebraCommunityVault"
ARTIFACT_VAULT_FACTORY_STUB = "AlgebraVaultFactoryStub"

# Keys written to the address record
RECORD_KEY_POOL_DEPLOYER = "poolDeployer"
RECORD_KEY_FACTORY = "factory"
RECORD_KEY_VAULT = "vault"
RECORD_KEY_VAULT_FACTORY = "vaultFactory"

RECORD_KEYS = (
    RECORD_KEY_POOL_DEPLOYER,
    RECORD_KEY_FACTORY,
    RECORD_KEY_VAULT,
    RECORD_KEY_VAULT_FACTORY,
)

SET_VAULT_FACTORY_METHOD = "setVaultFactory"

# The pool deployer is the second transaction of the run, right after the factory.
POOL_DEPLOYER_NONCE_OFFSET = 1
