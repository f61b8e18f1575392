"""Configuration constants for linked-deployments library."""

# Network configuration based on ethereum-lists/chains
# EIP-3770 chain short names prefix environment variables
NETWORK_CONFIG = {
    "mainnet": {
        "chain_id": 1,
        "chain_name": "Ethereum Mainnet",
        "short_name": "eth",  # EIP-3770
        "block_explorer_url": "https://etherscan.io",
        "default_rpc_env": "ETH_RPC_URL",
    },
    "testnet": {
        "chain_id": 11155111,
        "chain_name": "Sepolia",
        "short_name": "sep",  # EIP-3770
        "block_explorer_url": "https://sepolia.etherscan.io",
        "default_rpc_env": "SEP_RPC_URL",
    },
    "local": {
        "chain_id": 1337,
        "chain_name": "Local Development Chain",
        "short_name": "local",
        "block_explorer_url": "",
        "default_rpc_env": "LOCAL_RPC_URL",
    },
}

# Built-in policy variants, one per network id
# - values: concrete parameters for EnvValue constructor arguments
# - optional_units: optional units deployed on this network
# The pre-existing sale token address has no built-in value; supply it through
# the environment (e.g. ETH_TOKEN_ADDRESS) or declare a token unit instead.
NETWORK_POLICIES = {
    "mainnet": {
        "values": {
            "beneficiary": "0x7e5f4552091a69125d5dfcb7b8c2659029395bdf",
            "funding_goal": 1000,
            "funding_cap": 100000,
            "duration_minutes": 60,
        },
        "optional_units": [],
    },
    "testnet": {
        "values": {
            "beneficiary": "0x2b5ad5c4795c026514f8317c7a215e218dccd6cf",
            "funding_goal": 10,
            "funding_cap": 1000,
            "duration_minutes": 60,
        },
        "optional_units": [],
    },
    "local": {
        "values": {
            "beneficiary": "0x6813eb9362372eef6200f3b1dbc3f819671cba69",
            "funding_goal": 1,
            "funding_cap": 100,
            "duration_minutes": 5,
        },
        # Standalone token only exists for local testing
        "optional_units": ["StandardToken"],
    },
}

# Receipt polling defaults for the JSON-RPC submitter
RECEIPT_POLL_INTERVAL = 1.0  # seconds
RECEIPT_POLL_ATTEMPTS = 120
