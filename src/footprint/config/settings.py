import os
from decimal import Decimal
from dotenv import load_dotenv
load_dotenv()
# ---- Clusters ----
CLUSTERS = {
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "mainnet": "https://api.mainnet-beta.solana.com",
}
DEFAULT_CLUSTER = os.environ.get("SOLANA_CLUSTER", "devnet")
SOLANA_RPC_URL = os.environ.get("SOLANA_RPC_URL")    # overrides the cluster endpoint

# ---- RPC transport ----
RPC_TIMEOUT_SEC = 30
RPC_MAX_RETRIES = 3
RPC_REQUESTS_PER_SEC = float(os.environ.get("RPC_REQUESTS_PER_SEC", "8.0"))

# ---- Query windows ----
ACCOUNT_PAGE_SIZE = 20
CPI_SIGNATURE_LIMIT = 10
SPECIAL_PROGRAM_SIGNATURE_LIMIT = 10
FETCH_MAX_WORKERS = 8

# ---- Well-known programs ----
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
METADATA_PROGRAM_ID = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"

# Fixed layout sizes (bytes)
TOKEN_ACCOUNT_SIZE = 165
METADATA_ACCOUNT_SIZE = 679
SYSTEM_ACCOUNT_SIZE = 0

# ----- Display ------
LAMPORTS_PER_SOL = Decimal("1000000000")


def cluster_url(cluster: str) -> str:
    if SOLANA_RPC_URL:
        return SOLANA_RPC_URL
    try:
        return CLUSTERS[cluster]
    except KeyError:
        raise ValueError(f"Unknown cluster {cluster!r}; expected one of {sorted(CLUSTERS)}") from None
