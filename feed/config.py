import os
from dataclasses import dataclass


# Static well-known addresses (not resolved through the on-chain registry)
DEFAULT_FAUCET_ADDRESS = "0x456f41406b32c45d59e539e4bba3d7898c3584da"
DEFAULT_VERIFICATION_REWARDS_ADDRESS = "0xb4fdaf5f3cd313654aa357299ada901b1d2dd3b5"
DEFAULT_REGISTRY_ADDRESS = "0x000000000000000000000000000000000000ce10"


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    blockscout_api: str
    rpc_url: str
    registry_address: str
    faucet_address: str
    verification_rewards_address: str
    http_timeout_ms: int
    rpc_timeout_ms: int
    fetch_max_attempts: int
    gold_token_symbol: str
    stable_token_symbol: str
    metrics_enabled: bool = False
    metrics_port: int = 9110
    log_level: str = "INFO"


def load_settings() -> Settings:
    blockscout_api = os.getenv("BLOCKSCOUT_API", "https://alfajores-blockscout.celo-testnet.org/api")
    rpc_url = os.getenv("RPC_URL", "https://alfajores-forno.celo-testnet.org")
    registry_address = os.getenv("REGISTRY_ADDRESS", DEFAULT_REGISTRY_ADDRESS).lower()
    faucet_address = os.getenv("FAUCET_ADDRESS", DEFAULT_FAUCET_ADDRESS).lower()
    verification_rewards_address = os.getenv(
        "VERIFICATION_REWARDS_ADDRESS", DEFAULT_VERIFICATION_REWARDS_ADDRESS
    ).lower()
    http_timeout_ms = int(os.getenv("HTTP_TIMEOUT_MS", "10000"))
    rpc_timeout_ms = int(os.getenv("RPC_TIMEOUT_MS", "5000"))
    fetch_max_attempts = int(os.getenv("FETCH_MAX_ATTEMPTS", "3"))
    gold_token_symbol = os.getenv("GOLD_TOKEN_SYMBOL", "cGLD")
    stable_token_symbol = os.getenv("STABLE_TOKEN_SYMBOL", "cUSD")
    metrics_enabled = _env_flag(os.getenv("METRICS_ENABLED", ""))
    metrics_port = int(os.getenv("METRICS_PORT", "9110"))
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    return Settings(
        blockscout_api=blockscout_api,
        rpc_url=rpc_url,
        registry_address=registry_address,
        faucet_address=faucet_address,
        verification_rewards_address=verification_rewards_address,
        http_timeout_ms=http_timeout_ms,
        rpc_timeout_ms=rpc_timeout_ms,
        fetch_max_attempts=max(1, fetch_max_attempts),
        gold_token_symbol=gold_token_symbol,
        stable_token_symbol=stable_token_symbol,
        metrics_enabled=metrics_enabled,
        metrics_port=metrics_port,
        log_level=log_level,
    )
