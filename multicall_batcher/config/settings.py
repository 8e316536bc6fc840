"""
Global settings for the multicall batcher
Values can be overridden from the environment or a .env file
"""
import os
from typing import Final
from dotenv import load_dotenv

load_dotenv()

# Multicall3 is deployed at the same address on most EVM chains
MULTICALL3_ADDRESS: Final[str] = "0xcA11bde05977b3631167028862bE2a173976CA11"

# Maximum number of calls packed into a single aggregate3 request
DEFAULT_BATCH_SIZE: Final[int] = int(os.getenv("MULTICALL_BATCH_SIZE", "100"))

# Deadline in seconds shared by every chunk of one multicall
DEFAULT_TIMEOUT: Final[float] = float(os.getenv("MULTICALL_TIMEOUT", "30.0"))

# Block tag used for eth_call
DEFAULT_BLOCK: Final[str] = os.getenv("MULTICALL_BLOCK", "latest")

# Per-request timeout of the HTTP provider in seconds
RPC_TIMEOUT: Final[float] = float(os.getenv("RPC_TIMEOUT", "15.0"))

# Logging level
LOG_LEVEL: Final[str] = os.getenv("LOG_LEVEL", "INFO").upper()
