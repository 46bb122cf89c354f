"""
constants.py

Program ids, log markers and timing constants shared across the tracker.
"""

# Raydium Liquidity Pool V4
RAYDIUM_LP_V4_PROGRAM_ID = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"

# Raydium function call name, see raydium-amm/program/src/instruction.rs
RAYDIUM_INIT_LOG = "initialize2"

# Seed prefix used to derive the pool state account
POOL_SEED = b"Pool"

COMMITMENT_FINALIZED = "finalized"

# Historical scan
SIGNATURE_PAGE_SIZE = 25
REQUEST_DELAY_SECONDS = 2.0
MAX_SCAN_RETRIES = 3

# Pool sampling
RESAMPLE_INTERVAL_SECONDS = 300
HISTORICAL_SAMPLE_DELAY_SECONDS = 0.5
MAX_TRACKED_POOLS = 500
MAX_MISSED_SAMPLES = 12

# Live pipeline
EVENT_QUEUE_SIZE = 1000
WORKER_COUNT = 4
HEARTBEAT_INTERVAL_SECONDS = 60

SOLSCAN_TX_URL = "https://solscan.io/tx/{signature}"
