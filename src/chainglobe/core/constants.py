"""
Engine-wide constants.

Thresholds here are empirically chosen defaults; every one of them can be
overridden through EngineConfig.
"""

# Provider base URLs (all public, unauthenticated)
DEFILLAMA_BASE_URL = "https://api.llama.fi"
DEFILLAMA_ICONS_URL = "https://icons.llama.fi"
COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
DEXSCREENER_BASE_URL = "https://api.dexscreener.com/latest/dex"
STABLECOINS_BASE_URL = "https://stablecoins.llama.fi"
YIELDS_BASE_URL = "https://yields.llama.fi"
FEAR_GREED_BASE_URL = "https://api.alternative.me/fng"

USER_AGENT = "chainglobe/0.1"

# Transport-level socket timeout; a hung connection surfaces as a transport failure
REQUEST_TIMEOUT_SECONDS = 30

# Per-provider bulk cache TTLs
REGISTRY_TTL_SECONDS = 5 * 60
STABLECOIN_TTL_SECONDS = 5 * 60
YIELDS_TTL_SECONDS = 5 * 60
SENTIMENT_TTL_SECONDS = 10 * 60  # index updates once a day anyway

# Entity snapshot freshness
SNAPSHOT_STALENESS_SECONDS = 5 * 60

# Warm-up launch stagger per entity
WARMUP_STAGGER_SECONDS = 0.05

# Roster discovery
DISCOVERY_MIN_TVL_USD = 100_000_000
DISCOVERY_LIMIT = 20

# Liquidity fallback search
LIQUIDITY_SEARCH_LIMIT = 10

# Yield filters
TOP_YIELDS_LIMIT = 3
YIELD_MIN_POOL_TVL_USD = 1_000_000
YIELD_MAX_REASONABLE_APY = 1000

# Registry listings
TOP_PROTOCOLS_LIMIT = 20

# CoinGecko free tier allows 10-50 calls/minute
COINGECKO_CALLS_PER_MINUTE = 30

# Market data history window
PRICE_HISTORY_DAYS = 7
