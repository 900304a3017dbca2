"""
PairSwap Constants

This module consolidates the protocol constants and the environment
configuration used throughout the package. Environment values are read
once, at import, from a `.env` file in the working directory and fall back
to the defaults below.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
    'LOG_FILE_PATH':                   'logs/pairswap.log',
}

EXCHANGE_DEFAULTS = {
    'PAIRSWAP_TWAP_WINDOW_SECONDS':      '3600',
    'PAIRSWAP_DEFAULT_DEADLINE_SECONDS': '1200',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE VALUES BELOW ARE PART OF THE PRICING AND ACCOUNTING RULES. CHANGING
# THEM BREAKS AGREEMENT BETWEEN ROUTER QUOTES AND ENGINE-ENFORCED OUTCOMES.

# ==================================================================================
# FIXED-WIDTH ARITHMETIC
# ==================================================================================
UINT32_MOD = 2 ** 32
UINT112_MAX = 2 ** 112 - 1
UINT256_MOD = 2 ** 256
Q112 = 2 ** 112  # UQ112x112 resolution


# ==================================================================================
# PAIR PARAMETERS
# ==================================================================================
# Claim tokens locked forever at first provision
MINIMUM_LIQUIDITY = 10 ** 3

# Swap fee: FEE_NUMERATOR / FEE_DENOMINATOR = 0.3%
FEE_DENOMINATOR = 1000
FEE_NUMERATOR = 3
FEE_MULTIPLIER = FEE_DENOMINATOR - FEE_NUMERATOR  # 997

# Null identifier; also the holder of the locked claim tokens
ZERO_ADDRESS = '0x' + '0' * 40

CLAIM_TOKEN_NAME = 'PairSwap LP'
CLAIM_TOKEN_SYMBOL = 'PSW-LP'
CLAIM_TOKEN_DECIMALS = 18


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = LOGGER_DEFAULTS | EXCHANGE_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    # Case-insensitive membership check
    if s.casefold() in {"true", "false"}:
        # ast.literal_eval expects "True"/"False"
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    # Parses only boolean-literals. Leaves other values untouched.
    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    # Wraps based on parsed value type.
    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        # Preserves the original raw string for ConfigString storage.
        namespace[key] = ConfigString(value_raw, default_val)


def config_int(value) -> int:
    """Integer view of a ConfigString, falling back to its default when malformed."""
    try:
        return int(str(value).strip())
    except ValueError:
        return int(value.default())


TWAP_WINDOW_SECONDS = config_int(namespace['PAIRSWAP_TWAP_WINDOW_SECONDS'])
DEFAULT_DEADLINE_SECONDS = config_int(namespace['PAIRSWAP_DEFAULT_DEADLINE_SECONDS'])
