MIN_INT24: int = -(2 ** (24 - 1))
MAX_INT24: int = (2 ** (24 - 1)) - 1

MIN_INT128: int = -(2 ** (128 - 1))
MAX_INT128: int = (2 ** (128 - 1)) - 1

MIN_UINT8: int = 0
MAX_UINT8: int = 2**8 - 1

MIN_UINT24: int = 0
MAX_UINT24: int = 2**24 - 1

MIN_UINT112: int = 0
MAX_UINT112: int = 2**112 - 1

MIN_UINT128: int = 0
MAX_UINT128: int = 2**128 - 1

MIN_UINT160: int = 0
MAX_UINT160: int = 2**160 - 1

MIN_UINT256: int = 0
MAX_UINT256: int = 2**256 - 1
