type BlockNumber = int
type ChainId = int
type Tick = int
type Liquidity = int
