from dataclasses import dataclass

from eth_typing import ChecksumAddress

from pool_sync.chain import Chain
from pool_sync.checksum_cache import get_checksum_address
from pool_sync.types.aliases import BlockNumber


@dataclass(slots=True, frozen=True)
class FactoryDeployment:
    address: ChecksumAddress
    # Block of the factory deployment, or 0 if unknown. The first sync for a pool type starts here.
    deployment_block: BlockNumber = 0


UNISWAP_V2_FACTORIES = {
    Chain.ETHEREUM: FactoryDeployment(
        address=get_checksum_address("0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f"),
        deployment_block=10_000_835,
    ),
    Chain.BASE: FactoryDeployment(
        address=get_checksum_address("0x8909Dc15e40173Ff4699343b6eB8132c65e18eC6"),
    ),
}

SUSHISWAP_V2_FACTORIES = {
    Chain.ETHEREUM: FactoryDeployment(
        address=get_checksum_address("0xC0AEe478e3658e2610c5F7A4A2E1777cE9e4f2Ac"),
        deployment_block=10_794_229,
    ),
    Chain.BASE: FactoryDeployment(
        address=get_checksum_address("0x71524B4f93c58fcbF659783284E38825f0622859"),
    ),
    Chain.ARBITRUM: FactoryDeployment(
        address=get_checksum_address("0xc35DADB65012eC5796536bD9864eD8773aBc74C4"),
    ),
}

PANCAKESWAP_V2_FACTORIES = {
    Chain.ETHEREUM: FactoryDeployment(
        address=get_checksum_address("0x1097053Fd2ea711dad45caCcc45EfF7548fCB362"),
    ),
    Chain.BASE: FactoryDeployment(
        address=get_checksum_address("0x02a84c1b3BBD7401a5f7fa98a384EBC70bB5749E"),
    ),
}

ALIENBASE_V2_FACTORIES = {
    Chain.BASE: FactoryDeployment(
        address=get_checksum_address("0x0Fd83557b2be93617c9C1C1B6fd549401C74558C"),
    ),
}

UNISWAP_V3_FACTORIES = {
    Chain.ETHEREUM: FactoryDeployment(
        address=get_checksum_address("0x1F98431c8aD98523631AE4a59f267346ea31F984"),
        deployment_block=12_369_621,
    ),
    Chain.BASE: FactoryDeployment(
        address=get_checksum_address("0x33128a8fC17869897dcE68Ed026d694621f6FDfD"),
    ),
    Chain.ARBITRUM: FactoryDeployment(
        address=get_checksum_address("0x1F98431c8aD98523631AE4a59f267346ea31F984"),
    ),
}

SUSHISWAP_V3_FACTORIES = {
    Chain.ETHEREUM: FactoryDeployment(
        address=get_checksum_address("0xbACEB8eC6b9355Dfc0269C18bac9d6E2Bdc29C4F"),
    ),
    Chain.BASE: FactoryDeployment(
        address=get_checksum_address("0xc35DADB65012eC5796536bD9864eD8773aBc74C4"),
    ),
    Chain.ARBITRUM: FactoryDeployment(
        address=get_checksum_address("0x1af415a1EbA07a4986a52B6f2e7dE7003D82231e"),
    ),
}

PANCAKESWAP_V3_FACTORIES = {
    Chain.ETHEREUM: FactoryDeployment(
        address=get_checksum_address("0x0BFbCF9fa4f9C56B0F40a671Ad40E0805A091865"),
    ),
    Chain.BASE: FactoryDeployment(
        address=get_checksum_address("0x0BFbCF9fa4f9C56B0F40a671Ad40E0805A091865"),
    ),
}

ALIENBASE_V3_FACTORIES = {
    Chain.BASE: FactoryDeployment(
        address=get_checksum_address("0xB27f110571c96B8271d91ad42D33A391A75E6030"),
    ),
}

CURVE_TRICRYPTO_FACTORIES = {
    Chain.ETHEREUM: FactoryDeployment(
        address=get_checksum_address("0x0c0e5f2fF0ff18a3be9b835635039256dC4B4963"),
    ),
    Chain.BASE: FactoryDeployment(
        address=get_checksum_address("0xA5961898870943c68037F6848d2D866Ed2016bcB"),
    ),
}
