import asyncio
from collections.abc import Awaitable, Callable, Sequence
from json import JSONDecodeError
from typing import TYPE_CHECKING, Any, cast

import aiohttp
import tenacity
from eth_abi.abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_typing import BlockIdentifier, ChecksumAddress
from hexbytes import HexBytes
from ujson import loads as ujson_loads
from web3 import AsyncBaseProvider, AsyncHTTPProvider, AsyncWeb3, JSONBaseProvider
from web3.exceptions import ContractLogicError, Web3Exception
from web3.types import FilterParams, LogReceipt, RPCResponse, TxParams

from pool_sync.chain import Chain
from pool_sync.exceptions import (
    ChainMismatch,
    LogFetchingTimeout,
    NotConnected,
    PoolSyncValueError,
    RequestTimeout,
    TransportError,
)
from pool_sync.functions import _increase_working_span, _reduce_working_span
from pool_sync.logging import logger
from pool_sync.types.abstract import AbstractChainClient
from pool_sync.types.aliases import BlockNumber
from pool_sync.types.concrete import CallFailure, CallResult, MethodCall

if TYPE_CHECKING:
    from pool_sync.config import SyncSettings


def _fast_decode_rpc_response(raw_response: bytes) -> RPCResponse:
    """
    Decode the JSON-RPC response using ujson.
    """

    try:
        return cast("RPCResponse", ujson_loads(raw_response))
    except ValueError:
        # Re-raise as a dummy JSONDecodeError so web3py's exception handling works as intended.
        msg = "JSON failure"
        raise JSONDecodeError(msg, "[]", 0) from None


def decode_call_result(address: ChecksumAddress, method: MethodCall, result: bytes) -> CallResult:
    """
    Decode the raw return data of a call, trying the alternate return types if the primary types do
    not match.
    """

    for return_types in (method.return_types, method.alternate_return_types):
        if return_types is None:
            continue
        try:
            return tuple(abi_decode(return_types, result))
        except (DecodingError, UnicodeDecodeError):
            continue

    return CallFailure(
        address=address,
        reason=f"Could not decode the result of {method.function_prototype}",
    )


class Web3ChainClient(AbstractChainClient):
    """
    Chain client backed by an `AsyncWeb3` instance.

    Every request is bounded by `request_timeout` seconds. Requests failing at the transport level
    are retried with exponential jitter backoff, up to `max_attempts` total attempts, unless retry
    is disabled.
    """

    RETRY_WAIT: tenacity.wait.wait_base = tenacity.wait_exponential_jitter(max=10)

    def __init__(
        self,
        w3: AsyncWeb3[AsyncBaseProvider],
        chain: Chain,
        *,
        request_timeout: float = 30.0,
        retry_enabled: bool = True,
        max_attempts: int = 5,
        endpoint: str | None = None,
    ) -> None:
        if request_timeout <= 0:
            raise PoolSyncValueError(message="The request timeout must be positive.")
        if max_attempts < 1:
            raise PoolSyncValueError(message="At least one attempt must be allowed.")

        self.w3 = w3
        self.chain = chain
        self.request_timeout = request_timeout
        self.retry_enabled = retry_enabled
        self.max_attempts = max_attempts
        self.endpoint = endpoint

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(chain={self.chain.name}, endpoint={self.endpoint})"

    @classmethod
    async def connect(
        cls,
        endpoint: str,
        chain: Chain,
        settings: "SyncSettings",
        *,
        optimize: bool = True,
    ) -> "Web3ChainClient":
        """
        Build a client for an HTTP endpoint, verify the connection and the chain ID.
        """

        w3 = AsyncWeb3(AsyncHTTPProvider(endpoint))

        async_w3_connected_check_with_retry = tenacity.AsyncRetrying(
            stop=tenacity.stop_after_delay(10),
            wait=tenacity.wait_exponential_jitter(),
            retry=tenacity.retry_if_result(lambda result: result is False),
        )
        try:
            await async_w3_connected_check_with_retry(w3.is_connected)
        except tenacity.RetryError as exc:
            raise NotConnected(endpoint=endpoint) from exc

        if optimize:
            # Remove all middleware and monkey-patch the JSON decoding for RPC responses
            w3.middleware_onion.clear()
            if TYPE_CHECKING:
                assert isinstance(w3.provider, JSONBaseProvider)
            w3.provider.decode_rpc_response = _fast_decode_rpc_response

        client = cls(
            w3=w3,
            chain=chain,
            request_timeout=settings.request_timeout,
            retry_enabled=settings.retry.enabled,
            max_attempts=settings.retry.max_attempts,
            endpoint=endpoint,
        )
        await client.verify_chain()
        return client

    async def verify_chain(self) -> None:
        chain_id = await self._request_with_retry("eth_chainId", lambda: self.w3.eth.chain_id)
        if chain_id != self.chain:
            raise ChainMismatch(expected=self.chain, actual=chain_id)

    def _retrier(self) -> tenacity.AsyncRetrying:
        return tenacity.AsyncRetrying(
            stop=tenacity.stop_after_attempt(self.max_attempts if self.retry_enabled else 1),
            wait=self.RETRY_WAIT,
            retry=tenacity.retry_if_exception_type(TransportError),
            reraise=True,
        )

    async def _request[T](self, description: str, request: Callable[[], Awaitable[T]]) -> T:
        try:
            async with asyncio.timeout(self.request_timeout):
                return await request()
        except TimeoutError:
            raise RequestTimeout(
                request=description, timeout_seconds=self.request_timeout
            ) from None
        except (aiohttp.ClientError, OSError) as exc:
            raise TransportError(message=f"Transport failure during {description}: {exc}") from exc

    async def _request_with_retry[T](
        self, description: str, request: Callable[[], Awaitable[T]]
    ) -> T:
        return await self._retrier()(self._request, description, request)

    async def current_block_height(self) -> BlockNumber:
        return await self._request_with_retry("eth_blockNumber", lambda: self.w3.eth.block_number)

    async def close(self) -> None:
        await self.w3.provider.disconnect()

    async def get_logs(
        self,
        address: ChecksumAddress | Sequence[ChecksumAddress] | None,
        topics: Sequence[HexBytes | Sequence[HexBytes] | None],
        start_block: BlockNumber,
        end_block: BlockNumber,
    ) -> list[LogReceipt]:
        """
        Fetch the logs in chunks. The chunk size starts at the full range, is reduced after a failed
        attempt and recovers slowly after successful ones. A chunk failing `max_attempts` times
        raises `LogFetchingTimeout`.
        """

        if end_block < start_block:
            raise PoolSyncValueError(message="End block cannot be earlier than start block.")

        max_retries = self.max_attempts if self.retry_enabled else 1
        ceiling = end_block - start_block + 1
        working_span = ceiling
        event_logs: list[LogReceipt] = []

        while True:
            retrier = tenacity.AsyncRetrying(
                stop=tenacity.stop_after_attempt(max_retries),
                wait=self.RETRY_WAIT,
                retry=tenacity.retry_if_exception_type((TransportError, Web3Exception)),
            )
            try:
                async for attempt in retrier:
                    chunk_end = min(end_block, start_block + working_span - 1)

                    with attempt:
                        filter_params = FilterParams(
                            fromBlock=start_block,
                            toBlock=chunk_end,
                            topics=list(topics),  # type: ignore[typeddict-item]
                        )
                        if address is not None:
                            filter_params["address"] = address

                        try:
                            logger.debug(
                                f"Fetching logs for range {start_block}-{chunk_end} "
                                f"({chunk_end - start_block + 1} blocks)"
                            )
                            logs = await self._request(
                                f"eth_getLogs {start_block}-{chunk_end}",
                                lambda: self.w3.eth.get_logs(filter_params),
                            )
                        except (TransportError, Web3Exception):
                            working_span = _reduce_working_span(
                                working_span=working_span,
                                percent=25,
                            )
                            logger.debug(
                                f"Attempt {attempt.retry_state.attempt_number} failed "
                                f"fetching {chunk_end - start_block + 1} blocks. "
                                f"Reducing to {working_span}..."
                            )
                            raise
                        else:
                            event_logs.extend(logs)
                            working_span = _increase_working_span(
                                working_span=working_span,
                                percent=1,
                                ceiling=ceiling,
                            )
            except tenacity.RetryError as exc:
                raise LogFetchingTimeout(max_retries=max_retries) from exc.last_attempt.exception()

            if chunk_end == end_block:
                return event_logs

            start_block = chunk_end + 1

    async def _eth_call(
        self,
        address: ChecksumAddress,
        calldata: bytes,
        block_identifier: BlockIdentifier,
    ) -> bytes | CallFailure:
        """
        Execute a single call. A revert is reported as a `CallFailure` for the address. Any other
        error returned by the node is retried as a `TransportError`.
        """

        async def call() -> bytes:
            try:
                return await self.w3.eth.call(
                    TxParams(to=address, data=calldata),
                    block_identifier=block_identifier,
                )
            except ContractLogicError:
                raise
            except Web3Exception as exc:
                raise TransportError(
                    message=f"Node error during eth_call to {address}: {exc}"
                ) from exc

        try:
            return await self._request_with_retry(f"eth_call to {address}", call)
        except ContractLogicError as exc:
            return CallFailure(address=address, reason=str(exc))

    async def _batched_eth_call(
        self,
        addresses: Sequence[ChecksumAddress],
        calldata: bytes,
        block_identifier: BlockIdentifier,
    ) -> list[Any]:
        async with self.w3.batch_requests() as batch:
            for address in addresses:
                batch.add(
                    self.w3.eth.call(
                        TxParams(to=address, data=calldata),
                        block_identifier=block_identifier,
                    )
                )
            return list(await batch.async_execute())

    async def batch_call(
        self,
        addresses: Sequence[ChecksumAddress],
        method: MethodCall,
        block_identifier: BlockNumber | None = None,
    ) -> list[CallResult]:
        """
        Execute the call for all addresses in a single JSON-RPC batch. If the node rejects the batch
        or any item in it, the calls are repeated individually so a reverting contract only affects
        its own result. Node errors on an individual call raise `TransportError`.
        """

        if not addresses:
            return []

        block: BlockIdentifier = block_identifier if block_identifier is not None else "latest"
        calldata = method.calldata

        raw_results: list[bytes | CallFailure]
        try:
            raw_results = await self._request_with_retry(
                f"batched {method.function_prototype} for {len(addresses)} contracts",
                lambda: self._batched_eth_call(addresses, calldata, block),
            )
        except Web3Exception as exc:
            logger.debug(
                f"Batched {method.function_prototype} failed ({exc}), "
                f"retrying {len(addresses)} calls individually"
            )
            raw_results = [await self._eth_call(address, calldata, block) for address in addresses]

        if len(raw_results) != len(addresses):
            raise TransportError(
                message=f"Node returned {len(raw_results)} results for {len(addresses)} calls."
            )

        return [
            result
            if isinstance(result, CallFailure)
            else decode_call_result(address, method, HexBytes(result))
            for address, result in zip(addresses, raw_results, strict=True)
        ]
