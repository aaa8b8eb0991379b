"""Bulk pipe: the in, out and interrupt endpoints of one USB interface."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Protocol, Sequence

from ptpwire.usbrequest import EndpointDirection, EndpointType

__all__ = ["BulkPipe"]

log = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10000


class _Endpoint(Protocol):
    direction: EndpointDirection
    type: EndpointType


class _Interface(Protocol):
    endpoints: Sequence[_Endpoint]


class _Configuration(Protocol):
    index: int


class _Device(Protocol):
    def get_configuration(self) -> int: ...

    def set_configuration(self, index: int) -> None: ...

    def clear_halt(self, endpoint: _Endpoint) -> None: ...

    def read_bulk(self, endpoint: _Endpoint, output_stream: Any, timeout: int) -> None: ...

    def write_bulk(self, endpoint: _Endpoint, input_stream: Any, timeout: int) -> None: ...


class BulkPipe:
    """Transfers streams over the bulk endpoints of an interface; transfers can be cancelled."""

    def __init__(
        self,
        device: _Device,
        configuration: _Configuration,
        interface: _Interface,
        in_endpoint: _Endpoint,
        out_endpoint: _Endpoint,
        interrupt_endpoint: _Endpoint,
        claim_token: Any = None,
    ) -> None:
        self.device = device
        self.configuration = configuration
        self.interface = interface
        self.in_endpoint = in_endpoint
        self.out_endpoint = out_endpoint
        self.interrupt_endpoint = interrupt_endpoint
        self.claim_token = claim_token
        self._lock = threading.Lock()
        self._current_stream: Any = None

        if configuration.index != device.get_configuration():
            device.set_configuration(configuration.index)

        for name, endpoint in (("in", in_endpoint), ("out", out_endpoint)):
            try:
                device.clear_halt(endpoint)
            except Exception as ex:
                log.error("clearing halt for %s ep: %s", name, ex)

    def read_interrupt(self) -> bytes:
        """Poll the interrupt endpoint; polling is disabled, so nothing is returned."""
        return b""

    @contextmanager
    def _streaming(self, stream: Any) -> Iterator[None]:
        cancellable = stream if callable(getattr(stream, "cancel", None)) else None
        with self._lock:
            self._current_stream = cancellable
        try:
            yield
        finally:
            with self._lock:
                self._current_stream = None

    def read(self, output_stream: Any, timeout: int = _DEFAULT_TIMEOUT) -> None:
        """Read a bulk transfer from the in endpoint into output_stream."""
        with self._streaming(output_stream):
            self.device.read_bulk(self.in_endpoint, output_stream, timeout)

    def write(self, input_stream: Any, timeout: int = _DEFAULT_TIMEOUT) -> None:
        """Send input_stream over the out endpoint."""
        with self._streaming(input_stream):
            self.device.write_bulk(self.out_endpoint, input_stream, timeout)

    def cancel(self) -> None:
        """Cancel the stream currently being transferred, if any."""
        with self._lock:
            stream = self._current_stream
        log.info("cancelling stream %r", stream)
        if stream is not None:
            stream.cancel()

    @classmethod
    def create(
        cls,
        device: _Device,
        configuration: _Configuration,
        interface: _Interface,
        claim_token: Any = None,
    ) -> BulkPipe:
        """Pick the bulk in, bulk out and interrupt endpoints of interface and open a pipe."""
        in_ep = out_ep = interrupt_ep = None
        for endpoint in interface.endpoints:
            is_bulk = endpoint.type == EndpointType.Bulk
            if endpoint.direction == EndpointDirection.Out:
                if is_bulk:
                    out_ep = endpoint
            elif is_bulk:
                in_ep = endpoint
            else:
                interrupt_ep = endpoint
        if in_ep is None or out_ep is None or interrupt_ep is None:
            raise ValueError("invalid endpoint")
        return cls(device, configuration, interface, in_ep, out_ep, interrupt_ep, claim_token)