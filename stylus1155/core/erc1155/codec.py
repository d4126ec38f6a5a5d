"""
ABI encoding and decoding for contract calls, revert data and event logs.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import decode_hex, encode_hex, keccak

from .errors import FunctionNotSupported, ValidationFailure

logger = logging.getLogger(__name__)


def _types(params: Sequence[Dict[str, Any]]) -> List[str]:
    return [param["type"] for param in params]


def _signature(entry: Dict[str, Any]) -> str:
    return f"{entry['name']}({','.join(_types(entry['inputs']))})"


def _strip(data: Optional[str]) -> bytes:
    if not data or data in ("0x", "0X"):
        return b""
    return decode_hex(data)


class ContractCodec:
    """Encodes calls and decodes results for one contract ABI."""

    def __init__(self, abi: Sequence[Dict[str, Any]]):
        self._functions: Dict[str, Dict[str, Any]] = {}
        self._errors: Dict[bytes, Dict[str, Any]] = {}
        self._events: Dict[str, Dict[str, Any]] = {}

        for entry in abi:
            kind = entry.get("type")
            if kind == "function":
                self._functions[entry["name"]] = entry
            elif kind == "error":
                self._errors[keccak(text=_signature(entry))[:4]] = entry
            elif kind == "event":
                self._events[entry["name"]] = entry

    def function(self, name: str) -> Dict[str, Any]:
        try:
            return self._functions[name]
        except KeyError:
            raise ValidationFailure(f"Function '{name}' is not part of the contract ABI") from None

    def selector(self, name: str) -> str:
        return encode_hex(keccak(text=_signature(self.function(name)))[:4])

    def encode_call(self, name: str, args: Sequence[Any]) -> str:
        """Build calldata: 4-byte selector followed by the ABI-encoded arguments."""
        entry = self.function(name)
        input_types = _types(entry["inputs"])
        if len(args) != len(input_types):
            raise ValidationFailure(
                f"{name} expects {len(input_types)} argument(s), got {len(args)}"
            )
        try:
            encoded = abi_encode(input_types, list(args))
        except (EncodingError, TypeError, ValueError) as exc:
            raise ValidationFailure(f"Invalid arguments for {name}: {exc}") from exc
        return self.selector(name) + encoded.hex()

    def decode_output(self, name: str, data: Optional[str]) -> Any:
        """
        Decode the return data of a call.

        Empty or undecodable data means the deployed build has no such
        function (or there is no contract at the address), which is reported
        as FunctionNotSupported rather than a zero value.
        """
        entry = self.function(name)
        output_types = _types(entry["outputs"])
        raw = _strip(data)
        if not output_types:
            return None
        if not raw:
            raise FunctionNotSupported(name, "call returned no data")
        try:
            values = abi_decode(output_types, raw)
        except DecodingError as exc:
            raise FunctionNotSupported(name, f"could not decode result data ({exc})") from exc
        if len(values) == 1:
            return values[0]
        return values

    def decode_revert(self, data: Optional[str]) -> Optional[str]:
        """Render revert data as `ErrorName(arg=value, ...)` when the selector is known."""
        raw = _strip(data)
        if len(raw) < 4:
            return None
        entry = self._errors.get(raw[:4])
        if entry is None:
            return f"unknown error {encode_hex(raw[:4])}"
        try:
            values = abi_decode(_types(entry["inputs"]), raw[4:])
        except DecodingError:
            return entry["name"]
        if entry["name"] == "Error":
            return str(values[0])
        rendered = ", ".join(
            f"{param['name']}={value}" for param, value in zip(entry["inputs"], values)
        )
        return f"{entry['name']}({rendered})"

    def event_topic(self, name: str) -> str:
        entry = self._events.get(name)
        if entry is None:
            raise ValidationFailure(f"Event '{name}' is not part of the contract ABI")
        return encode_hex(keccak(text=_signature(entry)))

    def decode_events(self, name: str, logs: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Decode every log in a receipt that matches the named event."""
        entry = self._events.get(name)
        if entry is None:
            raise ValidationFailure(f"Event '{name}' is not part of the contract ABI")
        topic0 = self.event_topic(name).lower()
        indexed = [param for param in entry["inputs"] if param.get("indexed")]
        plain = [param for param in entry["inputs"] if not param.get("indexed")]

        decoded: List[Dict[str, Any]] = []
        for log in logs:
            topics = [str(topic).lower() for topic in log.get("topics") or []]
            if not topics or topics[0] != topic0 or len(topics) != len(indexed) + 1:
                continue
            event: Dict[str, Any] = {"address": log.get("address")}
            try:
                for param, topic in zip(indexed, topics[1:]):
                    event[param["name"]] = abi_decode([param["type"]], decode_hex(topic))[0]
                values = abi_decode(_types(plain), _strip(log.get("data")))
            except (DecodingError, ValueError) as exc:
                logger.warning(f"Skipping malformed {name} log from {log.get('address')}: {exc}")
                continue
            for param, value in zip(plain, values):
                event[param["name"]] = value
            decoded.append(event)
        return decoded
