"""Exported method discovery for deployed WASM contracts."""

import base64
import binascii
from typing import Any, Dict, List, Tuple

from constants import INTERFACE_METHODS
from core.exceptions import ContractParseError

WASM_MAGIC = b"\x00asm"
EXPORT_SECTION = 7
EXPORT_KIND_FUNCTION = 0


def _read_uleb128(data: bytes, pos: int) -> Tuple[int, int]:
    """Decode an unsigned LEB128 integer; returns (value, next position)."""
    result = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise ContractParseError("Truncated LEB128 integer")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7
        if shift > 35:
            raise ContractParseError("LEB128 integer too long")


def _read_exports(section: bytes) -> List[str]:
    count, pos = _read_uleb128(section, 0)
    names = []
    for _ in range(count):
        length, pos = _read_uleb128(section, pos)
        raw = section[pos:pos + length]
        if len(raw) != length or pos + length >= len(section):
            raise ContractParseError("Truncated export entry")
        pos += length
        kind = section[pos]
        pos += 1
        _, pos = _read_uleb128(section, pos)  # export index
        if kind == EXPORT_KIND_FUNCTION:
            try:
                names.append(raw.decode("utf-8"))
            except UnicodeDecodeError as e:
                raise ContractParseError("Export name is not valid UTF-8") from e
    return names


def exported_functions(code: bytes) -> List[str]:
    """Names of all functions exported by a WASM module, in export order."""
    if code[:4] != WASM_MAGIC or len(code) < 8:
        raise ContractParseError("Not a WASM module")

    pos = 8  # magic + version
    while pos < len(code):
        section_id = code[pos]
        size, pos = _read_uleb128(code, pos + 1)
        end = pos + size
        if end > len(code):
            raise ContractParseError("Truncated section")
        if section_id == EXPORT_SECTION:
            return _read_exports(code[pos:end])
        pos = end
    return []


def parse_contract(code_base64: str) -> Dict[str, Any]:
    """Describe a contract by its exported methods and the standards they suggest.

    Returns:
        {"methodNames": [...], "probableInterfaces": [...], "byMethod": {...}}
        where byMethod maps each method to the interfaces that use it.

    Raises:
        ContractParseError: if the code is not base64 or not a WASM module
    """
    try:
        code = base64.b64decode(code_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ContractParseError("Contract code is not valid base64") from e

    method_names = exported_functions(code)
    exported = set(method_names)

    probable = sorted(
        interface for interface, methods in INTERFACE_METHODS.items()
        if methods <= exported
    )
    by_method = {
        method: sorted(i for i in probable if method in INTERFACE_METHODS[i])
        for method in method_names
    }

    return {
        "methodNames": method_names,
        "probableInterfaces": probable,
        "byMethod": by_method,
    }
