#!/usr/bin/env python3
"""
amap_parser.py - Importer for Advance Map 1.92 project files

Decodes the three legacy file kinds into the amap_model objects:
- .map layouts (dimensions, tileset indices, block data, optional border)
- .bvd metatile banks (8 tiles + packed attributes per metatile)
- raw palettes (4 bytes per color)

The decode_* functions work on bytes already in memory and return a
DecodeResult instead of raising. The parse_* functions wrap them with file I/O
and log failures.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Generic, List, Optional, TypeVar, Union

import amap_format as fmt
from amap_model import (
    ATTRIBUTE_SIZES,
    BaseGameVersion,
    Color,
    Family,
    Layout,
    Metatile,
    Tile,
    TilesetRegistry,
    max_metatiles as project_max_metatiles,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
PathLike = Union[str, Path]


# ============================================================================
# 1) ERRORS / RESULTS
# ============================================================================

class ErrorKind(str, Enum):
    IO_ERROR = "io_error"
    MALFORMED_SIZE = "malformed_size"
    TRUNCATED_DATA = "truncated_data"
    UNSUPPORTED_FORMAT = "unsupported_format"
    TOO_MANY_METATILES = "too_many_metatiles"
    EMPTY_DATA = "empty_data"


class DecodeError(ValueError):
    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[DecodeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value


# ============================================================================
# 2) BYTE READERS
# ============================================================================

def _read_u8(buf: bytes, off: int) -> int:
    return buf[off]


def _read_u16_le(buf: bytes, off: int) -> int:
    return buf[off] | (buf[off + 1] << 8)


def _read_u32_le(buf: bytes, off: int) -> int:
    return buf[off] | (buf[off + 1] << 8) | (buf[off + 2] << 16) | (buf[off + 3] << 24)


def _read_uint_le(buf: bytes, off: int, size: int) -> int:
    val = 0
    for i in range(size):
        val |= buf[off + i] << (8 * i)
    return val


def _read_words_le(buf: bytes, start: int, end: int) -> List[int]:
    return [_read_u16_le(buf, i) for i in range(start, end - 1, 2)]


# ============================================================================
# 3) .map LAYOUTS
# ============================================================================

@dataclass(frozen=True)
class _MapHeader:
    width: int
    height: int
    primary_index: int
    secondary_index: int
    border_width: int
    border_height: int


def _read_map_header(data: bytes) -> _MapHeader:
    return _MapHeader(
        width=_read_u32_le(data, fmt.MAP_WIDTH_OFF),
        height=_read_u32_le(data, fmt.MAP_HEIGHT_OFF),
        primary_index=_read_u32_le(data, fmt.MAP_PRIMARY_TILESET_OFF),
        secondary_index=_read_u32_le(data, fmt.MAP_SECONDARY_TILESET_OFF),
        border_width=_read_u8(data, fmt.MAP_BORDER_WIDTH_OFF),
        border_height=_read_u8(data, fmt.MAP_BORDER_HEIGHT_OFF),
    )


@dataclass(frozen=True)
class _BorderRegion:
    offset: int
    width: int
    height: int


def _find_rse_border(data: bytes, map_data_end: int, map_size: int) -> Optional[_BorderRegion]:
    """Look for RSE border data at the end of the file.

    The last 4 bytes hold (width, height) as two u16 and the border words sit
    just before them. The candidate is dropped if it would overlap the map.
    """
    if len(data) < map_data_end + fmt.RSE_BORDER_TRAILER_SIZE:
        return None
    trailer = len(data) - fmt.RSE_BORDER_TRAILER_SIZE
    width = _read_u16_le(data, trailer)
    height = _read_u16_le(data, trailer + 2)
    offset = len(data) - (width * height * fmt.BLOCK_SIZE + fmt.RSE_BORDER_TRAILER_SIZE)
    if offset < map_data_end:
        logger.debug("Trailing border %dx%d would overlap map data; ignoring it", width, height)
        return None
    if offset >= map_data_end + map_size:
        logger.debug("Ignoring duplicate map copy before trailing border")
    return _BorderRegion(offset, width, height)


def _resolve_tileset(registry: TilesetRegistry, index: int, primary: bool) -> str:
    if primary:
        default = registry.default_primary_label()
        valid = registry.primary
    else:
        default = registry.default_secondary_label()
        valid = registry.secondary
    label = registry.label_at(index)
    if label is None:
        return default
    if label not in valid:
        # Advance Map sometimes puts a secondary tileset in the primary slot (and vice versa).
        logger.debug("Tileset %r at index %d is not a valid %s tileset; using %r",
                     label, index, "primary" if primary else "secondary", default)
        return default
    return label


def _decode_layout(data: bytes, registry: TilesetRegistry) -> Layout:
    if len(data) < fmt.MAP_HEADER_SIZE or len(data) % 2 != 0:
        raise DecodeError(ErrorKind.MALFORMED_SIZE,
                          f".map file is an unexpected size ({len(data)} bytes).")

    header = _read_map_header(data)
    num_border_tiles = header.border_width * header.border_height
    family = Family.FRLG if num_border_tiles != 0 else Family.RSE

    map_data_offset = fmt.MAP_HEADER_SIZE + num_border_tiles * fmt.BLOCK_SIZE
    map_size = header.width * header.height * fmt.BLOCK_SIZE
    map_data_end = map_data_offset + map_size
    if len(data) < map_data_end:
        raise DecodeError(ErrorKind.TRUNCATED_DATA,
                          f".map file has too little data. Expected at least {map_data_end} bytes, "
                          f"but it has {len(data)} bytes.")

    border_region: Optional[_BorderRegion] = None
    if family == Family.FRLG:
        border_region = _BorderRegion(fmt.MAP_HEADER_SIZE, header.border_width, header.border_height)
        if len(data) >= map_data_offset + map_size * 2:
            logger.debug("Ignoring duplicate map copy after FRLG map data")
    else:
        border_region = _find_rse_border(data, map_data_end, map_size)
    logger.debug("Decoding %dx%d %s-style layout", header.width, header.height, family.value)

    blockdata = _read_words_le(data, map_data_offset, map_data_end)

    border = None
    border_width = header.border_width
    border_height = header.border_height
    if border_region is not None:
        border_width = border_region.width
        border_height = border_region.height
        num_tiles = border_width * border_height
        if num_tiles != 0:
            end = border_region.offset + num_tiles * fmt.BLOCK_SIZE
            border = _read_words_le(data, border_region.offset, end)

    return Layout(
        width=header.width,
        height=header.height,
        border_width=border_width or fmt.DEFAULT_BORDER_WIDTH,
        border_height=border_height or fmt.DEFAULT_BORDER_HEIGHT,
        primary_tileset=_resolve_tileset(registry, header.primary_index, primary=True),
        secondary_tileset=_resolve_tileset(registry, header.secondary_index, primary=False),
        blockdata=blockdata,
        border=border,
    )


def decode_layout(data: bytes, registry: TilesetRegistry) -> DecodeResult[Layout]:
    try:
        return DecodeResult(value=_decode_layout(bytes(data), registry))
    except DecodeError as exc:
        return DecodeResult(error=exc)


# ============================================================================
# 4) .bvd METATILES
# ============================================================================

_SIGNATURE_FAMILY = {
    fmt.SIGNATURE_RSE: Family.RSE,
    fmt.SIGNATURE_FRLG: Family.FRLG,
}


def _detect_bvd_family(data: bytes) -> Family:
    signature = data[len(data) - fmt.BVD_SIGNATURE_SIZE:]
    family = _SIGNATURE_FAMILY.get(signature)
    if family is None:
        raise DecodeError(ErrorKind.UNSUPPORTED_FORMAT,
                          "Detected unsupported game type from .bvd file. "
                          "Last 4 bytes of file must be 'RSE ' or 'FRLG'.")
    return family


def _decode_metatiles(
    data: bytes,
    primary_tileset: bool,
    triple_layer: bool,
    max_metatiles: int,
) -> List[Metatile]:
    if len(data) < fmt.BVD_MIN_SIZE or len(data) % 2 != 0:
        raise DecodeError(ErrorKind.MALFORMED_SIZE,
                          f".bvd file is an unexpected size ({len(data)} bytes).")

    family = _detect_bvd_family(data)
    attr_size = ATTRIBUTE_SIZES[family]

    count = _read_u32_le(data, fmt.BVD_COUNT_OFF)
    if count > max_metatiles:
        raise DecodeError(ErrorKind.TOO_MANY_METATILES,
                          f".bvd file contains data for {count} metatiles, "
                          f"but the maximum number of metatiles is {max_metatiles}.")
    if count < 1:
        raise DecodeError(ErrorKind.EMPTY_DATA, ".bvd file contains no data for metatiles.")

    tiles_block = count * fmt.STORED_METATILE_SIZE
    attrs_block = count * attr_size
    framing = fmt.BVD_HEADER_SIZE + fmt.BVD_SIGNATURE_SIZE
    expected_single = tiles_block + attrs_block + framing
    expected_double = tiles_block * 2 + attrs_block * 2 + framing
    if len(data) == expected_double:
        double_tileset = True
    elif len(data) == expected_single:
        double_tileset = False
    else:
        raise DecodeError(ErrorKind.MALFORMED_SIZE,
                          f".bvd file is an unexpected size. Expected {expected_single} or "
                          f"{expected_double} bytes, but it has {len(data)} bytes.")

    # Double files store both tile blocks first, then both attribute blocks.
    tiles_off = fmt.BVD_HEADER_SIZE
    if double_tileset:
        attrs_off = fmt.BVD_HEADER_SIZE + tiles_block * 2
        if not primary_tileset:
            tiles_off += tiles_block
            attrs_off += attrs_block
    else:
        attrs_off = fmt.BVD_HEADER_SIZE + tiles_block
    logger.debug("Decoding %d %s metatiles (double=%s, primary=%s)",
                 count, family.value, double_tileset, primary_tileset)

    metatiles: List[Metatile] = []
    for i in range(count):
        base = tiles_off + i * fmt.STORED_METATILE_SIZE
        tiles = [Tile.from_raw(w) for w in _read_words_le(data, base, base + fmt.STORED_METATILE_SIZE)]
        if triple_layer:
            # .bvd only stores two layers.
            extra = fmt.TILES_PER_TRIPLE_LAYER_METATILE - fmt.TILES_PER_STORED_METATILE
            tiles.extend(Tile() for _ in range(extra))
        attributes = _read_uint_le(data, attrs_off + i * attr_size, attr_size)
        metatiles.append(Metatile(tiles=tiles, attributes=attributes, family=family))
    return metatiles


def decode_metatiles(
    data: bytes,
    *,
    primary_tileset: bool = True,
    triple_layer: bool = False,
    max_metatiles: Optional[int] = None,
    version: BaseGameVersion = BaseGameVersion.POKEEMERALD,
) -> DecodeResult[List[Metatile]]:
    """Decode a .bvd buffer.

    The metatile limit belongs to the importing project: `max_metatiles` if
    given, otherwise the capacity of `version`'s primary or secondary tileset.
    The file's own signature only selects the attribute width.
    """
    if max_metatiles is None:
        max_metatiles = project_max_metatiles(version, primary_tileset)
    try:
        value = _decode_metatiles(bytes(data), primary_tileset, triple_layer, max_metatiles)
    except DecodeError as exc:
        return DecodeResult(error=exc)
    return DecodeResult(value=value)


# ============================================================================
# 5) PALETTES
# ============================================================================

def decode_palette(data: bytes) -> DecodeResult[List[Color]]:
    if len(data) % fmt.PALETTE_ENTRY_SIZE != 0:
        return DecodeResult(error=DecodeError(
            ErrorKind.MALFORMED_SIZE,
            f"Palette file had an unexpected format. File's length must be a multiple of "
            f"{fmt.PALETTE_ENTRY_SIZE}, but the length is {len(data)}."))
    colors = [
        Color(data[i], data[i + 1], data[i + 2])
        for i in range(0, len(data), fmt.PALETTE_ENTRY_SIZE)
    ]
    return DecodeResult(value=colors)


# ============================================================================
# 6) FILE ENTRY POINTS
# ============================================================================

def _read_file(path: PathLike, what: str) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as exc:
        raise DecodeError(ErrorKind.IO_ERROR,
                          f"Could not open Advance Map 1.92 {what} '{path}': {exc}") from exc


def _parse(path: PathLike, what: str, decode: Callable[[bytes], DecodeResult]) -> DecodeResult:
    try:
        data = _read_file(path, what)
    except DecodeError as exc:
        logger.error("%s", exc.message)
        return DecodeResult(error=exc)
    result = decode(data)
    if not result.ok:
        logger.error("Advance Map 1.92 %s '%s': %s", what, path, result.error.message)
    return result


def parse_layout(path: PathLike, registry: TilesetRegistry) -> DecodeResult[Layout]:
    return _parse(path, "map .map file", lambda data: decode_layout(data, registry))


def parse_metatiles(
    path: PathLike,
    *,
    primary_tileset: bool = True,
    triple_layer: bool = False,
    max_metatiles: Optional[int] = None,
    version: BaseGameVersion = BaseGameVersion.POKEEMERALD,
) -> DecodeResult[List[Metatile]]:
    return _parse(
        path,
        "metatile .bvd file",
        lambda data: decode_metatiles(
            data,
            primary_tileset=primary_tileset,
            triple_layer=triple_layer,
            max_metatiles=max_metatiles,
            version=version,
        ),
    )


def parse_palette(path: PathLike) -> DecodeResult[List[Color]]:
    return _parse(path, "palette file", decode_palette)
