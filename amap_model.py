#!/usr/bin/env python3
"""
amap_model.py - Typed map/tileset data model for GBA Pokémon layouts

Holds the objects the Advance Map importer produces (layouts, metatiles, tiles,
blocks, colors) plus the bitfield descriptors used to pack and unpack them.
Metatile attribute layouts differ per game family and live in small lookup
tables instead of per-game branches.

Companion to: amap_format.py (file-format constants)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import amap_format as fmt


class BaseGameVersion(str, Enum):
    POKERUBY = "pokeruby"
    POKEEMERALD = "pokeemerald"
    POKEFIRERED = "pokefirered"


class Family(str, Enum):
    RSE = "RSE"  # family A: 2-byte attributes, border trailer at end of .map
    FRLG = "FRLG"  # family B: 4-byte attributes, border after .map header


_VERSION_FAMILY: Dict[BaseGameVersion, Family] = {
    BaseGameVersion.POKERUBY: Family.RSE,
    BaseGameVersion.POKEEMERALD: Family.RSE,
    BaseGameVersion.POKEFIRERED: Family.FRLG,
}

# Ruby and Emerald decode identically.
_FAMILY_VERSION: Dict[Family, BaseGameVersion] = {
    Family.RSE: BaseGameVersion.POKEEMERALD,
    Family.FRLG: BaseGameVersion.POKEFIRERED,
}

ATTRIBUTE_SIZES: Dict[Family, int] = {
    Family.RSE: fmt.ATTR_SIZE_RSE,
    Family.FRLG: fmt.ATTR_SIZE_FRLG,
}


def family_for_version(version: BaseGameVersion) -> Family:
    return _VERSION_FAMILY[BaseGameVersion(version)]


def version_for_family(family: Family) -> BaseGameVersion:
    return _FAMILY_VERSION[Family(family)]


def max_metatiles(version: BaseGameVersion, primary: bool) -> int:
    """Metatile capacity of a primary or secondary tileset for a base game."""
    if family_for_version(version) == Family.FRLG:
        num_primary = fmt.NUM_METATILES_PRIMARY_FRLG
    else:
        num_primary = fmt.NUM_METATILES_PRIMARY_RSE
    if primary:
        return num_primary
    return fmt.NUM_METATILES_TOTAL - num_primary


# ---------------------------------------------------------------------------
# Bitfield descriptors
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BitField:
    key: str
    mask: int
    doc: str = ""

    @property
    def shift(self) -> int:
        if self.mask == 0:
            return 0
        return (self.mask & -self.mask).bit_length() - 1

    def unpack(self, word: int) -> int:
        return (word & self.mask) >> self.shift

    def pack(self, value: int) -> int:
        return (int(value) << self.shift) & self.mask


TILE_ID = BitField("tile_id", 0x03FF, "Index into the tileset's 8x8 tiles")
TILE_XFLIP = BitField("xflip", 0x0400, "Horizontal flip")
TILE_YFLIP = BitField("yflip", 0x0800, "Vertical flip")
TILE_PALETTE = BitField("palette", 0xF000, "Palette slot")

BLOCK_METATILE_ID = BitField("metatile_id", 0x03FF, "Metatile index")
BLOCK_COLLISION = BitField("collision", 0x0C00, "Collision bits")
BLOCK_ELEVATION = BitField("elevation", 0xF000, "Elevation")

# Absent attributes use a zero mask so both tables carry the same keys.
ATTRIBUTE_LAYOUTS: Dict[Family, Dict[str, BitField]] = {
    Family.RSE: {
        "behavior": BitField("behavior", 0x00FF, "Metatile behavior"),
        "terrain_type": BitField("terrain_type", 0x0000, "Not stored for RSE"),
        "encounter_type": BitField("encounter_type", 0x0000, "Not stored for RSE"),
        "layer_type": BitField("layer_type", 0xF000, "Layer type"),
    },
    Family.FRLG: {
        "behavior": BitField("behavior", 0x000001FF, "Metatile behavior"),
        "terrain_type": BitField("terrain_type", 0x00003E00, "Terrain type"),
        "encounter_type": BitField("encounter_type", 0x07000000, "Encounter type"),
        "layer_type": BitField("layer_type", 0x60000000, "Layer type"),
    },
}


def unpack_attributes(word: int, family: Family) -> Dict[str, int]:
    layout = ATTRIBUTE_LAYOUTS[Family(family)]
    return {key: bf.unpack(word) for key, bf in layout.items()}


def pack_attributes(values: Dict[str, int], family: Family) -> int:
    layout = ATTRIBUTE_LAYOUTS[Family(family)]
    word = 0
    for key, value in values.items():
        bf = layout.get(key)
        if bf is None:
            raise ValueError(f"Unknown metatile attribute: {key}")
        word |= bf.pack(value)
    return word


# ---------------------------------------------------------------------------
# Tiles, blocks, metatiles
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Tile:
    tile_id: int = 0
    xflip: bool = False
    yflip: bool = False
    palette: int = 0

    @classmethod
    def from_raw(cls, word: int) -> "Tile":
        return cls(
            tile_id=TILE_ID.unpack(word),
            xflip=bool(TILE_XFLIP.unpack(word)),
            yflip=bool(TILE_YFLIP.unpack(word)),
            palette=TILE_PALETTE.unpack(word),
        )

    @property
    def raw(self) -> int:
        return (
            TILE_ID.pack(self.tile_id)
            | TILE_XFLIP.pack(self.xflip)
            | TILE_YFLIP.pack(self.yflip)
            | TILE_PALETTE.pack(self.palette)
        )


@dataclass(frozen=True)
class Block:
    metatile_id: int = 0
    collision: int = 0
    elevation: int = 0

    @classmethod
    def from_raw(cls, word: int) -> "Block":
        return cls(
            metatile_id=BLOCK_METATILE_ID.unpack(word),
            collision=BLOCK_COLLISION.unpack(word),
            elevation=BLOCK_ELEVATION.unpack(word),
        )

    @property
    def raw(self) -> int:
        return (
            BLOCK_METATILE_ID.pack(self.metatile_id)
            | BLOCK_COLLISION.pack(self.collision)
            | BLOCK_ELEVATION.pack(self.elevation)
        )


@dataclass
class Metatile:
    tiles: List[Tile]
    attributes: int
    family: Family

    def attribute(self, key: str) -> int:
        bf = ATTRIBUTE_LAYOUTS[self.family].get(key)
        if bf is None:
            raise ValueError(f"Unknown metatile attribute: {key}")
        return bf.unpack(self.attributes)

    @property
    def behavior(self) -> int:
        return self.attribute("behavior")

    @property
    def terrain_type(self) -> int:
        return self.attribute("terrain_type")

    @property
    def encounter_type(self) -> int:
        return self.attribute("encounter_type")

    @property
    def layer_type(self) -> int:
        return self.attribute("layer_type")


# ---------------------------------------------------------------------------
# Layouts and colors
# ---------------------------------------------------------------------------

@dataclass
class Layout:
    width: int
    height: int
    border_width: int
    border_height: int
    primary_tileset: str
    secondary_tileset: str
    blockdata: List[int] = field(default_factory=list)
    border: Optional[List[int]] = None

    def block_at(self, x: int, y: int) -> Block:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"({x}, {y}) is outside a {self.width}x{self.height} layout")
        return Block.from_raw(self.blockdata[y * self.width + x])


@dataclass(frozen=True)
class Color:
    red: int
    green: int
    blue: int

    def to_tuple(self):
        return (self.red, self.green, self.blue)

    def to_rgb(self) -> int:
        return 0xFF000000 | (self.red << 16) | (self.green << 8) | self.blue


# ---------------------------------------------------------------------------
# Tileset registry (supplied by the project that imports the files)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TilesetRegistry:
    ordered: Sequence[str]
    primary: Sequence[str]
    secondary: Sequence[str]
    default_primary: str = fmt.DEFAULT_PRIMARY_TILESET
    default_secondary: str = fmt.DEFAULT_SECONDARY_TILESET_RSE
    base_version: BaseGameVersion = BaseGameVersion.POKEEMERALD

    def label_at(self, index: int) -> Optional[str]:
        if 0 <= index < len(self.ordered):
            return self.ordered[index]
        return None

    def default_primary_label(self) -> str:
        return _pick_default(self.default_primary, self.primary)

    def default_secondary_label(self) -> str:
        return _pick_default(self.default_secondary, self.secondary)

    def max_metatiles(self, primary: bool) -> int:
        return max_metatiles(self.base_version, primary)

    @classmethod
    def for_version(
        cls,
        version: BaseGameVersion,
        primary: Sequence[str],
        secondary: Sequence[str],
        ordered: Optional[Sequence[str]] = None,
    ) -> "TilesetRegistry":
        version = BaseGameVersion(version)
        if ordered is None:
            ordered = list(primary) + list(secondary)
        return cls(
            ordered=tuple(ordered),
            primary=tuple(primary),
            secondary=tuple(secondary),
            default_primary=fmt.DEFAULT_PRIMARY_TILESET,
            default_secondary=_default_secondary_for(version),
            base_version=version,
        )

    @classmethod
    def from_json(cls, path: Path) -> "TilesetRegistry":
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: expected a JSON object")
        primary = raw.get("primary")
        secondary = raw.get("secondary")
        if not _is_label_list(primary) or not _is_label_list(secondary):
            raise ValueError(f"{path}: 'primary' and 'secondary' must be lists of labels")
        ordered = raw.get("ordered", primary + secondary)
        if not _is_label_list(ordered):
            raise ValueError(f"{path}: 'ordered' must be a list of labels")
        try:
            version = BaseGameVersion(raw.get("version", BaseGameVersion.POKEEMERALD.value))
        except ValueError:
            raise ValueError(f"{path}: unknown base game version {raw.get('version')!r}") from None
        return cls(
            ordered=tuple(ordered),
            primary=tuple(primary),
            secondary=tuple(secondary),
            default_primary=raw.get("default_primary", fmt.DEFAULT_PRIMARY_TILESET),
            default_secondary=raw.get("default_secondary", _default_secondary_for(version)),
            base_version=version,
        )


def _default_secondary_for(version: BaseGameVersion) -> str:
    if family_for_version(version) == Family.FRLG:
        return fmt.DEFAULT_SECONDARY_TILESET_FRLG
    return fmt.DEFAULT_SECONDARY_TILESET_RSE


def _is_label_list(value) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def _pick_default(configured: str, labels: Sequence[str]) -> str:
    if configured in labels or not labels:
        return configured
    return labels[0]
