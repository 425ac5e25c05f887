"""
amap_format.py - Advance Map 1.92 file-format constants (.map / .bvd / palettes)

Layout based on:
- files written by Advance Map 1.92 for Ruby/Sapphire/Emerald and FireRed/LeafGreen

Notes:
- All offsets are byte offsets into the file.
- Multi-byte fields are little-endian. There is no version tag in .map files;
  the variant is inferred from the header border fields.
"""

# ---------------------------------------------------------------------------
# .map layout files
# ---------------------------------------------------------------------------

MAP_HEADER_SIZE = 20

MAP_WIDTH_OFF = 0
MAP_HEIGHT_OFF = 4
MAP_PRIMARY_TILESET_OFF = 8
MAP_SECONDARY_TILESET_OFF = 12
MAP_BORDER_WIDTH_OFF = 16  # u8, 0 in RSE files
MAP_BORDER_HEIGHT_OFF = 17  # u8, 0 in RSE files

# RSE files may keep (border_width, border_height) as two u16 at the very end
RSE_BORDER_TRAILER_SIZE = 4

BLOCK_SIZE = 2

DEFAULT_BORDER_WIDTH = 2
DEFAULT_BORDER_HEIGHT = 2

# ---------------------------------------------------------------------------
# .bvd metatile files
# ---------------------------------------------------------------------------

BVD_MIN_SIZE = 9
BVD_COUNT_OFF = 0
BVD_HEADER_SIZE = 4
BVD_SIGNATURE_SIZE = 4

SIGNATURE_RSE = b"RSE "
SIGNATURE_FRLG = b"FRLG"

TILES_PER_STORED_METATILE = 8
TILES_PER_TRIPLE_LAYER_METATILE = 12
STORED_METATILE_SIZE = TILES_PER_STORED_METATILE * 2  # 16 bytes

ATTR_SIZE_RSE = 2
ATTR_SIZE_FRLG = 4

# ---------------------------------------------------------------------------
# Metatile limits
# ---------------------------------------------------------------------------

NUM_METATILES_TOTAL = 1024
NUM_METATILES_PRIMARY_RSE = 512
NUM_METATILES_PRIMARY_FRLG = 640

# ---------------------------------------------------------------------------
# Palette files
# ---------------------------------------------------------------------------

PALETTE_ENTRY_SIZE = 4  # R, G, B, unused

# ---------------------------------------------------------------------------
# Tileset defaults
# ---------------------------------------------------------------------------

DEFAULT_PRIMARY_TILESET = "gTileset_General"
DEFAULT_SECONDARY_TILESET_RSE = "gTileset_Petalburg"
DEFAULT_SECONDARY_TILESET_FRLG = "gTileset_PalletTown"
