#!/usr/bin/env python3
"""
run_import.py - Command-line front end for the Advance Map 1.92 importer.

    amap-import map route101.map --registry tilesets.json --preview out/route101.png
    amap-import bvd general.bvd --triple-layer
    amap-import pal general.pal --preview out/pal.png
"""

from __future__ import annotations

import argparse
import logging
from collections import Counter
from pathlib import Path
from typing import List, Optional, Sequence

import amap_parser as ap
import amap_preview as preview
from amap_model import BaseGameVersion, Color, Layout, Metatile, TilesetRegistry

# Used when no --registry is given; enough to exercise label resolution.
STOCK_PRIMARY = ["gTileset_General", "gTileset_Building", "gTileset_SecretBase"]
STOCK_SECONDARY_RSE = ["gTileset_Petalburg", "gTileset_Rustboro", "gTileset_Dewford", "gTileset_Slateport"]
STOCK_SECONDARY_FRLG = ["gTileset_PalletTown", "gTileset_ViridianCity", "gTileset_PewterCity", "gTileset_CeruleanCity"]


def stock_registry(version: BaseGameVersion) -> TilesetRegistry:
    if version == BaseGameVersion.POKEFIRERED:
        secondary = STOCK_SECONDARY_FRLG
    else:
        secondary = STOCK_SECONDARY_RSE
    return TilesetRegistry.for_version(version, STOCK_PRIMARY, secondary)


def summarize_layout(layout: Layout) -> List[str]:
    lines = [
        f"size       {layout.width}x{layout.height} ({len(layout.blockdata)} blocks)",
        f"tilesets   {layout.primary_tileset} / {layout.secondary_tileset}",
    ]
    if layout.border is None:
        lines.append(f"border     none (defaults {layout.border_width}x{layout.border_height})")
    else:
        lines.append(f"border     {layout.border_width}x{layout.border_height} ({len(layout.border)} blocks)")
    ids = {w & 0x3FF for w in layout.blockdata}
    lines.append(f"metatiles  {len(ids)} distinct ids used")
    return lines


def summarize_metatiles(metatiles: Sequence[Metatile]) -> List[str]:
    if not metatiles:
        return ["0 metatiles"]
    family = metatiles[0].family.value
    behaviors = Counter(m.behavior for m in metatiles)
    lines = [
        f"{len(metatiles)} {family} metatiles, {len(metatiles[0].tiles)} tiles each",
        "top behaviors " + ", ".join(f"0x{b:02X}x{n}" for b, n in behaviors.most_common(5)),
    ]
    return lines


def summarize_palette(colors: Sequence[Color]) -> List[str]:
    lines = [f"{len(colors)} colors"]
    for i, c in enumerate(colors[:16]):
        lines.append(f"  {i:2d}: #{c.red:02X}{c.green:02X}{c.blue:02X}")
    if len(colors) > 16:
        lines.append(f"  ... {len(colors) - 16} more")
    return lines


def _add_project_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--registry", type=Path, help="Tileset registry JSON")
    parser.add_argument("--version", default=BaseGameVersion.POKEEMERALD.value,
                        choices=[v.value for v in BaseGameVersion],
                        help="Project base game when no --registry is given")


def load_registry(args: argparse.Namespace) -> TilesetRegistry:
    if args.registry is not None:
        return TilesetRegistry.from_json(args.registry)
    return stock_registry(BaseGameVersion(args.version))


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="amap-import", description="Import Advance Map 1.92 files")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_map = sub.add_parser("map", help="Decode a .map layout")
    p_map.add_argument("path", type=Path)
    _add_project_args(p_map)
    p_map.add_argument("--preview", type=Path, help="Write a PNG overview")
    p_map.add_argument("--scale", type=int, default=4)

    p_bvd = sub.add_parser("bvd", help="Decode a .bvd metatile bank")
    p_bvd.add_argument("path", type=Path)
    _add_project_args(p_bvd)
    p_bvd.add_argument("--secondary", action="store_true", help="Read the secondary half of a double file")
    p_bvd.add_argument("--triple-layer", action="store_true", help="Pad metatiles to 12 tiles")
    p_bvd.add_argument("--max-metatiles", type=int)
    p_bvd.add_argument("--preview", type=Path)

    p_pal = sub.add_parser("pal", help="Decode a palette")
    p_pal.add_argument("path", type=Path)
    p_pal.add_argument("--preview", type=Path)
    return parser


def run(args: argparse.Namespace) -> int:
    if args.command == "map":
        result = ap.parse_layout(args.path, load_registry(args))
        if result.ok:
            lines = summarize_layout(result.value)
            img = preview.render_layout(result.value, scale=args.scale) if args.preview else None
    elif args.command == "bvd":
        result = ap.parse_metatiles(
            args.path,
            primary_tileset=not args.secondary,
            triple_layer=args.triple_layer,
            max_metatiles=args.max_metatiles,
            version=load_registry(args).base_version,
        )
        if result.ok:
            lines = summarize_metatiles(result.value)
            img = preview.render_metatile_attributes(result.value) if args.preview else None
    elif args.command == "pal":
        result = ap.parse_palette(args.path)
        if result.ok:
            lines = summarize_palette(result.value)
            img = preview.render_palette(result.value) if args.preview else None
    else:
        raise ValueError(f"Unhandled command: {args.command}")

    if not result.ok:
        print(f"Import failed ({result.error.kind.value}): {result.error.message}")
        return 1
    print("\n".join(lines))
    if img is not None:
        path = preview.save_preview(img, args.preview)
        print(f"Preview written to {path}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return run(args)


if __name__ == "__main__":
    raise SystemExit(main())
