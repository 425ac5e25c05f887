import json
import struct

import run_import
from amap_model import BaseGameVersion


def _write_map(path):
    header = struct.pack("<IIIIBBH", 2, 1, 0, 1, 1, 1, 0)
    path.write_bytes(header + struct.pack("<H", 7) + struct.pack("<2H", 0x0401, 0x0002))
    return path


def test_map_with_registry_and_preview(tmp_path, capsys):
    registry = tmp_path / "reg.json"
    registry.write_text(json.dumps({"primary": ["gTileset_General"], "secondary": ["gTileset_Lavaridge"]}))
    out = tmp_path / "previews" / "map.png"

    code = run_import.main(["map", str(_write_map(tmp_path / "a.map")), "--registry", str(registry),
                            "--preview", str(out), "--scale", "2"])

    text = capsys.readouterr().out
    assert code == 0
    assert "2x1 (2 blocks)" in text
    assert "gTileset_General / gTileset_Lavaridge" in text
    assert "border     1x1 (1 blocks)" in text
    assert out.exists()


def test_map_uses_stock_registry_for_version(tmp_path, capsys):
    code = run_import.main(["map", str(_write_map(tmp_path / "a.map")), "--version", "pokefirered"])
    assert code == 0
    # index 1 is a primary tileset in the stock list, so the secondary default is used
    assert "gTileset_General / gTileset_PalletTown" in capsys.readouterr().out


def test_stock_registry_defaults():
    reg = run_import.stock_registry(BaseGameVersion.POKEEMERALD)
    assert reg.default_secondary_label() == "gTileset_Petalburg"


def test_bvd_command(tmp_path, capsys):
    path = tmp_path / "t.bvd"
    path.write_bytes(struct.pack("<I", 1) + bytes(16) + struct.pack("<H", 0x0005) + b"RSE ")

    code = run_import.main(["bvd", str(path), "--triple-layer"])

    text = capsys.readouterr().out
    assert code == 0
    assert "1 RSE metatiles, 12 tiles each" in text
    assert "0x05x1" in text


def test_bvd_limit_follows_project_version(tmp_path, capsys):
    path = tmp_path / "big.bvd"
    path.write_bytes(struct.pack("<I", 600) + bytes(600 * 16) + bytes(600 * 4) + b"FRLG")
    registry = tmp_path / "reg.json"
    registry.write_text(json.dumps({"version": "pokefirered", "primary": ["gTileset_General"],
                                    "secondary": ["gTileset_PalletTown"]}))

    assert run_import.main(["bvd", str(path)]) == 1
    assert "Import failed (too_many_metatiles)" in capsys.readouterr().out
    assert run_import.main(["bvd", str(path), "--version", "pokefirered"]) == 0
    assert run_import.main(["bvd", str(path), "--registry", str(registry)]) == 0
    assert "600 FRLG metatiles, 8 tiles each" in capsys.readouterr().out


def test_palette_failure_returns_1(tmp_path, capsys):
    path = tmp_path / "bad.pal"
    path.write_bytes(bytes(5))

    assert run_import.main(["pal", str(path)]) == 1
    assert "Import failed (malformed_size)" in capsys.readouterr().out


def test_palette_summary_truncates(tmp_path, capsys):
    path = tmp_path / "p.pal"
    path.write_bytes(bytes([0x10, 0x20, 0x30, 0]) * 20)

    assert run_import.main(["pal", str(path), "--preview", str(tmp_path / "p.png")]) == 0
    text = capsys.readouterr().out
    assert "20 colors" in text
    assert "#102030" in text
    assert "... 4 more" in text
    assert (tmp_path / "p.png").exists()
