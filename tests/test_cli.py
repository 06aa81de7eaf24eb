from pathlib import Path

import pytest
from PIL import Image

from console_gfx_converter.cli import main


def _write_png(path: Path, cols: int = 2, rows: int = 1) -> Path:
    image = Image.new("RGBA", (cols * 8, rows * 8), (255, 255, 255, 255))
    image.putpixel((0, 0), (255, 0, 0, 255))
    image.save(path)
    return path


def test_writes_map_and_attribute_tables(tmp_path, capsys) -> None:
    src = _write_png(tmp_path / "sprite.png")
    out = tmp_path / "out"

    assert main([str(src), "-o", str(out), "-p", "cgb"]) == 0

    assert len((out / "sprite.bin").read_bytes()) == 32
    assert len((out / "sprite_palettes.bin").read_bytes()) == 8
    assert (out / "sprite_map.bin").read_bytes() == bytes([0, 1])
    assert (out / "sprite_map_attributes.bin").read_bytes() == bytes([0, 0])
    assert "wrote" in capsys.readouterr().out


def test_platform_without_map(tmp_path) -> None:
    src = _write_png(tmp_path / "sprite.png")
    out = tmp_path / "out"

    assert main([str(src), "-o", str(out), "-p", "ngpc", "--prefix", "p_", "--suffix", "_s"]) == 0

    assert sorted(path.name for path in out.iterdir()) == ["p_sprite_s.bin", "p_sprite_s_palettes.bin"]


def test_directory_input(tmp_path) -> None:
    src_dir = tmp_path / "images"
    src_dir.mkdir()
    _write_png(src_dir / "a.png")
    _write_png(src_dir / "b.png")
    (src_dir / "notes.txt").write_text("skip me")
    out = tmp_path / "out"

    assert main([str(src_dir), "-o", str(out), "-p", "sfc"]) == 0

    assert sorted(path.name for path in out.iterdir()) == [
        "a.bin",
        "a_map.bin",
        "a_palettes.bin",
        "b.bin",
        "b_map.bin",
        "b_palettes.bin",
    ]
    assert len((out / "a.bin").read_bytes()) == 64
    assert len((out / "a_palettes.bin").read_bytes()) == 32


def test_refuses_to_overwrite_without_force(tmp_path, capsys) -> None:
    src = _write_png(tmp_path / "sprite.png")
    out = tmp_path / "out"
    out.mkdir()
    (out / "sprite.bin").write_bytes(b"keep")

    assert main([str(src), "-o", str(out), "-p", "dmg"]) == 1
    assert "already exist" in capsys.readouterr().err
    assert (out / "sprite.bin").read_bytes() == b"keep"

    assert main([str(src), "-o", str(out), "-p", "dmg", "--force"]) == 0
    assert len((out / "sprite.bin").read_bytes()) == 32


def test_reports_merged_colors(tmp_path, capsys) -> None:
    path = tmp_path / "busy.png"
    image = Image.new("RGBA", (8, 8), (255, 255, 255, 255))
    for x, color in enumerate([(255, 0, 0), (0, 255, 0), (0, 0, 255), (0, 0, 0)]):
        image.putpixel((x, 0), color + (255,))
    image.save(path)

    assert main([str(path), "-o", str(tmp_path / "out"), "-p", "cgb"]) == 0

    assert "Warning: busy.png: Tile at (0, 0) has 5 colors" in capsys.readouterr().out


def test_errors_return_status_1(tmp_path, capsys) -> None:
    text = tmp_path / "image.txt"
    text.write_text("nope")
    assert main([str(text), "-o", str(tmp_path / "out")]) == 1

    assert main([str(tmp_path / "missing.png"), "-o", str(tmp_path / "out")]) == 1

    odd = tmp_path / "odd.png"
    Image.new("RGBA", (12, 8), (0, 0, 0, 255)).save(odd)
    assert main([str(odd), "-o", str(tmp_path / "out")]) == 1
    assert "divisible by 8" in capsys.readouterr().err


def test_unknown_platform_is_rejected(tmp_path) -> None:
    src = _write_png(tmp_path / "sprite.png")
    with pytest.raises(SystemExit):
        main([str(src), "-o", str(tmp_path / "out"), "-p", "nes"])


def test_large_tile_sheet_skips_only_the_map(tmp_path, capsys) -> None:
    # 128 px wide sheets keep every tile, so the map cannot index them all.
    path = tmp_path / "sheet.png"
    image = Image.new("RGBA", (128, 136), (255, 255, 255, 255))
    for index in range(16 * 17):
        bx, by = index % 16, index // 16
        for bit in range(9):
            if index >> bit & 1:
                image.putpixel((bx * 8 + bit % 8, by * 8 + bit // 8), (0, 0, 0, 255))
    image.save(path)
    out = tmp_path / "out"

    assert main([str(path), "-o", str(out), "-p", "dmg"]) == 0

    assert len((out / "sheet.bin").read_bytes()) == 272 * 16
    assert (out / "sheet_palettes.bin").exists()
    assert not (out / "sheet_map.bin").exists()
    assert "Warning: sheet.png: map not written" in capsys.readouterr().out


def test_large_tile_sheet_skips_attribute_table(tmp_path) -> None:
    path = tmp_path / "sheet.png"
    Image.new("RGBA", (128, 136), (255, 255, 255, 255)).save(path)
    out = tmp_path / "out"

    assert main([str(path), "-o", str(out), "-p", "cgb"]) == 0

    assert sorted(p.name for p in out.iterdir()) == ["sheet.bin", "sheet_palettes.bin"]
