"""Command line interface for the console graphics converter."""

from __future__ import annotations

import argparse
import sys
import warnings
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from .errors import ConversionError, ValidationError
from .platforms import PLATFORM_KEYS, get_platform
from .session import ConversionSession, ConvertOptions, convert_png


def _is_png(path: Path) -> bool:
    return path.suffix.lower() == ".png"


def collect_inputs(paths: Iterable[str]) -> List[Path]:
    """Expand files and directories (non-recursive) into a list of PNG paths."""

    found: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            found.extend(
                entry for entry in sorted(path.iterdir()) if entry.is_file() and _is_png(entry)
            )
            continue
        if not path.is_file():
            raise ConversionError(f"Input path does not exist: {path}")
        if not _is_png(path):
            raise ConversionError(f"Not a PNG file: {path}")
        found.append(path)
    if not found:
        raise ConversionError("No PNG files found in the inputs.")
    return found


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Convert PNG files into console tiles, palettes and maps.\n"
            "Platforms: dmg (Game Boy), cgb (Game Boy Color), sfc (Super Famicom/SNES),\n"
            "ngpc (Neo Geo Pocket Color).\n"
            "Width and height must be multiples of 8. A leading row of 8x8 checker blocks\n"
            "(one flat color per quadrant) is read as palette definitions."
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "inputs",
        nargs="+",
        help="PNG files or folders containing PNGs (non-recursive)",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        required=True,
        help="Destination directory for the .bin files",
    )
    parser.add_argument(
        "-p",
        "--platform",
        choices=PLATFORM_KEYS,
        default="cgb",
        help="Target console",
    )
    parser.add_argument("--prefix", default="", help="Optional prefix for output filenames")
    parser.add_argument("--suffix", default="", help="Optional suffix for output filenames")
    parser.add_argument(
        "--no-quantize",
        action="store_true",
        help="Keep duplicate tiles even when the image yields more than 255 tiles",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Overwrite existing files without prompting",
    )
    return parser


def output_names(path: Path, prefix: str, suffix: str, has_map: bool, attribute_table: bool) -> Dict[str, str]:
    stem = f"{prefix}{path.stem}{suffix}"
    names = {
        "tiles": f"{stem}.bin",
        "palettes": f"{stem}_palettes.bin",
    }
    if has_map:
        names["map"] = f"{stem}_map.bin"
    if attribute_table:
        names["attributes"] = f"{stem}_map_attributes.bin"
    return names


def ensure_unique_names(name_sets: List[Dict[str, str]]) -> None:
    seen = set()
    for names in name_sets:
        for name in names.values():
            if name in seen:
                raise ConversionError(f"Duplicate output name would occur: {name}")
            seen.add(name)


def session_outputs(session: ConversionSession) -> Tuple[Dict[str, bytes], List[str]]:
    """Return the files to write and the reasons for any map files left out.

    Tiles and palettes are always exported; a map that cannot be exported
    (tile positions above 255) only drops the map and attribute files.
    """

    outputs = {
        "tiles": session.tile_bytes(),
        "palettes": session.palette_bytes(),
    }
    skipped: List[str] = []
    if session.tilemap is not None:
        try:
            outputs["map"] = session.map_bytes()
            if session.codec.attribute_table:
                outputs["attributes"] = session.attribute_bytes()
        except ValidationError as exc:
            outputs.pop("map", None)
            skipped.append(f"map not written: {exc}")
    return outputs, skipped


def write_outputs(
    inputs: List[Path],
    name_sets: List[Dict[str, str]],
    options: ConvertOptions,
    platform: str,
    output_dir: Path,
    force: bool,
) -> None:
    if not force:
        existing = [
            str(output_dir / name)
            for names in name_sets
            for name in names.values()
            if (output_dir / name).exists()
        ]
        if existing:
            raise ConversionError(
                "Output files already exist (use --force to overwrite):\n" + "\n".join(existing)
            )

    output_dir.mkdir(parents=True, exist_ok=True)

    for src, names in zip(inputs, name_sets):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            session = convert_png(src, platform, options)
        for warning in caught:
            print(f"Warning: {src.name}: {warning.message}")

        print(
            f"{src.name}: {len(session.tileset.tiles)} tiles, "
            f"{len(session.tileset.palettes)} palettes"
        )
        outputs, skipped = session_outputs(session)
        for message in skipped:
            print(f"Warning: {src.name}: {message}")
        for kind, data in outputs.items():
            target = output_dir / names[kind]
            target.write_bytes(data)
            print(f"wrote {target}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = ConvertOptions(auto_quantize=not args.no_quantize)
        codec = get_platform(args.platform)

        inputs = collect_inputs(args.inputs)
        output_dir = Path(args.output_dir)
        name_sets = [
            output_names(path, args.prefix, args.suffix, codec.has_map, codec.attribute_table)
            for path in inputs
        ]
        ensure_unique_names(name_sets)
        write_outputs(inputs, name_sets, options, args.platform, output_dir, args.force)
        return 0
    except ConversionError as exc:
        print(exc, file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
