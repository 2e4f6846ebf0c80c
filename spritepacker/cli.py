import argparse
import logging
import os
import sys
from typing import List, Optional

from PIL import Image, UnidentifiedImageError

from .atlas import Atlas
from .errors import PackingError
from .packer import Packer

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.bmp', '.gif')


def _setup_logging(verbose: bool = False) -> None:
    """Send log records to the console."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    root.addHandler(console_handler)


def find_sprite_files(input_dir: str) -> List[str]:
    """List image files directly inside input_dir, sorted by name."""
    sprite_files = []
    for file in sorted(os.listdir(input_dir)):
        full_path = os.path.join(input_dir, file)
        if os.path.isfile(full_path) and file.lower().endswith(IMAGE_EXTENSIONS):
            sprite_files.append(full_path)
    return sprite_files


def load_sprites(packer: Packer, sprite_files: List[str]) -> int:
    """Add every readable file to the packer under its base name. Returns the number added."""
    added = 0
    for path in sprite_files:
        name = os.path.basename(path)
        try:
            with Image.open(path) as img:
                packer.add_image(name, img)
        except (OSError, UnidentifiedImageError) as e:
            logger.warning("Error loading %s: %s", path, e)
            continue
        added += 1
    return added


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Pack sprite frames into texture atlas pages')
    parser.add_argument('input_dir', help='Directory containing sprite frames')
    parser.add_argument('output_dir', help='Directory to save pages and the atlas description')
    parser.add_argument('--max-size', type=int, default=8192, help='Maximum width and height of a page')
    parser.add_argument('--padding', type=int, default=1, help='Padding between sprites')
    parser.add_argument('--prefix', default='sheet', help='Prefix for output files')
    parser.add_argument('--no-trim', action='store_true', help='Keep transparent borders around sprites')
    parser.add_argument('--pot', action='store_true', help='Round page sizes up to powers of two')
    parser.add_argument('--combine-duplicates', action='store_true',
                        help='Store sprites with identical pixels only once')
    parser.add_argument('--premultiply', action='store_true', help='Premultiply page colours by alpha')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log packing details')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    if not os.path.isdir(args.input_dir):
        logger.error("Input directory not found: %s", args.input_dir)
        return 1

    logger.info("Scanning directory: %s", args.input_dir)
    sprite_files = find_sprite_files(args.input_dir)
    if not sprite_files:
        logger.error("No sprite files found in %s", args.input_dir)
        return 1
    logger.info("Found %d sprite files", len(sprite_files))

    packer = Packer(
        trim=not args.no_trim,
        max_page_size=args.max_size,
        padding=args.padding,
        power_of_two=args.pot,
        combine_duplicates=args.combine_duplicates,
    )
    load_sprites(packer, sprite_files)

    try:
        output = packer.pack()
    except PackingError as e:
        logger.error("%s", e)
        return 1

    atlas = Atlas.from_output(output, premultiply=args.premultiply)
    atlas_path = atlas.save(args.output_dir, args.prefix)

    print(f"Saved {len(output.pages)} pages with {len(output.entries)} sprites, atlas: {atlas_path}")
    print(f"Final packing efficiency: {output.efficiency():.2f}%")
    return 0


if __name__ == "__main__":
    sys.exit(main())
