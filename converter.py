import argparse
import logging
import os

from qoicodec import PixelGrid, load_image, read, to_image, write


def png_to_qoi(png_path, qoi_path):
    pixel_data, desc = load_image(png_path)
    size = write(qoi_path, PixelGrid.from_array(pixel_data))
    print(
        f"Converted {png_path} ({desc['width']}x{desc['height']}, "
        f"{desc['channels']} channels) to {qoi_path}: {size} bytes"
    )
    return size


def qoi_to_png(qoi_path, png_path):
    grid = read(qoi_path)
    to_image(grid).save(png_path, format="PNG")
    print(f"Converted {qoi_path} to {png_path}")
    return grid


def main(argv=None):
    parser = argparse.ArgumentParser(description="convert images to and from QOI")
    parser.add_argument("src", help="source image, .qoi is decoded, anything else encoded")
    parser.add_argument("dst", nargs="?", help="output path (default: swap extension)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    base, ext = os.path.splitext(args.src)
    if ext.lower() == ".qoi":
        qoi_to_png(args.src, args.dst or base + ".png")
    else:
        png_to_qoi(args.src, args.dst or base + ".qoi")


if __name__ == "__main__":
    main()
