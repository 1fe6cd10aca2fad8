"""Build a file-system image holding a set of host files in its root."""

from __future__ import annotations

import argparse
import os
import sys
from typing import Iterable, TextIO

from .block_cache import BlockCacheManager, FileBlockDevice
from .filesystem import EasyFileSystem

MAX_APP_SIZE = 1024 * 1024
# 16 MiB of 512-byte blocks; one inode bitmap block allows 4095 files.
IMAGE_BLOCKS = 16 * 2048
INODE_BITMAP_BLOCKS = 1


def app_name(path: str | os.PathLike[str]) -> str:
    """The last path component, cut at its first dot."""
    name = os.fspath(path).rsplit("/", 1)[-1]
    return name.split(".", 1)[0]


def build_image(
    image_path: str | os.PathLike[str],
    files: Iterable[str | os.PathLike[str]],
    out: TextIO | None = None,
) -> list[str]:
    """Write a fresh image at ``image_path`` with ``files``; return its listing."""
    out = sys.stdout if out is None else out
    cache = BlockCacheManager()
    with FileBlockDevice(image_path, truncate=True) as device:
        fs = EasyFileSystem.create(device, IMAGE_BLOCKS, INODE_BITMAP_BLOCKS, cache)
        root = fs.root_inode()
        for path in files:
            name = app_name(path)
            print(f"{os.fspath(path)} - {name}", file=out)
            size = os.path.getsize(path)
            if size > MAX_APP_SIZE:
                raise ValueError(f"file too big: {os.fspath(path)} ({size} bytes)")
            with open(path, "rb") as host_file:
                data = host_file.read()
            inode = root.create(name)
            print(
                f"inode = {inode.block_id} offset = {inode.block_offset} "
                f"size = {len(data)}",
                file=out,
            )
            inode.write_at(0, data)

        names = root.ls()
        print(f"#app = {len(names)}", file=out)
        for name in names:
            print(name, file=out)
        cache.sync_all()
    return names


def main(argv: list[str] | None = None) -> int:
    """Command entry point: ``mkfs fs.img files...``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print("Usage: mkfs fs.img files...", file=sys.stderr)
        return 1
    parser = argparse.ArgumentParser(prog="mkfs", description=__doc__)
    parser.add_argument("image")
    parser.add_argument("files", nargs="*")
    options = parser.parse_args(args)
    try:
        build_image(options.image, options.files)
    except FileExistsError as exc:
        print(f"inode create failed: {exc}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as exc:
        print(f"mkfs: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())