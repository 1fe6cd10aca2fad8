"""EasyFileSystem block images: block cache, bitmaps, on-disk layout, inodes and an image builder, with C-style formatting, parsing and character helpers."""

__version__ = "0.1.0"