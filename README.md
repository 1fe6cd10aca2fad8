# efskit

`efskit` builds and reads EasyFileSystem images. EasyFileSystem is a simple
file system made of 512-byte blocks, laid out in this order:

1. a super block
2. an inode bitmap
3. an inode area
4. a data bitmap
5. a data area

All files sit in one flat root directory. A file name can be at most 27 bytes
long. Each inode has 28 direct block pointers, one single-indirect block and
one double-indirect block.

The package also has some small helpers in the style of the C library:

- `efskit.cformat`: printf-style formatting. It provides `format_string`, `snprintf`, `fctprintf` and `printf`.
- `efskit.cnumbers`: the conversions behind that formatting. It provides `format_integer`, `format_fixed`, `format_exponential` and `FormatFlags`.
- `efskit.cstdlib`: number parsing and integer division. It provides `strtoul`, `strtol`, `strtod`, `atoi`, `atol`, `div` and `ldiv`, plus the linear congruential `RandomGenerator`.
- `efskit.chartype`: character classification and case mapping for the C locale. It provides the `is*` functions, `tolower` and `toupper`.

## Installing

```
pip install .
```

## Building an image from the command line

```
efs-mkfs fs.img build/hello.bin build/shell.bin
```

The same command can also be run as `python -m efskit.mkfs`.

The command does the following:

1. It creates `fs.img`, or truncates it if it already exists. The new image is 16 MiB (32768 blocks) and has one inode bitmap block.
2. It adds one file to the root directory for each argument. The file is named after the last component of the path, cut off at its first `.`. For example, `build/hello.bin` becomes `hello`.
3. For each file, it prints the host path and the chosen name, then the block, offset and size of the new inode.
4. It prints `#app = N`, followed by the name of every entry in the root directory.

The command exits with status 1 in these cases:

- no arguments are given
- a file is larger than 1 MiB
- two paths give the same name, in which case it prints `inode create failed`
- a host file cannot be read

The same work is available from Python as `efskit.mkfs.build_image(image_path, files, out)`. It returns the listing of the root directory. The helper `efskit.mkfs.app_name(path)` gives the name that a path is stored under.

## Using the library

```python
from efskit.block_cache import BlockCacheManager, MemoryBlockDevice
from efskit.filesystem import EasyFileSystem

device = MemoryBlockDevice(4096)
cache = BlockCacheManager(16)
fs = EasyFileSystem.create(device, 4096, 1, cache)

root = fs.root_inode()
hello = root.create("hello")
hello.write_at(0, b"hello, world")

print(root.ls())                          # ['hello']
print(root.find("hello").read_at(0, 64))  # b'hello, world'
```

### Block devices and the cache

- `MemoryBlockDevice` holds the whole image in memory.
- `FileBlockDevice(path, truncate)` works on an image file on the host. You can use it as a context manager. Blocks past the end of the file read as zeros.
- `BlockCacheManager` keeps a fixed number of block slots, 16 by default, and reuses them least recently used first.
  - `borrow(block_id, device, modify)` holds a block for the length of a `with` statement.
  - `sync_all()` writes every modified block back to its device.

### File systems and inodes

- `EasyFileSystem.create(device, total_blocks, inode_bitmap_blocks, cache)` formats a device and creates an empty root directory.
- `EasyFileSystem.open(device, cache)` mounts an image that already exists. It raises `InvalidFileSystemError` when the super block magic does not match.

Methods on an `Inode`:

| Method | What it does |
| --- | --- |
| `create(name)` | Adds an empty file to a directory. |
| `find(name)` | Looks up an entry by name. |
| `ls()` | Lists names in the order they were created. |
| `read_at(offset, length)` | Reads from the file. |
| `write_at(offset, data)` | Writes to the file, growing it as needed. |
| `clear()` | Truncates the file to zero length and frees its blocks. |

`create`, `write_at` and `clear` write all cached changes back to the device before they return.

### Errors

| Error | When it is raised |
| --- | --- |
| `FileNotFoundError` | `find` does not find the name. |
| `FileExistsError` | `create` is given a name that already exists. |
| `ValueError` | A name is longer than 27 bytes. |
| `NotADirectoryError` | A directory operation is run on a file. |
| `CacheExhaustedError` | Every cache slot is in use. |
| `BitmapFullError` | There are no free inodes or data blocks. |

The on-disk records are available as dataclasses in `efskit.layout`: `SuperBlock`, `DiskInode` and `DirEntry`. Each has `pack()` and `unpack()`.

## Formatting and parsing helpers

```python
from efskit.cformat import format_string, snprintf
from efskit.cstdlib import strtol

format_string("%08.3f|%-5d|%#x", 3.14159, 42, 255)   # '0003.142|42   |0xff'
snprintf(4, "%d", 12345)                            # ('123', 5)
strtol("  -0x1f", 0)                                # ParseResult(value=-31, end=7, overflow=False)
```

## What the package does not do

- It cannot mount an image into the host's file tree.
- There are no subdirectories.
- Entries cannot be removed from a directory. `Inode.clear` only empties a file's contents.
- There is no command that lists an image or copies files back out of it. For that, use `EasyFileSystem.open` together with `Inode.ls` and `Inode.read_at` from Python.

## Running the tests

```
pip install .[test]
pytest
```