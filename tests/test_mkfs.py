import pytest

from efskit.block_cache import BlockCacheManager, FileBlockDevice
from efskit.filesystem import EasyFileSystem
from efskit.mkfs import MAX_APP_SIZE, app_name, build_image, main


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/a/b/hello.elf", "hello"),
        ("x.tar.gz", "x"),
        ("noext", "noext"),
        ("dir.d/file", "file"),
        ("user/initproc.bin", "initproc"),
    ],
)
def test_app_name(path, expected):
    assert app_name(path) == expected


def test_build_image_round_trip(tmp_path, capsys):
    first = tmp_path / "shell.bin"
    second = tmp_path / "hello.elf"
    first.write_bytes(bytes(range(256)) * 9)
    second.write_bytes(b"hello world\n")
    image = tmp_path / "fs.img"

    names = build_image(image, [first, second])
    assert names == ["shell", "hello"]
    output = capsys.readouterr().out
    assert "#app = 2" in output
    assert f"{first} - shell" in output

    with FileBlockDevice(image) as device:
        fs = EasyFileSystem.open(device, BlockCacheManager())
        root = fs.root_inode()
        assert root.ls() == ["shell", "hello"]
        assert root.find("shell").read_at(0, 10_000) == first.read_bytes()
        assert root.find("hello").read_at(0, 100) == b"hello world\n"


def test_main_without_arguments_prints_usage(capsys):
    assert main([]) == 1
    assert "Usage: mkfs fs.img files..." in capsys.readouterr().err


def test_main_rejects_oversized_file(tmp_path, capsys):
    big = tmp_path / "big.bin"
    big.write_bytes(bytes(MAX_APP_SIZE + 1))
    assert main([str(tmp_path / "fs.img"), str(big)]) == 1
    assert "file too big" in capsys.readouterr().err


def test_main_rejects_duplicate_names(tmp_path, capsys):
    (tmp_path / "one").mkdir()
    a = tmp_path / "a.txt"
    b = tmp_path / "one" / "a.bin"
    a.write_bytes(b"x")
    b.write_bytes(b"y")
    assert main([str(tmp_path / "fs.img"), str(a), str(b)]) == 1
    assert "inode create failed" in capsys.readouterr().err