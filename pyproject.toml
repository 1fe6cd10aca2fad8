[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "efskit"
version = "0.1.0"
description = "Build and read EasyFileSystem block images, with C-style formatting, parsing and character helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["filesystem", "block-device", "disk-image", "mkfs", "inode", "printf", "strtol"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
efs-mkfs = "efskit.mkfs:main"

[tool.hatch.build.targets.wheel]
packages = ["efskit"]

[tool.pytest.ini_options]
addopts = "-ra"
