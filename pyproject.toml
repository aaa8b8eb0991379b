[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ptpwire"
version = "0.1.0"
description = "Picture/Media Transfer Protocol (PTP/MTP) wire format, bulk-pipe framing and session layer"
requires-python = ">=3.10"
dependencies = []
keywords = ["mtp", "ptp", "usb", "media transfer protocol", "android"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Hardware :: Universal Serial Bus (USB) :: Miscellaneous",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ptpwire"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
