[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wasabi"
version = "0.1.0"
description = "Components of a small x86-64 UEFI kernel as a Python library: firmware tables, PCI config space, HPET, a first-fit allocator, a cooperative executor, bitmap graphics and USB HID parsing"
requires-python = ">=3.10"
dependencies = []
keywords = ["uefi", "acpi", "pci", "hpet", "allocator", "usb-hid", "kernel", "framebuffer"]
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
    "Topic :: System :: Operating System",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wasabi"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
