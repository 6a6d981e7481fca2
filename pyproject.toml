[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xenonemu"
version = "0.1.0"
description = "Register-level model of the Xbox 360 Xenon system buses, PCI devices, interrupt controller and NAND flash."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "emulator",
    "xbox360",
    "xenon",
    "pci",
    "nand",
    "interrupt-controller",
    "system-management-controller",
]
classifiers = [
    "Development Status :: 2 - Pre-Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["xenonemu"]

[tool.hatch.build.targets.sdist]
include = ["xenonemu", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
