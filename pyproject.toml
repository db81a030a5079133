[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "foundry"
version = "0.1.0"
description = "Declarative KVM virtual machine specs: YAML loading and validation, libvirt domain XML, metadata storage, status tracking and output formatting"
requires-python = ">=3.10"
dependencies = [
    "pyyaml>=6.0",
]
keywords = ["libvirt", "kvm", "virtual-machine", "qemu", "yaml", "domain-xml"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
]

[tool.setuptools.packages.find]
include = ["foundry*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
