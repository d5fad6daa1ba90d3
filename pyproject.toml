[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hoyparse"
version = "0.1.0"
description = "Decoders for the response payloads of Hoymiles micro-inverters: statistics, device info, alarm log, grid profile and limits"
requires-python = ">=3.10"
dependencies = []
keywords = ["hoymiles", "inverter", "solar", "photovoltaic", "parser", "protocol"]
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
    "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hoyparse"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
