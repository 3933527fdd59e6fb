[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xlshop"
version = "0.1.0"
description = "A small in-memory warehouse inventory service with stock-in/stock-out records and daily statistics over HTTP."
requires-python = ">=3.10"
dependencies = []
keywords = ["inventory", "warehouse", "stock", "wsgi", "http"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xlshop-server = "xlshop.server:main"
xlshop-seed = "xlshop.seed:main"

[tool.hatch.build.targets.wheel]
packages = ["xlshop"]

[tool.pytest.ini_options]
addopts = "-ra"
