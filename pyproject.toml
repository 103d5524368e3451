[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "couponsys"
version = "1.0.0"
description = "A small HTTP service for creating, listing and validating discount coupons."
requires-python = ">=3.10"
dependencies = [
    "flask",
]
keywords = ["coupon", "discount", "http", "api", "flask", "sqlite"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Office/Business :: Financial :: Point-Of-Sale",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
couponsys = "couponsys.main:main"

[tool.hatch.build.targets.wheel]
packages = ["couponsys"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
