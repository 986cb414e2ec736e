[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "domain_monitor"
version = "0.1.0"
description = "Self-hosted domain expiry monitor with a WHOIS cache, e-mail alerts and a small JSON web API"
requires-python = ">=3.10"
keywords = ["whois", "domain", "expiry", "monitoring", "alerts"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Name Service (DNS)",
    "Topic :: System :: Monitoring",
]
dependencies = [
    "pyyaml",
    "flask",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
domain-monitor = "domain_monitor.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["domain_monitor"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
