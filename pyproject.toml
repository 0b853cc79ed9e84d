[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "winland"
version = "1.0.0"
description = "Bridge services for a Wayland desktop session: clipboard, USB device registry, file sharing, notifications, audio queue, debug overlay statistics and colour filters"
requires-python = ">=3.10"
dependencies = []
keywords = ["wayland", "clipboard", "notifications", "display-filter", "file-sharing", "audio"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Desktop Environment :: Window Managers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["winland"]

[tool.pytest.ini_options]
addopts = "-ra"
