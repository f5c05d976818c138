[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtpkit"
version = "0.1.0"
description = "RTP packet parsing and building, header extensions, Opus/VP8/VP9 payloaders and VP8, VP9, Opus and H.265 depacketizers"
requires-python = ">=3.10"
dependencies = []
keywords = ["rtp", "rtc", "webrtc", "vp8", "vp9", "h265", "hevc", "opus", "packetizer"]
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
    "Topic :: Multimedia :: Video",
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rtpkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
