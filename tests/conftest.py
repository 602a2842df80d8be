"""Root test configuration: sample content site and cleanup of runtime artifacts"""

import shutil
from pathlib import Path

import pytest

from mdfolio.config import Settings


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_FILES = ["test.db"]
_CLEANUP_DIRS = [".mdfolio", "_site"]


ENDIANNESS_MD = """\
---
layout: post
title: Understanding Endianness
excerpt: Byte order, explained.
tags: [cpp, memory]
toc: true
---

## Big endian

See [smart pointers](/2021/05/06/smart-pointers/) and the [about page](/about/).

```cpp
uint32_t x = 1;
```

## Little endian

More text.
"""

SMART_POINTERS_MD = """\
---
title: Smart Pointers
date: 2021-05-06 09:30:00
tags: cpp
---

Owning memory with `unique_ptr`. Back to [endianness](2021-03-04-endianness.md).
"""

ABOUT_MD = """\
---
layout: page
title: About
permalink: /about/
---

I write about C++. See [the ray tracer](/projects/ray-tracer/) or [my site](https://example.com).
"""

RAY_TRACER_MD = """\
---
title: Ray Tracer
stack:
  - C++
  - CMake
links:
  - icon: github
    url: https://github.com/example/ray-tracer
sidebar:
  - title: Status
    text: Finished
---

A small ray tracer.

![render](/assets/render.png)
"""

READING_MD = """\
# Reading list

- Effective Modern C++
"""


def write_site(root: Path) -> Path:
    """Lay out a small blog/portfolio content store under root."""
    files = {
        "_posts/2021-03-04-endianness.md": ENDIANNESS_MD,
        "_posts/2021-05-06-smart-pointers.md": SMART_POINTERS_MD,
        "_projects/ray-tracer.md": RAY_TRACER_MD,
        "about.md": ABOUT_MD,
        "reading.md": READING_MD,
        "README.md": "# Not content\n",
    }
    for rel, text in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
    (root / "assets").mkdir(parents=True, exist_ok=True)
    (root / "assets" / "render.png").write_bytes(b"\x89PNG fake")
    return root


@pytest.fixture(name="site_root")
def site_root_fixture(tmp_path):
    return write_site(tmp_path / "site")


@pytest.fixture(name="settings")
def settings_fixture():
    return Settings()


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove DB files and output directories created during the test session."""
    yield
    for name in _CLEANUP_FILES:
        p = _PROJECT_ROOT / name
        if p.exists():
            p.unlink()
    for name in _CLEANUP_DIRS:
        p = _PROJECT_ROOT / name
        if p.exists():
            shutil.rmtree(p)
