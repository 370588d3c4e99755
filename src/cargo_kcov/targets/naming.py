"""Cargo name mangling helpers.

Cargo writes build artifacts with hyphens in crate and target names turned
into underscores, so every name we compare against a filename has to go
through the same rule.
"""

from __future__ import annotations


def normalize(name: str) -> str:
    """Convert a package or target name to its artifact filename stem.

    >>> normalize("cargo-kcov")
    'cargo_kcov'
    """
    if "-" not in name:
        return name
    return name.replace("-", "_")


def package_name_from_identifier(pkgid: str) -> str:
    """Extract the normalized package name from a ``cargo pkgid`` string.

    Package IDs look like ``[scheme://]host/path[#[name]:]version``:

    - ``file:///path/to/cargo-kcov#0.2.0`` -> ``cargo_kcov``
    - ``crates.io/bar#foo:1.2.3`` -> ``foo``
    - ``foo:1.2.3`` -> ``foo``
    """
    last = pkgid.strip().rsplit("/", 1)[-1]

    has_colon = ":" in last
    has_hash = "#" in last
    if has_colon and has_hash:
        name = last.split("#", 1)[1].split(":", 1)[0]
    elif has_colon:
        name = last.split(":", 1)[0]
    elif has_hash:
        name = last.split("#", 1)[0]
    else:
        name = last

    return normalize(name)
