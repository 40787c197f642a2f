"""Segment-aware path helpers.

Mount paths and request paths are compared segment by segment, so
``/foo`` contains ``/foo/bar`` but not ``/foobar``.
"""


def normalize(path: str) -> str:
    """Return *path* with one leading slash and no trailing slash.

    ::

        normalize("widgets/")  -> "/widgets"
        normalize("//a//b/")   -> "/a/b"
        normalize("")          -> "/"
    """
    return "/" + "/".join(split(path))


def split(path: str) -> list[str]:
    """Split *path* into its non-empty segments."""
    return [part for part in path.split("/") if part]


def join(*parts: object) -> str:
    """Join parts into a single absolute path.

    Parts may be strings or anything with a sensible ``str()``::

        join("/blog", "show", 7)  -> "/blog/show/7"
        join("/", "index")        -> "/index"
    """
    segments: list[str] = []
    for part in parts:
        segments.extend(split(str(part)))
    return "/" + "/".join(segments)


def contains(mount: str, path: str) -> bool:
    """True if *mount* is *path* or a segment-boundary prefix of it.

    Both arguments must already be normalized.
    """
    if mount == "/":
        return True
    return path == mount or path.startswith(mount + "/")


def remainder(mount: str, path: str) -> list[str]:
    """Segments of *path* left over after *mount*."""
    if mount == "/":
        return split(path)
    return split(path[len(mount) :])
