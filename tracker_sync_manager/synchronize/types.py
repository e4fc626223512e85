"""Type hints for the synchronize module."""

from typing import Any, Protocol, Sequence, runtime_checkable


@runtime_checkable
class HasName(Protocol):
    """Protocol for objects that have a name attribute."""

    name: str


LabelType = str | dict[str, Any] | HasName


class GitHubIssueLike(Protocol):
    """Attributes read from a githubkit ``Issue`` when building a Target snapshot."""

    number: int
    title: str
    body: str | None
    labels: Sequence[LabelType]
    state: Any
