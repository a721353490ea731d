from __future__ import annotations

from typing import (
    Any,
    Iterable,
    Iterator,
    List,
    Mapping,
    MutableMapping,
    Tuple,
    Union,
)


class Headers(MutableMapping[str, str]):
    """
    Case-insensitive header mapping.

    Item assignment replaces every value stored under the name, `add` appends
    another one. Reading a repeated header joins its values with ", ".
    """

    def __init__(self, headers: Mapping[str, Union[str, List[str]]]) -> None:
        self._headers = {k.lower(): ([v] if isinstance(v, str) else v[:]) for k, v in headers.items()}

    @classmethod
    def from_raw(cls, raw: Iterable[Tuple[str, str]]) -> "Headers":
        headers = cls({})
        for key, value in raw:
            headers.add(key, value)
        return headers

    def add(self, key: str, value: str) -> None:
        self._headers.setdefault(key.lower(), []).append(value)

    def raw(self) -> List[Tuple[str, str]]:
        return [(key, value) for key, values in self._headers.items() for value in values]

    def __getitem__(self, key: str) -> str:
        return ", ".join(self._headers[key.lower()])

    def __setitem__(self, key: str, value: str) -> None:
        self._headers[key.lower()] = [value]

    def __delitem__(self, key: str) -> None:
        del self._headers[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return repr(self._headers)

    def __str__(self) -> str:
        return str(self._headers)

    def __eq__(self, other_headers: Any) -> bool:
        return isinstance(other_headers, Headers) and self._headers == other_headers._headers  # type: ignore
