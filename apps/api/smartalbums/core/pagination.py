from dataclasses import dataclass
from typing import Sequence, TypeVar

T = TypeVar("T")

@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    size: int = 100

    @property
    def offset(self) -> int:
        """ Zero-based offset of the first row on this page. """
        return (max(self.page, 1) - 1) * self.size

def slice_page(items: Sequence[T], page: PageRequest) -> list[T]:
    """ Return the slice of an already ordered sequence that falls on the requested page. """
    return list(items[page.offset:page.offset + page.size])
