"""
Bounded-delay reorder windows.

Quotes arrive in capture order, which is close to but not exactly accept-time
order. Assuming no two quotes are ever out of order by more than MAX_DELAY of
accept time, a buffered quote is safe to release once a quote arrives whose
accept time is more than MAX_DELAY later:

    buffered.accept_time + MAX_DELAY < incoming.accept_time    (strict!)

A quote exactly MAX_DELAY behind the incoming one is retained.

Two interchangeable strategies implement the same ReorderWindow interface:
- SortedWindow ("vec"): sorted sequence, ties kept in arrival order
- HeapWindow ("heap"): binary min-heap, tie order between equal accept
  times is not part of the contract

For pairwise distinct accept times both strategies release identical
sequences. With equal accept times they release the same multiset, and only
SortedWindow promises arrival order among the ties.
"""

import heapq
import itertools
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Tuple

from sortedcontainers import SortedKeyList

from ..protocols.quote import Quote


# Maximum accept-time skew between any two out-of-order quotes
MAX_DELAY = timedelta(seconds=3)

# Pre-sizing hint, never a bound
DEFAULT_CAPACITY = 2048


class Strategy(str, Enum):
    """Reorder window implementation."""
    vec = "vec"
    heap = "heap"


class ReorderWindow(ABC):
    """
    Abstract reorder window.

    Usage:
        window = create_window(Strategy.heap)
        for quote in quotes:
            for ready in window.insert(quote):
                emit(ready)
        for ready in window.drain_all():
            emit(ready)
    """

    def __init__(self, max_delay: timedelta = MAX_DELAY, capacity: int = DEFAULT_CAPACITY):
        if max_delay < timedelta(0):
            raise ValueError(f"max_delay must not be negative: {max_delay}")
        self.max_delay = max_delay
        self.capacity = capacity

    def insert(self, quote: Quote) -> List[Quote]:
        """
        Buffer a quote, releasing everything it makes safe.

        Returns:
            Quotes released by this insert, ascending by accept time
        """
        ready = self.drain_ready(quote.accept_time)
        self._push(quote)
        return ready

    @abstractmethod
    def drain_ready(self, reference_time: datetime) -> List[Quote]:
        """
        Release every quote with accept_time + max_delay < reference_time.

        Returns:
            Released quotes, ascending by accept time
        """
        pass

    @abstractmethod
    def drain_all(self) -> List[Quote]:
        """Release every buffered quote, ascending by accept time."""
        pass

    @abstractmethod
    def peek(self) -> Optional[Quote]:
        """Earliest buffered quote, or None if empty."""
        pass

    @abstractmethod
    def _push(self, quote: Quote) -> None:
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass


class SortedWindow(ReorderWindow):
    """
    Ordered-sequence window.

    The buffer is always sorted by accept time. A new quote goes after every
    buffered quote with an equal or earlier accept time, so ties come out in
    arrival order.
    """

    def __init__(self, max_delay: timedelta = MAX_DELAY, capacity: int = DEFAULT_CAPACITY):
        super().__init__(max_delay, capacity)
        self._buffer = SortedKeyList(key=lambda quote: quote.accept_time)

    def drain_ready(self, reference_time: datetime) -> List[Quote]:
        # accept_time + max_delay < reference  <=>  accept_time < reference - max_delay
        cutoff = self._buffer.bisect_key_left(reference_time - self.max_delay)
        if cutoff == 0:
            return []

        ready = list(self._buffer[:cutoff])
        del self._buffer[:cutoff]
        return ready

    def drain_all(self) -> List[Quote]:
        ready = list(self._buffer)
        self._buffer.clear()
        return ready

    def peek(self) -> Optional[Quote]:
        return self._buffer[0] if self._buffer else None

    def _push(self, quote: Quote) -> None:
        # SortedKeyList.add bisects right: equal keys keep arrival order
        self._buffer.add(quote)

    def __len__(self) -> int:
        return len(self._buffer)


class HeapWindow(ReorderWindow):
    """
    Priority-queue window.

    Entries are (accept_time, arrival, quote) so the heap never has to compare
    two Quote objects.
    """

    def __init__(self, max_delay: timedelta = MAX_DELAY, capacity: int = DEFAULT_CAPACITY):
        super().__init__(max_delay, capacity)
        self._heap: List[Tuple[datetime, int, Quote]] = []
        self._arrivals = itertools.count()

    def drain_ready(self, reference_time: datetime) -> List[Quote]:
        ready = []
        while self._heap and self._heap[0][0] + self.max_delay < reference_time:
            ready.append(heapq.heappop(self._heap)[2])
        return ready

    def drain_all(self) -> List[Quote]:
        ready = []
        while self._heap:
            ready.append(heapq.heappop(self._heap)[2])
        return ready

    def peek(self) -> Optional[Quote]:
        return self._heap[0][2] if self._heap else None

    def _push(self, quote: Quote) -> None:
        heapq.heappush(self._heap, (quote.accept_time, next(self._arrivals), quote))

    def __len__(self) -> int:
        return len(self._heap)


WINDOW_TYPES = {
    Strategy.vec: SortedWindow,
    Strategy.heap: HeapWindow,
}


def create_window(
    strategy: Strategy,
    max_delay: timedelta = MAX_DELAY,
    capacity: int = DEFAULT_CAPACITY,
) -> ReorderWindow:
    """Build the reorder window for a strategy."""
    return WINDOW_TYPES[Strategy(strategy)](max_delay=max_delay, capacity=capacity)
