"""
Binary max-heap keyed by a numeric priority.
"""
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class PriorityQueue(Generic[T]):
    """
    Max-heap of (item, priority) pairs.
    
    The highest priority item is dequeued first. Ties are not ordered.
    """
    
    def __init__(self):
        self._heap: List[tuple] = []
    
    def _parent(self, index: int) -> int:
        return (index - 1) // 2
    
    def _swap(self, index1: int, index2: int):
        self._heap[index1], self._heap[index2] = self._heap[index2], self._heap[index1]
    
    def _heapify_up(self, index: int):
        while index > 0 and self._heap[self._parent(index)][1] < self._heap[index][1]:
            self._swap(index, self._parent(index))
            index = self._parent(index)
    
    def _heapify_down(self, index: int):
        size = len(self._heap)
        while True:
            largest = index
            left = 2 * index + 1
            right = 2 * index + 2
            
            if left < size and self._heap[left][1] > self._heap[largest][1]:
                largest = left
            if right < size and self._heap[right][1] > self._heap[largest][1]:
                largest = right
            
            if largest == index:
                return
            self._swap(index, largest)
            index = largest
    
    def enqueue(self, item: T, priority: float):
        """Add an item with the given priority. O(log n)."""
        self._heap.append((item, priority))
        self._heapify_up(len(self._heap) - 1)
    
    def dequeue(self) -> Optional[T]:
        """Remove and return the highest priority item, or None if empty. O(log n)."""
        if not self._heap:
            return None
        
        if len(self._heap) == 1:
            return self._heap.pop()[0]
        
        root = self._heap[0][0]
        self._heap[0] = self._heap.pop()
        self._heapify_down(0)
        return root
    
    def peek(self) -> Optional[T]:
        return self._heap[0][0] if self._heap else None
    
    def is_empty(self) -> bool:
        return not self._heap
    
    def size(self) -> int:
        return len(self._heap)
    
    def __len__(self) -> int:
        return len(self._heap)
