from typing import Callable, Iterable, Iterator
import functools

import threaded_map_reduce
from pyfstat.config import MAP_REDUCE_CHUNK_SIZE, DEF_NUM_PROCESSES


class _ItemProcessor:
    def __init__(self, map_functs):
        self.map_functs = map_functs

    def __call__(self, item):
        processed_item = item
        for one_funct in self.map_functs:
            processed_item = one_funct(processed_item)
        return processed_item


class Pipeline:
    """It maps a chain of functions over independent work items

    The items can be permutation replicates or pairs of groups. With more
    than one process the items are computed in threads.
    """

    def __init__(
        self,
        map_functs: list[Callable] | None = None,
        reduce_funct: Callable = None,
        reduce_initializer=None,
    ):
        self.map_functs = [] if map_functs is None else map_functs
        self.reduce_funct = reduce_funct
        self.reduce_initializer = reduce_initializer

    def _process_items(
        self,
        items: Iterable,
        num_processes: int = DEF_NUM_PROCESSES,
        map_reduce_chunk_size=MAP_REDUCE_CHUNK_SIZE,
    ):
        process_item = _ItemProcessor(self.map_functs)

        use_threads = num_processes > 1

        if use_threads:
            if self.reduce_funct:
                result = threaded_map_reduce.map_reduce(
                    map_fn=process_item,
                    reduce_fn=self.reduce_funct,
                    iterable=iter(items),
                    num_computing_threads=num_processes,
                    chunk_size=map_reduce_chunk_size,
                )
                if self.reduce_initializer is not None:
                    result = self.reduce_funct(self.reduce_initializer, result)
            else:
                result = threaded_map_reduce.map(
                    map_fn=process_item,
                    items=iter(items),
                    num_computing_threads=num_processes,
                    chunk_size=map_reduce_chunk_size,
                )
        else:
            processed_items = map(process_item, items)
            result = processed_items
            if self.reduce_funct is not None:
                result = functools.reduce(
                    self.reduce_funct, processed_items, self.reduce_initializer
                )

        return result

    def map_items(self, items: Iterable, num_processes: int = DEF_NUM_PROCESSES) -> Iterator:
        if self.reduce_funct is not None or self.reduce_initializer is not None:
            raise ValueError(
                "For mapping reduce_funct and reduce_initializer must be None"
            )
        return self._process_items(items, num_processes)

    def map_and_reduce(self, items: Iterable, num_processes: int = DEF_NUM_PROCESSES):
        if self.reduce_funct is None:
            raise ValueError("For mapping and reducing reduce_funct must be set")
        return self._process_items(items, num_processes)
