from typing import TypeAlias

Handle: TypeAlias = int
"Index of an Entry slot inside an EntryArena"

HEAD: Handle = 0
"Front sentinel: its next link is the most recently used entry"

TAIL: Handle = 1
"Back sentinel: its prev link is the least recently used entry"

FIRST_DATA_HANDLE: Handle = 2
