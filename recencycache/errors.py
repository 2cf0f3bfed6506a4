from dataclasses import dataclass


@dataclass
class CacheError(Exception):
    message: str
    capacity: int | None = None
    shards: int | None = None

    def __str__(self) -> str:
        bits = [self.message]
        if self.capacity is not None:
            bits.append(f"capacity={self.capacity}")
        if self.shards is not None:
            bits.append(f"shards={self.shards}")
        return " ".join(bits)


class CacheConfigurationError(CacheError):
    pass


class CacheInvariantError(CacheError):
    pass
