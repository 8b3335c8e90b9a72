import hashlib
import logging
import threading
from bisect import bisect_left
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Set, Tuple, Union

from .errors import EmptyRing, PositionCollision

log = logging.getLogger("ring")

HashFn = Callable[[bytes], int]

# Distance between consecutive placement salts.
SALT_STEP = 217


def md5_32(data: bytes) -> int:
    # Return a 32-bit hash of the input bytes.
    return int(hashlib.md5(data).hexdigest()[:8], 16)


def _as_bytes(key: Union[str, bytes]) -> bytes:
    if isinstance(key, bytes):
        return key
    return str(key).encode("utf-8")


@dataclass(frozen=True)
class VirtualNode:
    position: int
    server_id: Hashable


@dataclass(frozen=True)
class _Snapshot:
    positions: Tuple[int, ...]
    owners: Tuple[Hashable, ...]

    def __len__(self) -> int:
        return len(self.positions)


_EMPTY = _Snapshot(positions=(), owners=())


# Consistent hashing ring with virtual nodes.
# Writers rebuild an immutable snapshot and swap it in; readers never lock.
class Ring:
    def __init__(
        self,
        servers: Optional[Iterable[Hashable]] = None,
        modulus: int = 256,
        replicas: int = 5,
        hash_fn: HashFn = md5_32,
        max_probes: Optional[int] = None,
    ):
        if modulus < 1:
            raise ValueError("modulus must be positive")
        if replicas < 0:
            raise ValueError("replicas must not be negative")
        self.modulus = modulus
        self.replicas_per_server = replicas
        self.hash_fn = hash_fn
        if max_probes is not None and max_probes < 0:
            raise ValueError("max_probes must not be negative")
        self.max_probes = modulus if max_probes is None else max_probes
        self._snapshot = _EMPTY
        self._write_lock = threading.Lock()
        for s in servers or ():
            self.add_server(s)

    def position_for(self, key: Union[str, bytes]) -> int:
        return self.hash_fn(_as_bytes(key)) % self.modulus

    def add_server(self, server_id: Hashable, replica_count: Optional[int] = None) -> List[int]:
        """Place ``replica_count`` virtual nodes for ``server_id``.

        Attempt k hashes ``f"{server_id}_{k * SALT_STEP}"``; occupied positions
        are skipped and the next salt is tried. Once ``count + max_probes`` salts
        are spent, the remaining nodes take the next free positions clockwise
        from the last hashed one. Returns the placed positions in placement
        order. Raises PositionCollision, leaving the ring untouched, only when
        fewer than ``replica_count`` positions are free.
        """
        count = self.replicas_per_server if replica_count is None else replica_count
        if count < 0:
            raise ValueError("replica_count must not be negative")
        if count == 0:
            log.debug("add_server(%r) with zero replicas ignored", server_id)
            return []

        with self._write_lock:
            snap = self._snapshot
            free = self.modulus - len(snap)
            if free < count:
                log.warning("Ring full: %d free positions, %r needs %d", free, server_id, count)
                raise PositionCollision(server_id, count, 0, "ring is full")

            taken = set(snap.positions)
            placed: List[int] = []
            pos = 0
            for attempt in range(count + self.max_probes):
                if len(placed) == count:
                    break
                pos = self.position_for(f"{server_id}_{attempt * SALT_STEP}")
                if pos in taken:
                    log.debug("Position %d taken, probing again for %r", pos, server_id)
                    continue
                taken.add(pos)
                placed.append(pos)

            if len(placed) < count:
                log.debug("Salts spent for %r, walking clockwise from %d", server_id, pos)
            while len(placed) < count:
                pos = (pos + 1) % self.modulus
                if pos not in taken:
                    taken.add(pos)
                    placed.append(pos)

            entries = list(zip(snap.positions, snap.owners))
            entries.extend((p, server_id) for p in placed)
            self._snapshot = self._freeze(entries)

        log.info("Added server %r at positions %s", server_id, sorted(placed))
        return placed

    def remove_server(self, server_id: Hashable) -> List[int]:
        with self._write_lock:
            snap = self._snapshot
            kept = [(p, s) for p, s in zip(snap.positions, snap.owners) if s != server_id]
            if len(kept) == len(snap):
                return []
            removed = [p for p, s in zip(snap.positions, snap.owners) if s == server_id]
            self._snapshot = self._freeze(kept)

        log.info("Removed server %r from positions %s", server_id, removed)
        return removed

    def lookup(self, key: Union[str, bytes]) -> Hashable:
        snap = self._snapshot
        if not snap.positions:
            raise EmptyRing()
        return snap.owners[self._index(snap, self.position_for(key))]

    # Return up to r distinct servers (clockwise) starting at the owner.
    def replicas(self, key: Union[str, bytes], r: int) -> List[Hashable]:
        snap = self._snapshot
        if not snap.positions:
            raise EmptyRing()
        r = max(1, r)
        wanted = min(r, len(set(snap.owners)))
        i = self._index(snap, self.position_for(key))

        seen = set()
        out = []
        while len(out) < wanted:
            server = snap.owners[i]
            if server not in seen:
                seen.add(server)
                out.append(server)
            i = (i + 1) % len(snap)
        return out

    def servers(self) -> Set[Hashable]:
        return set(self._snapshot.owners)

    def nodes(self) -> List[VirtualNode]:
        snap = self._snapshot
        return [VirtualNode(p, s) for p, s in zip(snap.positions, snap.owners)]

    def positions(self, server_id: Hashable) -> List[int]:
        snap = self._snapshot
        return [p for p, s in zip(snap.positions, snap.owners) if s == server_id]

    def ownership(self, keys: Iterable[Union[str, bytes]]) -> Dict[Hashable, int]:
        """Count how many of ``keys`` each server owns, against one snapshot."""
        snap = self._snapshot
        if not snap.positions:
            raise EmptyRing()
        counts: Dict[Hashable, int] = {s: 0 for s in snap.owners}
        for k in keys:
            counts[snap.owners[self._index(snap, self.position_for(k))]] += 1
        return counts

    def __len__(self) -> int:
        return len(self._snapshot)

    def __contains__(self, server_id: Hashable) -> bool:
        return server_id in self._snapshot.owners

    def __str__(self) -> str:
        return "".join(f"{n.position},{n.server_id}\n" for n in self.nodes())

    def __repr__(self) -> str:
        return f"Ring(modulus={self.modulus}, nodes={len(self)}, servers={len(self.servers())})"

    @staticmethod
    def _index(snap: _Snapshot, h: int) -> int:
        idx = bisect_left(snap.positions, h)
        if idx == len(snap.positions):
            idx = 0
        return idx

    @staticmethod
    def _freeze(entries: List[Tuple[int, Hashable]]) -> _Snapshot:
        entries.sort(key=lambda x: x[0])
        return _Snapshot(
            positions=tuple(p for p, _ in entries),
            owners=tuple(s for _, s in entries),
        )
